"""
sources/base.py — Abstract base class for all fetchers.

Each concrete fetcher must implement:
  fetch() — retrieve the raw payload from the upstream endpoint and return
            it deserialized (a top-level list, or an envelope object)

Fetchers are stateless aside from their configured endpoint. Every request
gets a fixed deadline; timeouts, transport errors, non-2xx statuses and
undecodable bodies all surface as FetchError. Nothing here retries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx
import structlog

from pulse_pipeline.exceptions import FetchError
from pulse_shared.config import settings

log = structlog.get_logger(__name__)


class BaseFetcher(ABC):
    """Abstract base for all Toronto Pulse fetchers."""

    # Override in subclass; used for logging
    name: str = "unknown"

    def __init__(
        self,
        *,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
        source_id: str | None = None,
    ) -> None:
        self._timeout = timeout or settings.http_timeout_s
        self._headers = {
            "Accept": "application/json",
            "User-Agent": settings.user_agent,
            **(headers or {}),
        }
        self.source_id = source_id or self.name
        self._log = log.bind(fetcher=self.name, source_id=self.source_id)

    # ------------------------------------------------------------------
    # Abstract interface
    # ------------------------------------------------------------------

    @abstractmethod
    async def fetch(self) -> Any:
        """
        Fetch the raw payload from the upstream source.

        Returns:
            The deserialized response body.

        Raises:
            FetchError: On any transport failure or non-success status.
        """
        ...

    # ------------------------------------------------------------------
    # Shared helpers available to all subclasses
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            headers=self._headers,
            follow_redirects=True,
        )

    async def _get(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """GET ``url``, translating every failure mode into FetchError."""
        self._log.debug("http_get", url=url, params=params)
        try:
            response = await client.get(url, params=params)
        except httpx.TimeoutException as exc:
            raise FetchError(
                f"Timed out after {self._timeout}s fetching {url}",
                url=url,
                source_id=self.source_id,
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(
                f"Transport error fetching {url}: {exc}",
                url=url,
                source_id=self.source_id,
            ) from exc

        if not response.is_success:
            raise FetchError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
                url=url,
                source_id=self.source_id,
            )
        return response

    async def _get_json(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        response = await self._get(client, url, params)
        try:
            return response.json()
        except ValueError as exc:
            raise FetchError(
                f"Response from {url} is not valid JSON",
                status_code=response.status_code,
                url=url,
                source_id=self.source_id,
            ) from exc
