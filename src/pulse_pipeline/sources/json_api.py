"""
sources/json_api.py — Fetcher for plain JSON REST endpoints.

Returns the parsed body untouched; envelope unwrapping is the
transformer's job.
"""

from __future__ import annotations

from typing import Any

from pulse_pipeline.sources.base import BaseFetcher


class JsonApiFetcher(BaseFetcher):
    """Single GET against a JSON endpoint."""

    name = "json"

    def __init__(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.url = url
        self.params = params

    async def fetch(self) -> Any:
        async with self._client() as client:
            data = await self._get_json(client, self.url, self.params)
        self._log.info(
            "fetch_complete",
            url=self.url,
            top_level=type(data).__name__,
            items=len(data) if isinstance(data, list) else None,
        )
        return data
