"""
sources/ckan.py — CKAN datastore client for the Toronto open-data portal.

Toronto publishes most tabular datasets through CKAN. Each dataset
("package") has one or more resources; resources with ``datastore_active``
are queryable row by row.

CKAN API base: https://ckan0.cf.opendata.inter.prod-toronto.ca/api/3/action

Key actions:
  /package_show       — metadata for one dataset by id or slug
  /datastore_search   — row-level access to a datastore resource

Usage:
    fetcher = CkanDatastoreFetcher("red-light-cameras")

    # Pipeline use: raw datastore envelope, records under result.records
    payload = await fetcher.fetch()

    # Catalog use: package metadata and its queryable resources
    package = await fetcher.package_show()
    resources = CkanDatastoreFetcher.datastore_resources(package)
"""

from __future__ import annotations

from typing import Any

import httpx

from pulse_pipeline.exceptions import FetchError
from pulse_pipeline.sources.base import BaseFetcher
from pulse_shared.config import settings


class CkanDatastoreFetcher(BaseFetcher):
    """Resolve a package's datastore resource and return its records."""

    name = "ckan_datastore"

    def __init__(
        self,
        package_id: str,
        *,
        base_url: str | None = None,
        limit: int = 32000,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.package_id = package_id
        self.base_url = (base_url or settings.ckan_base_url).rstrip("/")
        self.limit = limit

    # ------------------------------------------------------------------
    # Low-level CKAN API calls
    # ------------------------------------------------------------------

    async def _action(
        self,
        client: httpx.AsyncClient,
        action: str,
        params: dict[str, Any],
    ) -> dict[str, Any]:
        """Call a CKAN action endpoint and return the full response body."""
        url = f"{self.base_url}/{action}"
        body = await self._get_json(client, url, params)
        if not isinstance(body, dict) or not body.get("success"):
            error = body.get("error") if isinstance(body, dict) else None
            raise FetchError(
                f"CKAN action {action} returned success=false: {error}",
                url=url,
                source_id=self.source_id,
            )
        return body

    # ------------------------------------------------------------------
    # High-level helpers
    # ------------------------------------------------------------------

    async def package_show(self, package_id: str | None = None) -> dict[str, Any]:
        """
        Return CKAN metadata for a package.

        Args:
            package_id: Package id or slug; defaults to the configured one.

        Returns:
            CKAN package dict including its ``resources`` list.
        """
        async with self._client() as client:
            body = await self._action(
                client, "package_show", {"id": package_id or self.package_id}
            )
        return body["result"]

    @staticmethod
    def datastore_resources(package: dict[str, Any]) -> list[dict[str, Any]]:
        """Resources of a package that can be queried via datastore_search."""
        return [r for r in package.get("resources", []) if r.get("datastore_active")]

    async def fetch(self) -> dict[str, Any]:
        """
        Fetch all records of the package's first datastore resource.

        Returns:
            The raw datastore_search envelope (records at ``result.records``).
        """
        async with self._client() as client:
            package = (
                await self._action(client, "package_show", {"id": self.package_id})
            )["result"]
            resources = self.datastore_resources(package)
            if not resources:
                raise FetchError(
                    f"Package {self.package_id} has no datastore resource",
                    source_id=self.source_id,
                )
            resource_id = resources[0]["id"]
            body = await self._action(
                client,
                "datastore_search",
                {"resource_id": resource_id, "limit": self.limit},
            )

        records = body.get("result", {}).get("records", [])
        self._log.info(
            "fetch_complete",
            package_id=self.package_id,
            resource_id=resource_id,
            records=len(records) if isinstance(records, list) else None,
        )
        return body
