"""
sources/nextbus.py — TTC vehicle locations from the NextBus/umoiq XML feed.

Endpoint: https://webservices.umoiq.com/service/publicXMLFeed
  ?command=vehicleLocations&a=ttc&r=<route>&t=0

The feed has a fixed shape: one self-closing ``<vehicle .../>`` element per
vehicle with all data in attributes — so simple tag/attribute extraction is
enough. One request per route; routes are fetched concurrently under a
semaphore. A failing route is logged and omitted; the fetch fails only when
every route fails.

Usage:
    vehicles = await NextBusFetcher(routes=["501", "504"]).fetch()
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Iterable
from datetime import timedelta
from typing import Any

import httpx

from pulse_pipeline.exceptions import FetchError
from pulse_pipeline.sources.base import BaseFetcher
from pulse_shared.config import settings
from pulse_shared.constants import (
    TTC_MAJOR_ROUTES,
    TTC_ROUTE_DIRECTIONS,
    TTC_ROUTE_NAMES,
    VehicleType,
)
from pulse_shared.geo import to_float
from pulse_shared.time_utils import Clock, to_iso, utc_now

_ERROR_RE = re.compile(r"<Error\b[^>]*>(.*?)</Error>", re.IGNORECASE | re.DOTALL)
_VEHICLE_RE = re.compile(r"<vehicle\s+([^>]*?)\s*/>")
_ATTR_RE = re.compile(r'(\w+)="([^"]*)"')


# ---------------------------------------------------------------------------
# XML extraction
# ---------------------------------------------------------------------------


def parse_vehicle_locations(xml_text: str) -> list[dict[str, str]]:
    """
    Extract ``<vehicle>`` attribute maps from a vehicleLocations response.

    Raises:
        ValueError: If the response carries an ``<Error>`` element.
    """
    error = _ERROR_RE.search(xml_text)
    if error:
        raise ValueError(error.group(1).strip())
    return [dict(_ATTR_RE.findall(m.group(1))) for m in _VEHICLE_RE.finditer(xml_text)]


# ---------------------------------------------------------------------------
# Route conventions
# ---------------------------------------------------------------------------


def vehicle_type_for_route(route: str) -> VehicleType:
    """500–599 are streetcars, 1–199 subway-numbered, the rest buses."""
    try:
        number = int(route)
    except ValueError:
        return "bus"
    if 500 <= number < 600:
        return "streetcar"
    if 1 <= number < 200:
        return "subway"
    return "bus"


def direction_name(dir_tag: str, route: str) -> str:
    """Map a dirTag like ``501_0_501A`` to a readable direction."""
    outbound = "_0_" in dir_tag
    directions = TTC_ROUTE_DIRECTIONS.get(route)
    if directions:
        if outbound:
            return directions[0]
        if "_1_" in dir_tag:
            return directions[1]

    if vehicle_type_for_route(route) == "streetcar":
        # Most streetcar routes run east-west
        return "Eastbound" if outbound else "Westbound"
    return "Outbound" if outbound else "Inbound"


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------


class NextBusFetcher(BaseFetcher):
    """Fetch live TTC vehicle positions for a set of routes."""

    name = "nextbus_xml"

    def __init__(
        self,
        base_url: str | None = None,
        *,
        routes: Iterable[str] = TTC_MAJOR_ROUTES,
        agency: str = "ttc",
        max_concurrency: int | None = None,
        clock: Clock = utc_now,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("headers", {"Accept": "application/xml, text/xml, */*"})
        super().__init__(**kwargs)
        self.base_url = base_url or settings.nextbus_url
        self.routes = list(routes)
        self.agency = agency
        self.max_concurrency = max_concurrency or settings.max_concurrent_requests
        self._clock = clock

    def _to_vehicle(self, attrs: dict[str, str], route: str, index: int) -> dict[str, Any]:
        route_tag = attrs.get("routeTag") or route
        dir_tag = attrs.get("dirTag", "")
        age_s = to_float(attrs.get("secsSinceReport")) or 0.0
        return {
            "id": attrs.get("id") or f"vehicle_{route_tag}_{index}",
            "route": route_tag,
            "route_name": TTC_ROUTE_NAMES.get(route_tag),
            "direction": direction_name(dir_tag, route_tag),
            "latitude": to_float(attrs.get("lat")),
            "longitude": to_float(attrs.get("lon")),
            "vehicle_type": vehicle_type_for_route(route_tag),
            "timestamp": to_iso(self._clock() - timedelta(seconds=age_s)),
            "trip_id": dir_tag or None,
            "bearing": to_float(attrs.get("heading")),
            "speed": to_float(attrs.get("speedKmHr")),
            "vehicle_label": attrs.get("id"),
        }

    async def _fetch_route(
        self,
        client: httpx.AsyncClient,
        semaphore: asyncio.Semaphore,
        route: str,
    ) -> list[dict[str, Any]]:
        params = {"command": "vehicleLocations", "a": self.agency, "r": route, "t": 0}
        async with semaphore:
            response = await self._get(client, self.base_url, params)
        try:
            raw_vehicles = parse_vehicle_locations(response.text)
        except ValueError as exc:
            raise FetchError(
                f"Feed error for route {route}: {exc}",
                url=str(response.url),
                source_id=self.source_id,
            ) from exc
        return [self._to_vehicle(attrs, route, i) for i, attrs in enumerate(raw_vehicles)]

    async def fetch(self) -> list[dict[str, Any]]:
        semaphore = asyncio.Semaphore(self.max_concurrency)
        async with self._client() as client:
            results = await asyncio.gather(
                *(self._fetch_route(client, semaphore, r) for r in self.routes),
                return_exceptions=True,
            )

        vehicles: list[dict[str, Any]] = []
        failed: list[str] = []
        for route, result in zip(self.routes, results):
            if isinstance(result, FetchError):
                failed.append(route)
                self._log.warning("route_fetch_failed", route=route, error=str(result))
                continue
            if isinstance(result, BaseException):
                raise result
            vehicles.extend(result)

        if self.routes and len(failed) == len(self.routes):
            raise FetchError(
                f"All {len(failed)} route fetches failed",
                url=self.base_url,
                source_id=self.source_id,
            )

        self._log.info(
            "fetch_complete",
            vehicles=len(vehicles),
            routes_ok=len(self.routes) - len(failed),
            routes_failed=len(failed),
        )
        return vehicles
