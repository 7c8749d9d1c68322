"""
sources/gbfs.py — General Bikeshare Feed Specification fetcher.

Bike Share Toronto publishes GBFS v1 feeds at
https://tor.publicbikesystem.net/ube/gbfs/v1/en

Two feeds are needed and must be correlated by ``station_id``:
  station_information — static: name, lat/lon, capacity
  station_status      — live: bikes/docks available, flags, last_reported

Both are fetched concurrently. Either feed failing fails the fetch, since
neither is useful alone. A station present in station_information but
missing from station_status is dropped with a logged warning.

Usage:
    stations = await GbfsFetcher().fetch()
    stations[0]["bikes_available"]
"""

from __future__ import annotations

import asyncio
from typing import Any

from pulse_pipeline.exceptions import FetchError
from pulse_pipeline.sources.base import BaseFetcher
from pulse_shared.config import settings
from pulse_shared.time_utils import parse_timestamp, to_iso


def _flag(value: Any) -> bool:
    """GBFS v1 uses 0/1 integers; v2 uses booleans."""
    return value in (1, True, "1", "true")


def join_station_feeds(
    info_stations: list[dict[str, Any]],
    status_stations: list[dict[str, Any]],
) -> tuple[list[dict[str, Any]], list[str]]:
    """
    Merge station status into station information by station_id.

    Returns:
        (merged station records, ids of stations dropped for lacking status)
    """
    status_by_id = {str(s.get("station_id")): s for s in status_stations}
    merged: list[dict[str, Any]] = []
    missing: list[str] = []

    for station in info_stations:
        station_id = str(station.get("station_id"))
        status = status_by_id.get(station_id)
        if status is None:
            missing.append(station_id)
            continue

        reported = parse_timestamp(status.get("last_reported"))
        merged.append({
            "id": station_id,
            "name": station.get("name"),
            "latitude": station.get("lat"),
            "longitude": station.get("lon"),
            "capacity": station.get("capacity"),
            "bikes_available": status.get("num_bikes_available"),
            "docks_available": status.get("num_docks_available"),
            "is_installed": _flag(status.get("is_installed")),
            "is_renting": _flag(status.get("is_renting")),
            "is_returning": _flag(status.get("is_returning")),
            "last_reported": to_iso(reported) if reported else None,
        })

    return merged, missing


class GbfsFetcher(BaseFetcher):
    """Fetch and join GBFS station_information + station_status."""

    name = "gbfs"

    def __init__(self, base_url: str | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.base_url = (base_url or settings.gbfs_base_url).rstrip("/")

    def _stations(self, body: Any, feed: str) -> list[dict[str, Any]]:
        try:
            stations = body["data"]["stations"]
        except (KeyError, TypeError) as exc:
            raise FetchError(
                f"GBFS {feed} response has no data.stations array",
                url=f"{self.base_url}/{feed}",
                source_id=self.source_id,
            ) from exc
        if not isinstance(stations, list):
            raise FetchError(
                f"GBFS {feed} data.stations is not an array",
                url=f"{self.base_url}/{feed}",
                source_id=self.source_id,
            )
        return stations

    async def fetch(self) -> list[dict[str, Any]]:
        async with self._client() as client:
            info_body, status_body = await asyncio.gather(
                self._get_json(client, f"{self.base_url}/station_information"),
                self._get_json(client, f"{self.base_url}/station_status"),
                return_exceptions=True,
            )
        for result in (info_body, status_body):
            if isinstance(result, BaseException):
                raise result

        merged, missing = join_station_feeds(
            self._stations(info_body, "station_information"),
            self._stations(status_body, "station_status"),
        )
        for station_id in missing:
            self._log.warning("station_status_missing", station_id=station_id)

        self._log.info("fetch_complete", stations=len(merged), dropped=len(missing))
        return merged
