"""
transforms/geometry.py — Per-record coordinate resolution strategies.

Strategies, tried in the order a source's descriptor lists them:
  embedded — a GeoJSON geometry (object or JSON string); Point only
  fields   — explicit latitude/longitude columns under common aliases
  lookup   — a human-readable place name in a static lookup table
  polyline — a "[lon,lat],[lon,lat]" string, becoming a LineString

A strategy that cannot parse its input (e.g. a malformed geometry string)
is logged and the next strategy is tried. Candidates outside world ranges
count as unresolved.

Usage:
    resolver = GeometryResolver(config.transform, source_id="red-light-cameras")
    geometry = resolver.resolve(record, index=0)   # PointGeometry | LineStringGeometry | None
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Optional, Union

import structlog

from pulse_shared.constants import LOOKUP_TABLES
from pulse_shared.geo import (
    as_coordinate,
    lookup_location,
    parse_embedded_point,
    parse_polyline,
    to_float,
)
from pulse_shared.models.geojson import LineStringGeometry, PointGeometry
from pulse_shared.models.plugin import TransformConfig

log = structlog.get_logger(__name__)

Geometry = Union[PointGeometry, LineStringGeometry]
Strategy = Callable[[Mapping[str, Any], TransformConfig], Optional[Geometry]]


def _first_populated(record: Mapping[str, Any], fields: list[str]) -> Any:
    for name in fields:
        value = record.get(name)
        if value is not None and value != "":
            return value
    return None


def _first_nonzero_number(record: Mapping[str, Any], fields: list[str]) -> float | None:
    # Upstream feeds use 0 as "unknown"; nothing in the service area sits at 0
    for name in fields:
        value = to_float(record.get(name))
        if value is not None and value != 0:
            return value
    return None


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def from_embedded(record: Mapping[str, Any], config: TransformConfig) -> Geometry | None:
    value = _first_populated(record, config.geometry_fields)
    if value is None:
        return None
    coord = parse_embedded_point(value)
    return PointGeometry(coordinates=coord) if coord else None


def from_fields(record: Mapping[str, Any], config: TransformConfig) -> Geometry | None:
    lat = _first_nonzero_number(record, config.latitude_fields)
    lon = _first_nonzero_number(record, config.longitude_fields)
    if lat is None or lon is None:
        return None
    coord = as_coordinate(lon, lat)
    return PointGeometry(coordinates=coord) if coord else None


def from_lookup(record: Mapping[str, Any], config: TransformConfig) -> Geometry | None:
    if config.lookup_table is None:
        return None
    name = _first_populated(record, config.lookup_fields)
    coord = lookup_location(name, LOOKUP_TABLES[config.lookup_table])
    return PointGeometry(coordinates=coord) if coord else None


def from_polyline(record: Mapping[str, Any], config: TransformConfig) -> Geometry | None:
    value = _first_populated(record, config.polyline_fields)
    coords = parse_polyline(value)
    if len(coords) < 2:
        return None
    return LineStringGeometry(coordinates=tuple(coords))


STRATEGIES: dict[str, Strategy] = {
    "embedded": from_embedded,
    "fields": from_fields,
    "lookup": from_lookup,
    "polyline": from_polyline,
}


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class GeometryResolver:
    """Apply a source's ordered strategy list to each record."""

    def __init__(self, config: TransformConfig, source_id: str) -> None:
        self._config = config
        self._strategies = [(name, STRATEGIES[name]) for name in config.geometry]
        self._log = log.bind(source_id=source_id)

    def resolve(self, record: Mapping[str, Any], index: int) -> Geometry | None:
        for name, strategy in self._strategies:
            try:
                geometry = strategy(record, self._config)
            except (ValueError, TypeError) as exc:
                self._log.warning(
                    "geometry_parse_failed",
                    record_index=index,
                    strategy=name,
                    error=str(exc),
                )
                continue
            if geometry is not None:
                return geometry
        return None
