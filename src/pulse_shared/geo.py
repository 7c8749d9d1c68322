"""
geo.py — Coordinate parsing and plausibility helpers.

Open-data feeds describe location in several ways: an embedded GeoJSON
geometry (sometimes JSON-encoded as a string), explicit latitude/longitude
columns, a polyline string, or only a human-readable place name. These
helpers turn each of those into (lon, lat) pairs. Coordinate order is always
(lon, lat).

Usage:
    from pulse_shared.geo import BoundingBox, parse_embedded_point, to_float

    parse_embedded_point('{"type":"Point","coordinates":[-79.38,43.65]}')
    # (-79.38, 43.65)
    parse_polyline("[-79.46,43.67],[-79.45,43.66]")
    # [(-79.46, 43.67), (-79.45, 43.66)]
    BoundingBox(43.85, 43.58, -79.12, -79.64).contains(-79.38, 43.65)  # True
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

Coordinate = tuple[float, float]

_POLYLINE_PAIR = re.compile(r"\[([^\[\]]+)\]")


@dataclass(frozen=True)
class BoundingBox:
    """A lat/lon box used as a plausibility check, never a hard constraint."""

    north: float
    south: float
    east: float
    west: float

    def contains(self, lon: float, lat: float) -> bool:
        return self.south <= lat <= self.north and self.west <= lon <= self.east


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------


def to_float(value: Any) -> float | None:
    """Coerce a number or numeric string to a finite float, else None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str):
        try:
            result = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return result if math.isfinite(result) else None


def is_valid_coordinate(lon: Any, lat: Any) -> bool:
    """True if (lon, lat) are finite real numbers inside world ranges."""
    if isinstance(lon, bool) or isinstance(lat, bool):
        return False
    if not isinstance(lon, (int, float)) or not isinstance(lat, (int, float)):
        return False
    if not (math.isfinite(lon) and math.isfinite(lat)):
        return False
    return -180.0 <= lon <= 180.0 and -90.0 <= lat <= 90.0


def as_coordinate(lon: Any, lat: Any) -> Coordinate | None:
    lon_f, lat_f = to_float(lon), to_float(lat)
    if lon_f is None or lat_f is None or not is_valid_coordinate(lon_f, lat_f):
        return None
    return (lon_f, lat_f)


# ---------------------------------------------------------------------------
# Geometry encodings
# ---------------------------------------------------------------------------


def parse_embedded_point(value: Any) -> Coordinate | None:
    """
    Extract a Point's coordinates from an embedded geometry description.

    Args:
        value: A GeoJSON geometry mapping or its JSON-encoded string form.

    Returns:
        (lon, lat) when the geometry is a well-formed Point, else None.

    Raises:
        ValueError: If ``value`` is a string that is not valid JSON.
    """
    if isinstance(value, str):
        value = json.loads(value)
    if not isinstance(value, Mapping) or value.get("type") != "Point":
        return None
    coords = value.get("coordinates")
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        return None
    return as_coordinate(coords[0], coords[1])


def parse_polyline(text: Any) -> list[Coordinate]:
    """
    Parse a ``"[lon,lat],[lon,lat],..."`` string into coordinate pairs.

    Pairs that do not contain two valid numbers are skipped.
    """
    if not isinstance(text, str) or not text.strip():
        return []
    pairs: list[Coordinate] = []
    for match in _POLYLINE_PAIR.finditer(text):
        parts = match.group(1).split(",")
        if len(parts) < 2:
            continue
        coord = as_coordinate(parts[0], parts[1])
        if coord is not None:
            pairs.append(coord)
    return pairs


def lookup_location(
    name: Any,
    table: Mapping[str, Coordinate],
) -> Coordinate | None:
    """Resolve a place name via a static table; exact match, then case-insensitive."""
    if not isinstance(name, str) or not name.strip():
        return None
    key = name.strip()
    if key in table:
        return table[key]
    folded = key.casefold()
    for known, coord in table.items():
        if known.casefold() == folded:
            return coord
    return None
