"""
validation/rules.py — Individual feature checks.

Hard checks (structural_errors) decide whether a feature is usable at all.
Soft checks return operator-visible warnings and never reject a feature:
open-data feeds occasionally carry stale or odd rows that should still be
displayed, flagged.

Every message starts with "Feature <index>:" so it can be traced back to the
input position.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping
from datetime import datetime, timedelta
from typing import Any

from pulse_shared.geo import BoundingBox, to_float
from pulse_shared.models.plugin import CapacityRule, RangeRule, StalenessRule
from pulse_shared.time_utils import is_stale, parse_timestamp, to_iso


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _position_error(position: Any) -> str | None:
    if not isinstance(position, (list, tuple)) or len(position) != 2:
        return "coordinate pair must have exactly 2 elements"
    lon, lat = position
    if not (_is_number(lon) and _is_number(lat)):
        return "coordinates must be finite numbers"
    if not (-180 <= lon <= 180 and -90 <= lat <= 90):
        return f"coordinates ({lon}, {lat}) outside world range"
    return None


def iter_positions(geometry: Mapping[str, Any]) -> Iterator[tuple[float, float]]:
    coords = geometry.get("coordinates")
    if geometry.get("type") == "Point":
        yield coords[0], coords[1]
    else:
        for lon, lat in coords:
            yield lon, lat


# ---------------------------------------------------------------------------
# Hard checks
# ---------------------------------------------------------------------------


def structural_errors(
    feature: Any,
    index: int,
    required_properties: list[str],
) -> list[str]:
    """Return hard failures for one feature; empty means structurally sound."""
    prefix = f"Feature {index}:"
    if not isinstance(feature, Mapping) or feature.get("type") != "Feature":
        return [f"{prefix} invalid feature type"]

    geometry = feature.get("geometry")
    if not isinstance(geometry, Mapping):
        return [f"{prefix} missing geometry"]

    errors: list[str] = []
    geometry_type = geometry.get("type")
    coords = geometry.get("coordinates")
    if geometry_type == "Point":
        problem = _position_error(coords)
        if problem:
            errors.append(f"{prefix} {problem}")
    elif geometry_type == "LineString":
        if not isinstance(coords, (list, tuple)) or len(coords) < 2:
            errors.append(f"{prefix} LineString needs at least 2 positions")
        else:
            for position in coords:
                problem = _position_error(position)
                if problem:
                    errors.append(f"{prefix} {problem}")
                    break
    else:
        errors.append(f"{prefix} unsupported geometry type {geometry_type!r}")

    properties = feature.get("properties")
    if properties is not None and not isinstance(properties, Mapping):
        errors.append(f"{prefix} properties must be an object")
    elif required_properties:
        if properties is None:
            errors.append(f"{prefix} missing properties")
        else:
            for name in required_properties:
                value = properties.get(name)
                if value is None or value == "":
                    errors.append(f"{prefix} missing required property '{name}'")
    return errors


# ---------------------------------------------------------------------------
# Soft checks
# ---------------------------------------------------------------------------


def bounds_warning(
    geometry: Mapping[str, Any],
    index: int,
    bounds: BoundingBox,
) -> str | None:
    """At most one warning per feature, naming the first outlying position."""
    for lon, lat in iter_positions(geometry):
        if not bounds.contains(lon, lat):
            return (
                f"Feature {index}: coordinates ({lat:.4f}, {lon:.4f}) "
                "outside service area"
            )
    return None


def range_warnings(
    props: Mapping[str, Any],
    index: int,
    ranges: Mapping[str, RangeRule],
) -> list[str]:
    warnings: list[str] = []
    for name, rule in ranges.items():
        raw = props.get(name)
        if raw is None or raw == "":
            continue
        value = to_float(raw)
        if value is None:
            warnings.append(f"Feature {index}: invalid {name} value {raw!r}")
        elif not rule.contains(value):
            warnings.append(
                f"Feature {index}: {name} {value:g}{rule.unit} outside expected range"
            )
    return warnings


def enum_warnings(
    props: Mapping[str, Any],
    index: int,
    enums: Mapping[str, list[str]],
) -> list[str]:
    warnings: list[str] = []
    for name, allowed in enums.items():
        value = props.get(name)
        if value is None or value == "":
            continue
        if str(value) not in allowed:
            warnings.append(f"Feature {index}: unusual {name} value {value!r}")
    return warnings


def capacity_warnings(
    props: Mapping[str, Any],
    index: int,
    rule: CapacityRule,
) -> list[str]:
    capacity = to_float(props.get(rule.capacity_field))
    counts = [to_float(props.get(f)) for f in rule.count_fields]
    if capacity is None or capacity <= 0 or any(c is None for c in counts):
        return []
    total = sum(c for c in counts if c is not None)
    if total > capacity + rule.upper_tolerance:
        return [
            f"Feature {index}: total {total:g} exceeds capacity {capacity:g}"
        ]
    if total < capacity - rule.lower_tolerance:
        return [
            f"Feature {index}: total {total:g} significantly below capacity {capacity:g}"
        ]
    return []


def staleness_warning(
    props: Mapping[str, Any],
    index: int,
    rule: StalenessRule,
    now: datetime,
) -> str | None:
    raw = props.get(rule.field)
    if raw is None or raw == "":
        return None
    ts = parse_timestamp(raw)
    if ts is None:
        return f"Feature {index}: invalid {rule.field} timestamp {raw!r}"
    if is_stale(ts, timedelta(seconds=rule.max_age_s), now):
        return f"Feature {index}: data is stale ({rule.field} {to_iso(ts)})"
    return None


def station_status_warnings(props: Mapping[str, Any], index: int) -> list[str]:
    warnings: list[str] = []
    renting, returning = props.get("is_renting"), props.get("is_returning")
    if props.get("is_installed") and not renting and not returning:
        warnings.append(f"Feature {index}: station is installed but not operational")
    if props.get("bikes_available") == 0 and renting:
        warnings.append(
            f"Feature {index}: no bikes available but station is accepting rentals"
        )
    if props.get("docks_available") == 0 and returning:
        warnings.append(
            f"Feature {index}: no docks available but station is accepting returns"
        )
    return warnings
