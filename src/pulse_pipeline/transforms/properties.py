"""
transforms/properties.py — Feature property construction.

All original record fields are copied, then normalized fields are overlaid:
  id          — first populated id alias, else "<source_id>-<index>"
  layerId     — the source id
  title       — descriptor template, else the record's name-like field
  description — descriptor template, else a summary of known attributes

Named enrichers add derived fields for specific sources:
  bike_availability — status, availability_ratio, availability_category
  epoch_times       — epoch-millisecond fields rewritten as ISO strings
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

import structlog

from pulse_shared.geo import to_float
from pulse_shared.models.plugin import TransformConfig
from pulse_shared.time_utils import parse_timestamp, to_iso

log = structlog.get_logger(__name__)

_NAME_FIELDS = ("name", "NAME", "title", "beachName", "beach_name", "location", "LOCATION")

# (field, label template) in display order
_KNOWN_ATTRIBUTES: tuple[tuple[str, str], ...] = (
    ("waterTemp", "Water temp: {}°C"),
    ("airTemp", "Air temp: {}°C"),
    ("temperature", "Temperature: {}°C"),
    ("turbidity", "Turbidity: {}"),
    ("waveAction", "Wave action: {}"),
    ("windDirection", "Wind: {}"),
    ("rainfall", "Rainfall: {}"),
    ("status", "Status: {}"),
    ("Status", "Status: {}"),
)


class _BlankMissing(dict):
    def __missing__(self, key: str) -> str:
        return ""


def render_template(template: str, props: Mapping[str, Any]) -> str:
    """str.format_map where unknown keys render as empty strings."""
    values = _BlankMissing((k, "" if v is None else v) for k, v in props.items())
    return template.format_map(values).strip()


def describe(props: Mapping[str, Any]) -> str:
    """Build a one-line description from the known attributes present."""
    details: list[str] = []
    bikes, docks = props.get("bikes_available"), props.get("docks_available")
    if bikes is not None and docks is not None:
        details.append(f"{bikes} bikes, {docks} docks available")
    for field, label in _KNOWN_ATTRIBUTES:
        value = props.get(field)
        if value is not None and value != "":
            details.append(label.format(value))
    return ", ".join(details)


def default_title(props: Mapping[str, Any]) -> str:
    for field in _NAME_FIELDS:
        value = props.get(field)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return str(props.get("id", ""))


# ---------------------------------------------------------------------------
# Enrichers
# ---------------------------------------------------------------------------


def enrich_bike_availability(props: dict[str, Any], config: TransformConfig) -> None:
    bikes = to_float(props.get("bikes_available")) or 0.0
    capacity = to_float(props.get("capacity")) or 0.0
    props["status"] = (
        "active" if props.get("is_renting") and props.get("is_returning") else "inactive"
    )
    props["availability_ratio"] = bikes / capacity if capacity > 0 else 0.0
    if bikes == 0:
        category = "empty"
    elif bikes <= 2:
        category = "low"
    elif bikes <= 5:
        category = "medium"
    else:
        category = "high"
    props["availability_category"] = category


def enrich_epoch_times(props: dict[str, Any], config: TransformConfig) -> None:
    for field in config.epoch_fields:
        ts = parse_timestamp(props.get(field))
        props[field] = to_iso(ts) if ts else None


ENRICHERS: dict[str, Callable[[dict[str, Any], TransformConfig], None]] = {
    "bike_availability": enrich_bike_availability,
    "epoch_times": enrich_epoch_times,
}


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


def _identity(record: Mapping[str, Any], fields: list[str]) -> Any:
    for field in fields:
        value = record.get(field)
        if value is not None and value != "":
            return value
    return None


def build_properties(
    record: Mapping[str, Any],
    *,
    source_id: str,
    index: int,
    config: TransformConfig,
) -> dict[str, Any]:
    """
    Copy a record's fields and overlay the normalized properties.

    Args:
        record:    One raw record.
        source_id: Plugin id, used as layerId.
        index:     Record position, for fallback ids and log context.
        config:    The source's transform block.

    Returns:
        A new properties dict.
    """
    props: dict[str, Any] = dict(record)
    record_id = _identity(record, config.id_fields)
    props["id"] = record_id if record_id is not None else f"{source_id}-{index}"
    props["layerId"] = source_id

    for name in config.enrichers:
        ENRICHERS[name](props, config)

    title = description = None
    try:
        if config.title_template:
            title = render_template(config.title_template, props)
        if config.description_template:
            description = render_template(config.description_template, props)
    except (ValueError, KeyError, IndexError, TypeError, AttributeError) as exc:
        log.warning(
            "property_template_failed",
            source_id=source_id,
            record_index=index,
            error=str(exc),
        )
    props["title"] = title or default_title(props)
    props["description"] = description or describe(props)
    return props
