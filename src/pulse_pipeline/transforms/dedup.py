"""
transforms/dedup.py — Keep only the most recent reading per entity.

Some sources report several historical readings for the same physical
entity (e.g. one beach observation per day). Recency comes from the first
populated date-like property in a prioritized alias list; features are
ordered newest first, with unparsable or missing dates last, and the first
feature seen per entity key is kept. Sorting is stable, so the result is
deterministic for a given input.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pulse_shared.models.geojson import GeoFeature
from pulse_shared.time_utils import parse_timestamp


def record_timestamp(props: Mapping[str, Any], date_fields: list[str]) -> datetime | None:
    for field in date_fields:
        value = props.get(field)
        if value is not None and value != "":
            return parse_timestamp(value)
    return None


def entity_key(props: Mapping[str, Any], key_fields: list[str]) -> str | None:
    for field in key_fields:
        value = props.get(field)
        if value is not None and value != "":
            return str(value)
    return None


def latest_per_entity(
    features: list[GeoFeature],
    key_fields: list[str],
    date_fields: list[str],
) -> list[GeoFeature]:
    """
    Reduce features to the newest one per entity.

    Features without an entity key cannot be grouped and are all kept.
    """

    def sort_key(feature: GeoFeature) -> tuple[bool, float]:
        ts = record_timestamp(feature.properties, date_fields)
        return (ts is None, -ts.timestamp() if ts else 0.0)

    seen: set[str] = set()
    latest: list[GeoFeature] = []
    for feature in sorted(features, key=sort_key):
        key = entity_key(feature.properties, key_fields)
        if key is not None:
            if key in seen:
                continue
            seen.add(key)
        latest.append(feature)
    return latest
