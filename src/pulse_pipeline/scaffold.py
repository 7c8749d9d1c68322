"""
scaffold.py — Generate a source descriptor from catalog-discovery output.

Given a DatasetMetadata document (fields with inferred semantic types plus a
detected geographic strategy), produce a SourceConfig that the loader can
build into a working plugin. The result is a starting point: ids, templates
and validation rules are derived mechanically and meant to be reviewed.

Usage:
    dataset = DatasetMetadata.model_validate_json(path.read_text())
    config = generate_source_config(dataset, domain="infrastructure")
    write_source_config(config, Path("sources/"))
"""

from __future__ import annotations

import json
import re
from pathlib import Path

import structlog

from pulse_shared.constants import Domain, GeoStrategy, Reliability
from pulse_shared.models.dataset import DatasetMetadata, FieldInfo
from pulse_shared.models.plugin import (
    ApiConfig,
    CacheConfig,
    LayerHint,
    PluginMetadata,
    PopupHint,
    SourceConfig,
    StalenessRule,
    TransformConfig,
    ValidationConfig,
    VisualizationConfig,
)

log = structlog.get_logger(__name__)

DEFAULT_REFRESH_INTERVAL_MS = 300_000
MAX_ENUM_VALUES = 10
POPUP_FIELD_COUNT = 5

DOMAIN_COLORS: dict[str, str] = {
    "transportation": "#2563eb",
    "infrastructure": "#dc2626",
    "environment": "#16a34a",
    "events": "#ea580c",
}

_GEOMETRY_PLANS: dict[str, list[GeoStrategy]] = {
    "embedded": ["embedded", "fields"],
    "fields": ["fields"],
    "lookup": ["lookup"],
    "polyline": ["polyline", "fields"],
}


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "source"


def _names(fields: list[FieldInfo]) -> list[str]:
    return [f.name for f in fields]


def _enum_values(field: FieldInfo) -> list[str] | None:
    values = sorted({str(v) for v in field.sample_values if v is not None and v != ""})
    if not values or len(values) > MAX_ENUM_VALUES:
        return None
    return values


def _transform_block(dataset: DatasetMetadata) -> TransformConfig:
    plan = _GEOMETRY_PLANS.get(dataset.geo_strategy)
    if plan is None:
        log.warning("scaffold_no_geo_strategy", dataset_id=dataset.id)
        plan = ["embedded", "fields"]

    overrides: dict[str, object] = {"geometry": plan}
    if lat := _names(dataset.fields_of("latitude")):
        overrides["latitude_fields"] = lat
    if lon := _names(dataset.fields_of("longitude")):
        overrides["longitude_fields"] = lon
    if geom := _names(dataset.fields_of("geometry")):
        overrides["geometry_fields"] = geom
    if poly := _names(dataset.fields_of("polyline")):
        overrides["polyline_fields"] = poly
    if ids := _names(dataset.fields_of("identifier")):
        overrides["id_fields"] = ids
    if "lookup" in plan:
        overrides["lookup_table"] = "toronto_beaches"
        overrides["lookup_fields"] = _names(dataset.fields_of("location_name")) or ["name"]

    names = _names(dataset.fields_of("name")) or _names(dataset.fields_of("location_name"))
    if names:
        overrides["title_template"] = "{" + names[0] + "}"
    return TransformConfig.model_validate(overrides)


def _validation_block(dataset: DatasetMetadata, refresh_interval_ms: int) -> ValidationConfig:
    enums: dict[str, list[str]] = {}
    for field in dataset.fields_of("category"):
        values = _enum_values(field)
        if values:
            enums[field.name] = values

    staleness = None
    timestamps = dataset.fields_of("timestamp")
    if timestamps:
        # Ten refresh cycles, never under a day
        max_age_s = max(86_400.0, refresh_interval_ms / 1000 * 10)
        staleness = StalenessRule(field=timestamps[0].name, max_age_s=max_age_s)

    return ValidationConfig(enums=enums, staleness=staleness)


def _layer_hint(geo_strategy: str, color: str) -> LayerHint:
    if geo_strategy == "polyline":
        return LayerHint(type="line", paint={"line-color": color, "line-width": 4})
    return LayerHint(
        type="circle",
        paint={
            "circle-radius": 6,
            "circle-color": color,
            "circle-stroke-width": 2,
            "circle-stroke-color": "#ffffff",
        },
    )


def generate_source_config(
    dataset: DatasetMetadata,
    *,
    domain: Domain = "infrastructure",
    refresh_interval_ms: int = DEFAULT_REFRESH_INTERVAL_MS,
    reliability: Reliability = "high",
    source_id: str | None = None,
) -> SourceConfig:
    """
    Build a descriptor for a CKAN datastore dataset.

    Args:
        dataset:             Discovery output for one dataset.
        domain:              Domain tag for the new source.
        refresh_interval_ms: How often the host should refresh the layer.
        reliability:         Reliability rating for the new source.
        source_id:           Plugin id; defaults to the slugified dataset id.

    Returns:
        A SourceConfig that passes schema validation.
    """
    plugin_id = source_id or slugify(dataset.id)
    metadata = PluginMetadata(
        id=plugin_id,
        name=dataset.title or dataset.id,
        domain=domain,
        description=dataset.description,
        refresh_interval_ms=refresh_interval_ms,
        reliability=reliability,
        author="Toronto Pulse CLI",
        data_license=dataset.license,
        api_documentation_url=dataset.access_url,
    )

    geo_types = {"latitude", "longitude", "geometry", "polyline"}
    popup_fields = [f.name for f in dataset.fields if f.semantic_type not in geo_types]

    config = SourceConfig(
        metadata=metadata,
        api=ApiConfig(kind="ckan_datastore", package_id=dataset.id),
        transform=_transform_block(dataset),
        validation=_validation_block(dataset, refresh_interval_ms),
        visualization=VisualizationConfig(
            layer=_layer_hint(dataset.geo_strategy, DOMAIN_COLORS.get(domain, "#6b7280")),
            popup=PopupHint(
                template=f"{plugin_id}-popup",
                fields=popup_fields[:POPUP_FIELD_COUNT],
            ),
        ),
        cache=CacheConfig(key=plugin_id, ttl_ms=refresh_interval_ms),
    )
    log.info(
        "scaffold_generated",
        source_id=plugin_id,
        geo_strategy=dataset.geo_strategy,
        enums=len(config.validation.enums),
    )
    return config


def write_source_config(config: SourceConfig, out_dir: Path) -> Path:
    """Write ``<id>.json`` into ``out_dir`` and return its path."""
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"{config.metadata.id}.json"
    payload = config.model_dump(mode="json", exclude_none=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    log.info("scaffold_written", path=str(path))
    return path
