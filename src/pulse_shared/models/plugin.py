"""
models/plugin.py — Pydantic models for per-source descriptors.

One JSON descriptor per data source declares everything the generic
fetch → transform → validate pipeline needs: static metadata, the fetcher
kind and endpoint, the transform strategies, and the validation rules.
Visualization and cache blocks are hints for the rendering layer and are
carried through untouched.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pulse_shared.constants import (
    DATE_FIELDS,
    DEFAULT_ENVELOPE_PATHS,
    GEOMETRY_FIELDS,
    ID_FIELDS,
    LATITUDE_FIELDS,
    LONGITUDE_FIELDS,
    LOOKUP_TABLES,
    POLYLINE_FIELDS,
    Domain,
    FetcherKind,
    GeoStrategy,
    OutputPolicy,
    Reliability,
    UnresolvedPolicy,
)

Enricher = Literal["bike_availability", "epoch_times"]


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


class PluginMetadata(BaseModel):
    """Static per-plugin descriptor. Immutable once the plugin is built."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, pattern=r"^[a-z0-9][a-z0-9-]*$")
    name: str = Field(min_length=1)
    domain: Domain
    version: str = Field(default="1.0.0", pattern=r"^\d+\.\d+\.\d+$")
    description: str = ""
    refresh_interval_ms: int = Field(ge=1000)
    reliability: Reliability
    tags: tuple[str, ...] = ()
    author: str = "Toronto Pulse"
    data_license: str = Field(min_length=1)
    api_documentation_url: str | None = None


# ---------------------------------------------------------------------------
# API block
# ---------------------------------------------------------------------------


class RateLimit(BaseModel):
    requests: int = Field(gt=0)
    window_s: float = Field(gt=0)


class ApiConfig(BaseModel):
    """Where and how to fetch. ``base_url`` falls back to settings per kind."""

    kind: FetcherKind = "json"
    base_url: str | None = None
    package_id: str | None = None
    datastore_limit: int = Field(default=32000, gt=0)
    routes: list[str] = Field(default_factory=list)
    headers: dict[str, str] = Field(default_factory=dict)
    timeout_s: float | None = Field(default=None, gt=0)
    rate_limit: RateLimit | None = None

    @model_validator(mode="after")
    def check_kind_requirements(self) -> "ApiConfig":
        if self.kind == "json" and not self.base_url:
            raise ValueError("api.base_url is required for kind 'json'")
        if self.kind == "ckan_datastore" and not self.package_id:
            raise ValueError("api.package_id is required for kind 'ckan_datastore'")
        return self


# ---------------------------------------------------------------------------
# Transform block
# ---------------------------------------------------------------------------


class DedupConfig(BaseModel):
    """Keep only the most recent record per entity."""

    key_fields: list[str] = Field(min_length=1)
    date_fields: list[str] = Field(default_factory=lambda: list(DATE_FIELDS))


class TransformConfig(BaseModel):
    envelope: list[str] = Field(default_factory=lambda: list(DEFAULT_ENVELOPE_PATHS))
    geometry: list[GeoStrategy] = Field(
        default_factory=lambda: ["embedded", "fields"], min_length=1
    )
    unresolved: UnresolvedPolicy = "drop"

    geometry_fields: list[str] = Field(default_factory=lambda: list(GEOMETRY_FIELDS))
    latitude_fields: list[str] = Field(default_factory=lambda: list(LATITUDE_FIELDS))
    longitude_fields: list[str] = Field(default_factory=lambda: list(LONGITUDE_FIELDS))
    polyline_fields: list[str] = Field(default_factory=lambda: list(POLYLINE_FIELDS))
    lookup_table: str | None = None
    lookup_fields: list[str] = Field(default_factory=lambda: ["name"])

    id_fields: list[str] = Field(default_factory=lambda: list(ID_FIELDS))
    require_truthy: list[str] = Field(default_factory=list)
    title_template: str | None = None
    description_template: str | None = None
    enrichers: list[Enricher] = Field(default_factory=list)
    epoch_fields: list[str] = Field(default_factory=list)
    dedup: DedupConfig | None = None

    @model_validator(mode="after")
    def check_lookup_table(self) -> "TransformConfig":
        if "lookup" in self.geometry:
            if self.lookup_table is None:
                raise ValueError("transform.lookup_table is required for the 'lookup' strategy")
            if self.lookup_table not in LOOKUP_TABLES:
                raise ValueError(
                    f"unknown lookup table {self.lookup_table!r}; "
                    f"known: {', '.join(sorted(LOOKUP_TABLES))}"
                )
        return self


# ---------------------------------------------------------------------------
# Validation block
# ---------------------------------------------------------------------------


class RangeRule(BaseModel):
    min: float | None = None
    max: float | None = None
    max_exclusive: bool = False
    unit: str = ""

    def contains(self, value: float) -> bool:
        if self.min is not None and value < self.min:
            return False
        if self.max is not None:
            if self.max_exclusive and value >= self.max:
                return False
            if value > self.max:
                return False
        return True


class CapacityRule(BaseModel):
    """available + occupied should approximate capacity."""

    capacity_field: str
    count_fields: list[str] = Field(min_length=1)
    upper_tolerance: int = Field(default=2, ge=0)
    lower_tolerance: int = Field(default=5, ge=0)


class StalenessRule(BaseModel):
    field: str
    max_age_s: float = Field(gt=0)


class ValidationConfig(BaseModel):
    output: OutputPolicy = "passthrough"
    check_bounds: bool = True
    required_properties: list[str] = Field(default_factory=list)
    ranges: dict[str, RangeRule] = Field(default_factory=dict)
    enums: dict[str, list[str]] = Field(default_factory=dict)
    capacity: CapacityRule | None = None
    staleness: StalenessRule | None = None
    station_status_checks: bool = False


# ---------------------------------------------------------------------------
# Rendering hints (passthrough)
# ---------------------------------------------------------------------------


class LayerHint(BaseModel):
    type: str
    paint: dict[str, Any] = Field(default_factory=dict)


class PopupHint(BaseModel):
    template: str
    fields: list[str] = Field(default_factory=list)


class VisualizationConfig(BaseModel):
    layer: LayerHint
    popup: PopupHint | None = None


class CacheConfig(BaseModel):
    key: str
    ttl_ms: int = Field(gt=0)
    storage: Literal["memory", "indexeddb", "localstorage"] = "memory"
    invalidation_rules: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Full descriptor
# ---------------------------------------------------------------------------


class SourceConfig(BaseModel):
    """One declarative configuration record per data source."""

    metadata: PluginMetadata
    api: ApiConfig
    transform: TransformConfig = Field(default_factory=TransformConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    visualization: VisualizationConfig | None = None
    cache: CacheConfig | None = None
