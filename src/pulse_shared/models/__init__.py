"""
pulse_shared.models — Pydantic models shared by the pipeline and tooling.

These models are used by:
- pulse_pipeline.transforms: build the feature collection for one refresh
- pulse_pipeline.validation: report errors and warnings
- pulse_pipeline.plugins: parse per-source JSON descriptors
- pulse_pipeline.scaffold: consume discovery output
"""

from pulse_shared.models.dataset import DatasetMetadata, FieldInfo
from pulse_shared.models.geojson import (
    FeatureCollection,
    GeoFeature,
    LineStringGeometry,
    PointGeometry,
)
from pulse_shared.models.plugin import (
    ApiConfig,
    CacheConfig,
    CapacityRule,
    DedupConfig,
    PluginMetadata,
    RangeRule,
    SourceConfig,
    StalenessRule,
    TransformConfig,
    ValidationConfig,
    VisualizationConfig,
)
from pulse_shared.models.validation import ValidationResult

__all__ = [
    "PointGeometry",
    "LineStringGeometry",
    "GeoFeature",
    "FeatureCollection",
    "ValidationResult",
    "PluginMetadata",
    "ApiConfig",
    "TransformConfig",
    "DedupConfig",
    "ValidationConfig",
    "RangeRule",
    "CapacityRule",
    "StalenessRule",
    "VisualizationConfig",
    "CacheConfig",
    "SourceConfig",
    "DatasetMetadata",
    "FieldInfo",
]
