"""
transforms/transformer.py — Generic raw payload → FeatureCollection transform.

One GeoTransformer per source, parameterized by the descriptor's transform
block rather than a bespoke class per dataset:

  1. unwrap   — locate the record array (envelope.py)
  2. filter   — drop records failing ``require_truthy``
  3. locate   — ordered geometry strategies (geometry.py); unresolved
                records are dropped or defaulted to (0, 0) per the
                descriptor, never both within one transformer
  4. describe — copy fields and overlay normalized properties (properties.py)
  5. dedup    — optional newest-per-entity reduction (dedup.py)

Pure and synchronous: the same payload always yields the same collection.

Usage:
    transformer = GeoTransformer("red-light-cameras", config.transform)
    collection = transformer.transform(payload)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from pulse_pipeline.transforms.dedup import latest_per_entity
from pulse_pipeline.transforms.envelope import unwrap_records
from pulse_pipeline.transforms.geometry import GeometryResolver
from pulse_pipeline.transforms.properties import build_properties
from pulse_shared.constants import SENTINEL_COORDINATES
from pulse_shared.models.geojson import FeatureCollection, GeoFeature, PointGeometry
from pulse_shared.models.plugin import TransformConfig

log = structlog.get_logger(__name__)


class GeoTransformer:
    """Map one source's raw payload into the shared feature model."""

    def __init__(self, source_id: str, config: TransformConfig | None = None) -> None:
        self.source_id = source_id
        self.config = config or TransformConfig()
        self._resolver = GeometryResolver(self.config, source_id)
        self._log = log.bind(source_id=source_id)

    def _passes_filters(self, record: Mapping[str, Any]) -> bool:
        return all(record.get(field) for field in self.config.require_truthy)

    def transform(self, payload: Any) -> FeatureCollection:
        """
        Transform a raw payload.

        Args:
            payload: Parsed response body from the source's fetcher.

        Returns:
            FeatureCollection, possibly empty.

        Raises:
            TransformError: If the payload cannot be reduced to records.
        """
        records = unwrap_records(payload, self.config.envelope, source_id=self.source_id)

        features: list[GeoFeature] = []
        filtered = unresolved = defaulted = 0

        for index, record in enumerate(records):
            if not isinstance(record, Mapping):
                self._log.warning(
                    "record_not_object",
                    record_index=index,
                    record_type=type(record).__name__,
                )
                unresolved += 1
                continue
            if not self._passes_filters(record):
                filtered += 1
                continue

            geometry = self._resolver.resolve(record, index)
            if geometry is None:
                if self.config.unresolved == "default":
                    self._log.warning("record_geometry_defaulted", record_index=index)
                    geometry = PointGeometry(coordinates=SENTINEL_COORDINATES)
                    defaulted += 1
                else:
                    self._log.debug("record_geometry_unresolved", record_index=index)
                    unresolved += 1
                    continue

            properties = build_properties(
                record, source_id=self.source_id, index=index, config=self.config
            )
            features.append(GeoFeature(geometry=geometry, properties=properties))

        before_dedup = len(features)
        if self.config.dedup is not None:
            features = latest_per_entity(
                features,
                self.config.dedup.key_fields,
                self.config.dedup.date_fields,
            )

        self._log.info(
            "transform_complete",
            records=len(records),
            features=len(features),
            filtered=filtered,
            unresolved=unresolved,
            defaulted=defaulted,
            deduplicated=before_dedup - len(features),
        )
        return FeatureCollection(features=features)
