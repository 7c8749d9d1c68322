"""
validation/validator.py — Generic feature-collection validator.

One FeatureValidator per source, parameterized by the descriptor's
validation block. Hard failures go to ``errors``; plausibility issues
(service-area bounds, value ranges, enumerations, capacity arithmetic,
staleness) go to ``warnings`` and never flip ``valid``.

Output policy, chosen per source:
  passthrough — ``data`` is the untouched input; any per-feature hard
                failure is an error for the whole batch
  filter      — features that fail a hard check are dropped (each drop is
                reported as a warning) and ``data`` holds the survivors; the
                batch is valid as long as one feature survives

Usage:
    validator = FeatureValidator("bike-share-toronto", config.validation)
    result = validator.validate(collection)
    result.valid, result.errors, result.warnings
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from pulse_pipeline.validation import rules
from pulse_shared.config import settings
from pulse_shared.geo import BoundingBox
from pulse_shared.models.geojson import FeatureCollection
from pulse_shared.models.plugin import ValidationConfig
from pulse_shared.models.validation import ValidationResult
from pulse_shared.time_utils import Clock, utc_now

log = structlog.get_logger(__name__)

EMPTY_WARNING = "no features found"


class FeatureValidator:
    """Check structure and plausibility of one source's feature collection."""

    def __init__(
        self,
        source_id: str,
        config: ValidationConfig | None = None,
        *,
        bounds: BoundingBox | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.source_id = source_id
        self.config = config or ValidationConfig()
        self.bounds = bounds or settings.service_area
        self._clock = clock
        self._log = log.bind(source_id=source_id)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def validate(self, data: Any) -> ValidationResult:
        """
        Validate a FeatureCollection model or a GeoJSON mapping.

        Args:
            data: Transformer output.

        Returns:
            ValidationResult with ``valid == (not errors)``.
        """
        if data is None:
            return ValidationResult.failed("Data is null", data=data)
        if isinstance(data, FeatureCollection):
            doc: Mapping[str, Any] = data.to_geojson()
        elif isinstance(data, Mapping):
            doc = data
        else:
            return ValidationResult.failed(
                f"Expected GeoJSON FeatureCollection, got {type(data).__name__}",
                data=data,
            )

        if doc.get("type") != "FeatureCollection":
            return ValidationResult.failed("Expected GeoJSON FeatureCollection", data=data)
        features = doc.get("features")
        if not isinstance(features, list):
            return ValidationResult.failed("Expected features array in GeoJSON", data=data)
        if not features:
            return ValidationResult(warnings=[EMPTY_WARNING], data=data)

        errors, warnings, kept = self._check_features(features)
        filtering = self.config.output == "filter"

        if filtering and not kept:
            errors.append(f"No valid features: all {len(features)} failed hard checks")

        result = ValidationResult(
            errors=errors,
            warnings=warnings,
            data=self._subset(data, doc, kept) if filtering else data,
        )
        self._log.info(
            "validation_complete",
            valid=result.valid,
            features=len(features),
            kept=len(kept),
            errors=len(errors),
            warnings=len(warnings),
        )
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_features(
        self,
        features: list[Any],
    ) -> tuple[list[str], list[str], list[int]]:
        cfg = self.config
        now = self._clock()
        errors: list[str] = []
        warnings: list[str] = []
        kept: list[int] = []

        for index, feature in enumerate(features):
            hard = rules.structural_errors(feature, index, cfg.required_properties)
            if hard:
                if cfg.output == "filter":
                    self._log.warning("feature_dropped", feature_index=index, reasons=hard)
                    warnings.append(f"Feature {index} dropped: " + "; ".join(
                        e.split(": ", 1)[-1] for e in hard
                    ))
                else:
                    errors.extend(hard)
                continue
            kept.append(index)

            props = feature.get("properties") or {}
            if cfg.check_bounds:
                outside = rules.bounds_warning(feature["geometry"], index, self.bounds)
                if outside:
                    warnings.append(outside)
            warnings.extend(rules.range_warnings(props, index, cfg.ranges))
            warnings.extend(rules.enum_warnings(props, index, cfg.enums))
            if cfg.capacity is not None:
                warnings.extend(rules.capacity_warnings(props, index, cfg.capacity))
            if cfg.staleness is not None:
                stale = rules.staleness_warning(props, index, cfg.staleness, now)
                if stale:
                    warnings.append(stale)
            if cfg.station_status_checks:
                warnings.extend(rules.station_status_warnings(props, index))

        return errors, warnings, kept

    @staticmethod
    def _subset(data: Any, doc: Mapping[str, Any], kept: list[int]) -> Any:
        if isinstance(data, FeatureCollection):
            return FeatureCollection(features=[data.features[i] for i in kept])
        features = doc["features"]
        return {**doc, "features": [features[i] for i in kept]}
