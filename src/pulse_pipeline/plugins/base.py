"""
plugins/base.py — A data-source plugin: fetcher + transformer + validator.

A plugin owns exactly one of each pipeline stage plus its static metadata,
and runs them in order:

    fetcher.fetch() → transformer.transform(payload) → validator.validate(fc)

Hard failures (FetchError, TransformError) are logged with timing and
re-raised; the caller decides whether to keep showing the previous cycle's
data. Soft issues travel in the PipelineResult's validation warnings.

The lifecycle hooks are extension points for resource acquisition and
release. They log and nothing else.

Usage:
    plugin = DataSourcePlugin(metadata, fetcher, transformer, validator)
    result = await plugin.run()
    if result.valid:
        render(result.validation.data)
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pulse_pipeline.exceptions import PulseError
from pulse_pipeline.sources.base import BaseFetcher
from pulse_pipeline.transforms.transformer import GeoTransformer
from pulse_pipeline.utils.logging import get_logger
from pulse_pipeline.validation.validator import FeatureValidator
from pulse_shared.models.geojson import FeatureCollection
from pulse_shared.models.plugin import PluginMetadata, SourceConfig
from pulse_shared.models.validation import ValidationResult
from pulse_shared.time_utils import Clock, utc_now

log = get_logger(__name__)


@dataclass
class PipelineResult:
    """Outcome of one fetch → transform → validate cycle."""

    source_id: str
    collection: FeatureCollection
    validation: ValidationResult
    duration_ms: int
    completed_at: datetime

    @property
    def valid(self) -> bool:
        return self.validation.valid

    @property
    def feature_count(self) -> int:
        return len(self.collection)


def _version_tuple(version: str) -> tuple[int, ...]:
    return tuple(int(part) for part in version.split("."))


class DataSourcePlugin:
    """One data source, wired end to end."""

    def __init__(
        self,
        metadata: PluginMetadata,
        fetcher: BaseFetcher,
        transformer: GeoTransformer,
        validator: FeatureValidator,
        config: SourceConfig | None = None,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self.metadata = metadata
        self.fetcher = fetcher
        self.transformer = transformer
        self.validator = validator
        self.config = config
        self.registered = False
        self._clock = clock
        self._log = log.bind(source_id=metadata.id)

    @property
    def id(self) -> str:
        return self.metadata.id

    def __repr__(self) -> str:
        return f"<DataSourcePlugin {self.metadata.id} v{self.metadata.version}>"

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def run(self) -> PipelineResult:
        """
        Run fetch → transform → validate once.

        Returns:
            PipelineResult with the transformed collection and its validation.

        Raises:
            FetchError: The upstream fetch failed.
            TransformError: The payload could not be reduced to records.
        """
        started = time.monotonic()
        self._log.info("pipeline_start", fetcher=self.fetcher.name)

        try:
            payload = await self.fetcher.fetch()
            fetched_ms = int((time.monotonic() - started) * 1000)

            collection = self.transformer.transform(payload)
            validation = self.validator.validate(collection)
        except PulseError as exc:
            self._log.error(
                "pipeline_failed",
                error=type(exc).__name__,
                message=exc.message,
                duration_ms=int((time.monotonic() - started) * 1000),
            )
            raise

        duration_ms = int((time.monotonic() - started) * 1000)
        self._log.info(
            "pipeline_complete",
            features=len(collection),
            valid=validation.valid,
            errors=len(validation.errors),
            warnings=len(validation.warnings),
            fetch_ms=fetched_ms,
            duration_ms=duration_ms,
        )
        return PipelineResult(
            source_id=self.metadata.id,
            collection=collection,
            validation=validation,
            duration_ms=duration_ms,
            completed_at=self._clock(),
        )

    async def fetch_data(self) -> FeatureCollection:
        """Run the pipeline and return only the transformed collection."""
        result = await self.run()
        return result.collection

    # ------------------------------------------------------------------
    # Lifecycle hooks
    # ------------------------------------------------------------------

    async def on_load(self) -> None:
        self._log.info("plugin_loaded", version=self.metadata.version)

    async def on_enable(self) -> None:
        self._log.info("plugin_enabled")

    async def on_disable(self) -> None:
        self._log.info("plugin_disabled")

    async def on_unload(self) -> None:
        self._log.info("plugin_unloaded")

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def info(self) -> dict[str, Any]:
        meta = self.metadata
        return {
            "id": meta.id,
            "name": meta.name,
            "domain": meta.domain,
            "version": meta.version,
            "reliability": meta.reliability,
            "refresh_interval_ms": meta.refresh_interval_ms,
            "tags": list(meta.tags),
            "data_license": meta.data_license,
            "fetcher": self.fetcher.name,
            "registered": self.registered,
        }

    def is_compatible_with(self, version: str) -> bool:
        """
        True when ``version`` shares this plugin's major version and is not
        newer than it.
        """
        try:
            wanted = _version_tuple(version)
            mine = _version_tuple(self.metadata.version)
        except ValueError:
            return False
        return wanted[0] == mine[0] and wanted <= mine
