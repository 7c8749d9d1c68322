"""
service.py — Run registered plugins and track per-source health.

PluginDataService is the entry point a host uses to refresh layers. It runs
plugins on demand, records per-source metrics, and derives a health status
from error rate and data freshness. Scheduling and caching belong to the
host; nothing here keeps data between calls.

Health thresholds:
  error rate      > 0.5 unhealthy, > 0.2 degraded
  last success    > 5 × refresh interval unhealthy, > 2 × degraded
  response time   average > 10 s degraded

Usage:
    service = PluginDataService(registry)
    result = await service.fetch_data("bike-share-toronto")
    results = await service.fetch_many(["ttc-vehicles", "road-restrictions"])
    service.health_status("ttc-vehicles").status   # "healthy"
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

import structlog

from pulse_pipeline.exceptions import PluginNotFoundError, PulseError
from pulse_pipeline.plugins.base import PipelineResult
from pulse_pipeline.plugins.registry import PluginRegistry
from pulse_shared.time_utils import Clock, utc_now

log = structlog.get_logger(__name__)

HealthLevel = Literal["healthy", "degraded", "unhealthy"]

UNHEALTHY_ERROR_RATE = 0.5
DEGRADED_ERROR_RATE = 0.2
UNHEALTHY_STALE_FACTOR = 5
DEGRADED_STALE_FACTOR = 2
SLOW_RESPONSE_MS = 10_000


@dataclass
class SourceMetrics:
    """Running counters for one source."""

    source_id: str
    fetch_count: int = 0
    error_count: int = 0
    valid_count: int = 0
    total_response_ms: int = 0
    last_successful_fetch: datetime | None = None
    last_error: str | None = None

    @property
    def avg_response_ms(self) -> float:
        return self.total_response_ms / self.fetch_count if self.fetch_count else 0.0

    @property
    def error_rate(self) -> float:
        return self.error_count / self.fetch_count if self.fetch_count else 0.0

    @property
    def data_quality_score(self) -> float:
        """Share of runs whose output validated."""
        return self.valid_count / self.fetch_count if self.fetch_count else 1.0


@dataclass
class HealthStatus:
    status: HealthLevel
    last_check: datetime
    issues: list[str] = field(default_factory=list)


class PluginDataService:
    def __init__(self, registry: PluginRegistry, *, clock: Clock = utc_now) -> None:
        self.registry = registry
        self._clock = clock
        self._metrics: dict[str, SourceMetrics] = {}

    # ------------------------------------------------------------------
    # Running plugins
    # ------------------------------------------------------------------

    async def fetch_data(self, plugin_id: str) -> PipelineResult:
        """
        Run one plugin and record its metrics.

        Raises:
            PluginNotFoundError: No plugin is registered under ``plugin_id``.
            FetchError / TransformError: Propagated from the plugin after the
                failure has been counted.
        """
        plugin = self.registry.get(plugin_id)
        started = time.monotonic()
        try:
            result = await plugin.run()
        except PulseError as exc:
            self._record(plugin_id, started, success=False, error=exc.message)
            raise
        self._record(plugin_id, started, success=True, valid=result.valid)
        return result

    async def fetch_many(self, plugin_ids: list[str]) -> dict[str, PipelineResult]:
        """
        Run several plugins concurrently.

        Failed plugins are logged and left out of the returned mapping.
        """

        async def _one(plugin_id: str) -> PipelineResult | None:
            try:
                return await self.fetch_data(plugin_id)
            except PulseError as exc:
                log.warning("source_fetch_failed", source_id=plugin_id, error=exc.message)
                return None

        results = await asyncio.gather(*(_one(pid) for pid in plugin_ids))
        return {
            pid: result for pid, result in zip(plugin_ids, results) if result is not None
        }

    def _record(
        self,
        plugin_id: str,
        started: float,
        *,
        success: bool,
        valid: bool = False,
        error: str | None = None,
    ) -> None:
        metrics = self._metrics.setdefault(plugin_id, SourceMetrics(source_id=plugin_id))
        metrics.fetch_count += 1
        metrics.total_response_ms += int((time.monotonic() - started) * 1000)
        if success:
            metrics.last_successful_fetch = self._clock()
            if valid:
                metrics.valid_count += 1
        else:
            metrics.error_count += 1
            metrics.last_error = error

    # ------------------------------------------------------------------
    # Metrics & health
    # ------------------------------------------------------------------

    def metrics(self, plugin_id: str) -> SourceMetrics | None:
        return self._metrics.get(plugin_id)

    def all_metrics(self) -> dict[str, SourceMetrics]:
        return dict(self._metrics)

    def health_status(self, plugin_id: str) -> HealthStatus:
        now = self._clock()
        try:
            plugin = self.registry.get(plugin_id)
        except PluginNotFoundError:
            return HealthStatus("unhealthy", now, ["Plugin not found"])

        metrics = self._metrics.get(plugin_id)
        if metrics is None:
            return HealthStatus("unhealthy", now, ["No metrics available"])

        issues: list[str] = []
        status: HealthLevel = "healthy"

        if metrics.error_rate > UNHEALTHY_ERROR_RATE:
            issues.append("High error rate")
            status = "unhealthy"
        elif metrics.error_rate > DEGRADED_ERROR_RATE:
            issues.append("Moderate error rate")
            status = "degraded"

        interval_ms = plugin.metadata.refresh_interval_ms
        if metrics.last_successful_fetch is None:
            issues.append("No successful fetch")
            status = "unhealthy"
        else:
            since_ms = (now - metrics.last_successful_fetch).total_seconds() * 1000
            if since_ms > interval_ms * UNHEALTHY_STALE_FACTOR:
                issues.append("Stale data")
                status = "unhealthy"
            elif since_ms > interval_ms * DEGRADED_STALE_FACTOR:
                issues.append("Data may be stale")
                if status == "healthy":
                    status = "degraded"

        if metrics.avg_response_ms > SLOW_RESPONSE_MS:
            issues.append("Slow response times")
            if status == "healthy":
                status = "degraded"

        return HealthStatus(status, now, issues)

    def all_health(self) -> dict[str, HealthStatus]:
        return {pid: self.health_status(pid) for pid in self.registry.ids()}
