"""
pulse_pipeline — data-source pipeline for the Toronto Pulse dashboard.

Architecture:
  sources/     — fetchers for upstream feeds (JSON, CKAN datastore, GBFS, NextBus XML)
  transforms/  — raw payload → GeoJSON feature collection (geometry strategies,
                 property construction, deduplication)
  validation/  — structural checks (errors) and plausibility checks (warnings)
  plugins/     — fetcher + transformer + validator bundles, registry, JSON loader
  service.py   — runs plugins on demand and tracks per-source health
  scaffold.py  — source descriptor generator from dataset discovery output
  utils/       — structlog configuration, exponential-backoff retry decorator

Quick start:
    import asyncio
    from pulse_pipeline.plugins import PluginRegistry, load_builtin_plugins

    async def main():
        registry = PluginRegistry()
        await load_builtin_plugins(registry)
        return await registry.get("bike-share-toronto").run()

    result = asyncio.run(main())

CLI:
    pulse list
    pulse run ttc-vehicles --json

Shared code from pulse_shared:
    from pulse_shared.config import settings
    from pulse_shared.models import FeatureCollection, SourceConfig, ValidationResult
    from pulse_shared.constants import TORONTO_BEACHES, TTC_MAJOR_ROUTES
"""

__version__ = "0.1.0"
