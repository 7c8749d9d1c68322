"""
plugins/loader.py — Build plugins from JSON source descriptors.

Built-in descriptors ship as package data under ``plugins/sources/``; an
extra directory can be supplied with ``PULSE_SOURCES_DIR``. A descriptor in
the extra directory overrides a built-in one with the same id.

Usage:
    from pulse_pipeline.plugins.loader import load_builtin_plugins
    registry = PluginRegistry()
    await load_builtin_plugins(registry)

    config = load_source_config(Path("my-source.json"))
    plugin = build_plugin(config)
"""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from pulse_pipeline.exceptions import ConfigError
from pulse_pipeline.plugins.base import DataSourcePlugin
from pulse_pipeline.plugins.registry import PluginRegistry
from pulse_pipeline.sources.base import BaseFetcher
from pulse_pipeline.sources.ckan import CkanDatastoreFetcher
from pulse_pipeline.sources.gbfs import GbfsFetcher
from pulse_pipeline.sources.json_api import JsonApiFetcher
from pulse_pipeline.sources.nextbus import NextBusFetcher
from pulse_pipeline.transforms.transformer import GeoTransformer
from pulse_pipeline.validation.validator import FeatureValidator
from pulse_shared.config import Settings, settings
from pulse_shared.constants import TTC_MAJOR_ROUTES
from pulse_shared.models.plugin import SourceConfig
from pulse_shared.time_utils import Clock, utc_now

log = structlog.get_logger(__name__)

BUILTIN_PACKAGE = "pulse_pipeline.plugins"
BUILTIN_DIR = "sources"


# ---------------------------------------------------------------------------
# Descriptor parsing
# ---------------------------------------------------------------------------


def _flatten_errors(exc: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}"
        for err in exc.errors()
    ]


def parse_source_config(data: Any, *, origin: str = "<memory>") -> SourceConfig:
    """
    Validate a decoded descriptor document.

    Raises:
        ConfigError: With one ``path: message`` line per schema violation.
    """
    try:
        return SourceConfig.model_validate(data)
    except ValidationError as exc:
        problems = _flatten_errors(exc)
        source_id = data.get("metadata", {}).get("id") if isinstance(data, dict) else None
        raise ConfigError(
            f"Invalid source descriptor {origin}:\n  " + "\n  ".join(problems),
            source_id=source_id if isinstance(source_id, str) else None,
        ) from exc


def load_source_config(path: Path | str) -> SourceConfig:
    """Read and validate one JSON descriptor file."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read source descriptor {path}: {exc}") from exc
    except ValueError as exc:
        raise ConfigError(f"Source descriptor {path} is not valid JSON: {exc}") from exc
    return parse_source_config(data, origin=str(path))


def builtin_configs() -> list[SourceConfig]:
    """All descriptors shipped with the package, sorted by id."""
    root = resources.files(BUILTIN_PACKAGE).joinpath(BUILTIN_DIR)
    configs = [
        parse_source_config(json.loads(entry.read_text(encoding="utf-8")), origin=entry.name)
        for entry in root.iterdir()
        if entry.name.endswith(".json")
    ]
    return sorted(configs, key=lambda c: c.metadata.id)


def directory_configs(directory: Path) -> list[SourceConfig]:
    return [load_source_config(p) for p in sorted(directory.glob("*.json"))]


# ---------------------------------------------------------------------------
# Plugin construction
# ---------------------------------------------------------------------------


def build_fetcher(
    config: SourceConfig,
    *,
    app_settings: Settings = settings,
    clock: Clock = utc_now,
) -> BaseFetcher:
    """Map a descriptor's api block onto a concrete fetcher."""
    api = config.api
    common: dict[str, Any] = {
        "timeout": api.timeout_s or app_settings.http_timeout_s,
        "source_id": config.metadata.id,
    }
    if api.headers:
        common["headers"] = api.headers

    if api.kind == "json":
        return JsonApiFetcher(api.base_url, **common)
    if api.kind == "ckan_datastore":
        return CkanDatastoreFetcher(
            api.package_id,
            base_url=api.base_url or app_settings.ckan_base_url,
            limit=api.datastore_limit,
            **common,
        )
    if api.kind == "gbfs":
        return GbfsFetcher(api.base_url or app_settings.gbfs_base_url, **common)
    if api.kind == "nextbus_xml":
        return NextBusFetcher(
            api.base_url or app_settings.nextbus_url,
            routes=api.routes or TTC_MAJOR_ROUTES,
            max_concurrency=app_settings.max_concurrent_requests,
            clock=clock,
            **common,
        )
    raise ConfigError(f"Unknown fetcher kind {api.kind!r}", source_id=config.metadata.id)


def build_plugin(
    config: SourceConfig,
    *,
    app_settings: Settings = settings,
    clock: Clock = utc_now,
) -> DataSourcePlugin:
    source_id = config.metadata.id
    return DataSourcePlugin(
        metadata=config.metadata,
        fetcher=build_fetcher(config, app_settings=app_settings, clock=clock),
        transformer=GeoTransformer(source_id, config.transform),
        validator=FeatureValidator(
            source_id,
            config.validation,
            bounds=app_settings.service_area,
            clock=clock,
        ),
        config=config,
        clock=clock,
    )


async def load_builtin_plugins(
    registry: PluginRegistry,
    *,
    app_settings: Settings = settings,
    clock: Clock = utc_now,
) -> list[DataSourcePlugin]:
    """
    Build and register every built-in plugin plus any from ``sources_dir``.

    Returns:
        The registered plugins, in registration order.
    """
    configs = {c.metadata.id: c for c in builtin_configs()}
    if app_settings.sources_dir is not None:
        for config in directory_configs(app_settings.sources_dir):
            if config.metadata.id in configs:
                log.info("descriptor_overridden", source_id=config.metadata.id)
            configs[config.metadata.id] = config

    plugins: list[DataSourcePlugin] = []
    for config in configs.values():
        plugin = build_plugin(config, app_settings=app_settings, clock=clock)
        await registry.register(plugin)
        plugins.append(plugin)
    log.info("plugins_loaded", count=len(plugins))
    return plugins
