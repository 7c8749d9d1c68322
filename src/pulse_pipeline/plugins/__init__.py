"""
pulse_pipeline.plugins — data-source plugins and their registry.

Each plugin bundles one fetcher, one transformer and one validator with
static metadata, built from a JSON descriptor:

    from pulse_pipeline.plugins import PluginRegistry, load_builtin_plugins

    registry = PluginRegistry()
    await load_builtin_plugins(registry)
    result = await registry.get("red-light-cameras").run()
"""

from pulse_pipeline.plugins.base import DataSourcePlugin, PipelineResult
from pulse_pipeline.plugins.loader import (
    build_fetcher,
    build_plugin,
    builtin_configs,
    load_builtin_plugins,
    load_source_config,
    parse_source_config,
)
from pulse_pipeline.plugins.registry import PluginRegistry

__all__ = [
    "DataSourcePlugin",
    "PipelineResult",
    "PluginRegistry",
    "build_fetcher",
    "build_plugin",
    "builtin_configs",
    "load_builtin_plugins",
    "load_source_config",
    "parse_source_config",
]
