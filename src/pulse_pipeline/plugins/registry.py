"""
plugins/registry.py — In-process registry of data-source plugins.

The registry is the only place that flips a plugin's ``registered`` flag and
calls its load/unload hooks. Lookups by domain, tag and reliability drive
layer pickers and health dashboards.

Usage:
    registry = PluginRegistry()
    await registry.register(plugin)
    registry.get("bike-share-toronto")
    registry.by_domain("transportation")
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from typing import Any

import structlog

from pulse_pipeline.exceptions import PluginNotFoundError
from pulse_pipeline.plugins.base import DataSourcePlugin
from pulse_shared.constants import Domain, Reliability

log = structlog.get_logger(__name__)


class PluginRegistry:
    def __init__(self) -> None:
        self._plugins: dict[str, DataSourcePlugin] = {}

    def __len__(self) -> int:
        return len(self._plugins)

    def __contains__(self, plugin_id: object) -> bool:
        return plugin_id in self._plugins

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    async def register(self, plugin: DataSourcePlugin) -> None:
        """
        Register a plugin and run its load hook.

        Re-registering an id replaces the previous plugin, which is unloaded
        first.
        """
        existing = self._plugins.get(plugin.id)
        if existing is not None and existing is not plugin:
            log.warning("plugin_replaced", source_id=plugin.id)
            await self.unregister(plugin.id)

        self._plugins[plugin.id] = plugin
        plugin.registered = True
        await plugin.on_load()
        log.info("plugin_registered", source_id=plugin.id, total=len(self._plugins))

    async def unregister(self, plugin_id: str) -> DataSourcePlugin:
        plugin = self.get(plugin_id)
        await plugin.on_unload()
        del self._plugins[plugin_id]
        plugin.registered = False
        log.info("plugin_unregistered", source_id=plugin_id, total=len(self._plugins))
        return plugin

    async def clear(self) -> None:
        for plugin_id in list(self._plugins):
            await self.unregister(plugin_id)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, plugin_id: str) -> DataSourcePlugin:
        try:
            return self._plugins[plugin_id]
        except KeyError:
            raise PluginNotFoundError(
                f"No plugin registered with id '{plugin_id}'",
                source_id=plugin_id,
            ) from None

    def has(self, plugin_id: str) -> bool:
        return plugin_id in self._plugins

    def all(self) -> list[DataSourcePlugin]:
        return list(self._plugins.values())

    def ids(self) -> list[str]:
        return list(self._plugins)

    def by_domain(self, domain: Domain) -> list[DataSourcePlugin]:
        return [p for p in self._plugins.values() if p.metadata.domain == domain]

    def by_tags(self, tags: Iterable[str], *, match_all: bool = False) -> list[DataSourcePlugin]:
        wanted = set(tags)
        if match_all:
            return [p for p in self._plugins.values() if wanted <= set(p.metadata.tags)]
        return [p for p in self._plugins.values() if wanted & set(p.metadata.tags)]

    def by_reliability(self, reliability: Reliability) -> list[DataSourcePlugin]:
        return [p for p in self._plugins.values() if p.metadata.reliability == reliability]

    def domains(self) -> list[str]:
        return sorted({p.metadata.domain for p in self._plugins.values()})

    def status(self) -> dict[str, Any]:
        """Counts by domain and reliability, for health dashboards."""
        plugins = self._plugins.values()
        return {
            "total": len(self._plugins),
            "by_domain": dict(Counter(p.metadata.domain for p in plugins)),
            "by_reliability": dict(Counter(p.metadata.reliability for p in plugins)),
            "ids": self.ids(),
        }
