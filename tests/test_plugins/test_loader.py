"""
tests/test_plugins/test_loader.py — Unit tests for descriptor loading and plugin construction.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from pulse_pipeline.exceptions import ConfigError
from pulse_pipeline.plugins.loader import (
    build_fetcher,
    build_plugin,
    builtin_configs,
    load_builtin_plugins,
    load_source_config,
    parse_source_config,
)
from pulse_pipeline.plugins.registry import PluginRegistry
from pulse_pipeline.sources.ckan import CkanDatastoreFetcher
from pulse_pipeline.sources.gbfs import GbfsFetcher
from pulse_pipeline.sources.json_api import JsonApiFetcher
from pulse_pipeline.sources.nextbus import NextBusFetcher
from pulse_shared.config import Settings

BUILTIN_IDS = [
    "automated-speed-enforcement-locations",
    "bike-share-toronto",
    "red-light-cameras",
    "road-restrictions",
    "toronto-beaches-observations",
    "ttc-vehicles",
]


def _descriptor(**overrides) -> dict:
    doc = {
        "metadata": {
            "id": "fire-stations",
            "name": "Fire Stations",
            "domain": "infrastructure",
            "refresh_interval_ms": 3600000,
            "reliability": "high",
            "data_license": "Open Government Licence – Toronto",
        },
        "api": {"kind": "ckan_datastore", "package_id": "fire-station-locations"},
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def app_settings() -> Settings:
    return Settings(_env_file=None, sources_dir=None)


@pytest.fixture
def configs():
    return {c.metadata.id: c for c in builtin_configs()}


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------

class TestDescriptors:
    def test_builtin_descriptors_are_valid(self):
        assert [c.metadata.id for c in builtin_configs()] == BUILTIN_IDS

    def test_policies(self, configs):
        assert configs["bike-share-toronto"].validation.output == "filter"
        assert configs["red-light-cameras"].validation.output == "passthrough"
        assert configs["red-light-cameras"].transform.unresolved == "drop"
        assert configs["automated-speed-enforcement-locations"].transform.unresolved == "default"
        assert configs["toronto-beaches-observations"].transform.dedup is not None

    def test_minimal_descriptor_gets_defaults(self):
        config = parse_source_config(_descriptor())
        assert config.metadata.version == "1.0.0"
        assert config.transform.geometry == ["embedded", "fields"]
        assert config.validation.output == "passthrough"

    def test_schema_errors_are_listed(self):
        doc = _descriptor(api={"kind": "ckan_datastore"})
        doc["metadata"]["domain"] = "weather"

        with pytest.raises(ConfigError) as exc_info:
            parse_source_config(doc, origin="bad.json")

        message = exc_info.value.message
        assert message.startswith("Invalid source descriptor bad.json:")
        assert "metadata.domain" in message
        assert "package_id is required" in message
        assert exc_info.value.source_id == "fire-stations"

    def test_lookup_requires_known_table(self):
        doc = _descriptor(transform={"geometry": ["lookup"], "lookup_table": "atlantis"})
        with pytest.raises(ConfigError, match="unknown lookup table"):
            parse_source_config(doc)

    def test_load_from_file(self, tmp_path: Path):
        path = tmp_path / "fire-stations.json"
        path.write_text(json.dumps(_descriptor()), encoding="utf-8")
        assert load_source_config(path).metadata.id == "fire-stations"

    def test_invalid_json_file(self, tmp_path: Path):
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(ConfigError, match="not valid JSON"):
            load_source_config(path)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Cannot read"):
            load_source_config(tmp_path / "absent.json")


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestBuild:
    @pytest.mark.parametrize(
        ("source_id", "fetcher_type"),
        [
            ("bike-share-toronto", GbfsFetcher),
            ("ttc-vehicles", NextBusFetcher),
            ("red-light-cameras", CkanDatastoreFetcher),
            ("road-restrictions", JsonApiFetcher),
        ],
    )
    def test_fetcher_kind(self, configs, app_settings, source_id, fetcher_type):
        fetcher = build_fetcher(configs[source_id], app_settings=app_settings)
        assert isinstance(fetcher, fetcher_type)
        assert fetcher.source_id == source_id

    def test_plugin_wires_stages(self, configs, app_settings):
        plugin = build_plugin(configs["toronto-beaches-observations"], app_settings=app_settings)

        assert plugin.id == "toronto-beaches-observations"
        assert plugin.transformer.config.dedup is not None
        assert plugin.validator.config.enums["turbidity"] == ["Clear", "Cloudy", "Murky"]
        assert plugin.registered is False

    @pytest.mark.asyncio
    async def test_load_builtin_plugins(self, app_settings):
        registry = PluginRegistry()
        plugins = await load_builtin_plugins(registry, app_settings=app_settings)

        assert len(plugins) == 6
        assert sorted(registry.ids()) == BUILTIN_IDS
        assert all(p.registered for p in plugins)

    @pytest.mark.asyncio
    async def test_sources_dir_adds_and_overrides(self, tmp_path: Path):
        override = json.loads(json.dumps(_descriptor()))
        override["metadata"]["id"] = "red-light-cameras"
        override["metadata"]["version"] = "2.0.0"
        (tmp_path / "red-light-cameras.json").write_text(json.dumps(override), encoding="utf-8")
        (tmp_path / "fire-stations.json").write_text(json.dumps(_descriptor()), encoding="utf-8")

        registry = PluginRegistry()
        await load_builtin_plugins(
            registry, app_settings=Settings(_env_file=None, sources_dir=tmp_path)
        )

        assert len(registry) == 7
        assert registry.get("red-light-cameras").metadata.version == "2.0.0"
        assert registry.has("fire-stations")
