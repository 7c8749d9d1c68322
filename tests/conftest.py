"""
tests/conftest.py — Shared pytest fixtures for the pipeline test suite.

Provides:
  fixture_path      — resolves paths to tests/fixtures/
  load_json         — parsed JSON fixture by file name
  mock_http         — configured respx router for faking HTTP responses
  now / fixed_clock — a frozen "current time" for staleness and NextBus ages
  service_area      — the Toronto bounding box
  make_plugin       — a DataSourcePlugin over a canned-payload fetcher
"""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest
import respx

from pulse_pipeline.plugins.base import DataSourcePlugin
from pulse_pipeline.sources.base import BaseFetcher
from pulse_pipeline.transforms.transformer import GeoTransformer
from pulse_pipeline.validation.validator import FeatureValidator
from pulse_shared.geo import BoundingBox
from pulse_shared.models.plugin import PluginMetadata, ValidationConfig

FIXTURES_DIR = Path(__file__).parent / "fixtures"

NOW = datetime(2024, 7, 1, 12, 0, tzinfo=timezone.utc)

TORONTO = BoundingBox(north=43.85, south=43.58, east=-79.12, west=-79.64)


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def fixture_path() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def load_json() -> Callable[[str], Any]:
    def _load(name: str) -> Any:
        return json.loads((FIXTURES_DIR / name).read_text(encoding="utf-8"))

    return _load


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------

@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: NOW


@pytest.fixture
def service_area() -> BoundingBox:
    return TORONTO


# ---------------------------------------------------------------------------
# respx HTTP mock router
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_http():
    """
    Activate the respx mock router for all httpx requests.

    Usage in tests:
        def test_something(mock_http):
            mock_http.get("https://...").mock(return_value=httpx.Response(200, json={...}))
    """
    with respx.mock(assert_all_called=False) as router:
        yield router


# ---------------------------------------------------------------------------
# Plugin builders
# ---------------------------------------------------------------------------

class StaticFetcher(BaseFetcher):
    """Returns a canned payload, or raises a canned error."""

    name = "static"

    def __init__(self, payload: Any = None, error: Exception | None = None) -> None:
        super().__init__(source_id="static")
        self.payload = payload
        self.error = error
        self.calls = 0

    async def fetch(self) -> Any:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture
def make_plugin(service_area, fixed_clock) -> Callable[..., DataSourcePlugin]:
    def _make(
        source_id: str = "test-source",
        *,
        payload: Any = None,
        error: Exception | None = None,
        domain: str = "infrastructure",
        reliability: str = "high",
        tags: tuple[str, ...] = (),
        version: str = "1.2.0",
        refresh_interval_ms: int = 60_000,
        validation: ValidationConfig | None = None,
    ) -> DataSourcePlugin:
        metadata = PluginMetadata(
            id=source_id,
            name=source_id.replace("-", " ").title(),
            domain=domain,
            version=version,
            refresh_interval_ms=refresh_interval_ms,
            reliability=reliability,
            tags=tags,
            data_license="Open Government Licence – Toronto",
        )
        return DataSourcePlugin(
            metadata,
            StaticFetcher(payload if payload is not None else [], error),
            GeoTransformer(source_id),
            FeatureValidator(source_id, validation, bounds=service_area, clock=fixed_clock),
            clock=fixed_clock,
        )

    return _make
