"""
tests/test_cli.py — Tests for the click CLI using CliRunner.

Logging is silenced so stdout carries only command output.
"""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
import structlog
from click.testing import CliRunner

from pulse_pipeline import cli
from pulse_shared.config import settings

CKAN = settings.ckan_base_url


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)
    structlog.configure(logger_factory=structlog.ReturnLoggerFactory())
    yield
    structlog.reset_defaults()


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def ckan_ok(mock_http, load_json):
    mock_http.get(f"{CKAN}/package_show").mock(
        return_value=httpx.Response(200, json=load_json("ckan_package_show.json"))
    )
    mock_http.get(f"{CKAN}/datastore_search").mock(
        return_value=httpx.Response(200, json=load_json("ckan_red_light_cameras.json"))
    )
    return mock_http


# ---------------------------------------------------------------------------
# list / run
# ---------------------------------------------------------------------------

def test_list(runner):
    result = runner.invoke(cli.main, ["list"])
    assert result.exit_code == 0
    lines = result.output.strip().splitlines()
    assert len(lines) == 6
    assert any("bike-share-toronto" in line and "every 60s" in line for line in lines)


def test_run_summary(runner, ckan_ok):
    result = runner.invoke(cli.main, ["run", "red-light-cameras"])
    assert result.exit_code == 0
    assert result.output.startswith("✓ red-light-cameras: 2 features, 0 errors")


def test_run_json(runner, ckan_ok):
    result = runner.invoke(cli.main, ["run", "red-light-cameras", "--json"])
    assert result.exit_code == 0

    payload = json.loads(result.stdout)
    assert payload["source_id"] == "red-light-cameras"
    assert payload["collection"]["type"] == "FeatureCollection"
    assert len(payload["collection"]["features"]) == 2
    assert payload["validation"]["valid"] is True
    assert "data" not in payload["validation"]


def test_run_fetch_failure_exits_nonzero(runner, mock_http):
    mock_http.get(f"{CKAN}/package_show").mock(return_value=httpx.Response(503))
    result = runner.invoke(cli.main, ["run", "red-light-cameras"])

    assert result.exit_code == 1
    assert "FetchError" in result.output


def test_run_unknown_source(runner):
    result = runner.invoke(cli.main, ["run", "nope"])
    assert result.exit_code == 1
    assert "PluginNotFoundError" in result.output


# ---------------------------------------------------------------------------
# check-config / scaffold
# ---------------------------------------------------------------------------

def test_check_config(runner, tmp_path: Path, fixture_path: Path):
    out = tmp_path / "out"
    scaffolded = runner.invoke(
        cli.main,
        ["scaffold", str(fixture_path / "dataset_fire_stations.json"), "--out", str(out)],
    )
    assert scaffolded.exit_code == 0
    assert "Wrote" in scaffolded.output

    result = runner.invoke(cli.main, ["check-config", str(out / "fire-station-locations.json")])
    assert result.exit_code == 0
    assert "fire-station-locations (infrastructure, ckan_datastore)" in result.output


def test_check_config_invalid(runner, tmp_path: Path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"metadata": {"id": "Bad Id"}}), encoding="utf-8")

    result = runner.invoke(cli.main, ["check-config", str(path)])
    assert result.exit_code == 1
    assert "Invalid source descriptor" in result.output


def test_scaffold_rejects_bad_metadata(runner, tmp_path: Path):
    path = tmp_path / "dataset.json"
    path.write_text('{"title": "no id"}', encoding="utf-8")

    result = runner.invoke(cli.main, ["scaffold", str(path), "--out", str(tmp_path)])
    assert result.exit_code == 1
    assert "Invalid dataset metadata" in result.output


# ---------------------------------------------------------------------------
# catalog
# ---------------------------------------------------------------------------

def test_catalog_lists_datastore_resources(runner, mock_http, load_json):
    mock_http.get(f"{CKAN}/package_show").mock(
        return_value=httpx.Response(200, json=load_json("ckan_package_show.json"))
    )
    result = runner.invoke(cli.main, ["catalog", "red-light-cameras"])

    assert result.exit_code == 0
    assert result.output.splitlines()[0] == "Red Light Cameras (red-light-cameras)"
    assert "b4a3b5c5-rlc" in result.output
    assert "3c1a5ad1-csv" not in result.output


def test_catalog_failure(runner, mock_http):
    mock_http.get(f"{CKAN}/package_show").mock(return_value=httpx.Response(404))
    result = runner.invoke(cli.main, ["catalog", "missing", "--attempts", "1"])

    assert result.exit_code == 1
    assert "HTTP 404" in result.output
