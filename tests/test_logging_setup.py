"""
tests/test_logging_setup.py — Tests for structlog configuration.
"""

from __future__ import annotations

import io
import json
import logging

import pytest
import structlog

from pulse_pipeline.utils.logging import configure_logging, get_logger


@pytest.fixture
def stream():
    buf = io.StringIO()
    yield buf
    structlog.reset_defaults()


def test_json_events_go_to_stream(stream):
    configure_logging("INFO", "json", stream=stream)
    get_logger("tests.logging", source_id="ttc-vehicles").info("route_fetch_failed", route="501")

    event = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert event["event"] == "route_fetch_failed"
    assert event["source_id"] == "ttc-vehicles"
    assert event["level"] == "info"
    assert event["timestamp"].endswith("Z")


def test_level_filters_events(stream):
    configure_logging("WARNING", "json", stream=stream)
    get_logger("tests.logging").info("ignored")
    assert stream.getvalue() == ""


@pytest.mark.parametrize(("level", "httpx_level"), [("DEBUG", logging.DEBUG), ("INFO", logging.WARNING)])
def test_httpx_request_logs_only_at_debug(stream, level, httpx_level):
    configure_logging(level, "console", stream=stream)
    assert logging.getLogger("httpx").level == httpx_level
