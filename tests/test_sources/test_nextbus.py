"""
tests/test_sources/test_nextbus.py — Unit tests for NextBusFetcher.

HTTP is mocked with respx; the XML fixture mirrors a publicXMLFeed
vehicleLocations response for route 501.
"""

from __future__ import annotations

import httpx
import pytest

from pulse_pipeline.exceptions import FetchError
from pulse_pipeline.sources.nextbus import (
    NextBusFetcher,
    direction_name,
    parse_vehicle_locations,
    vehicle_type_for_route,
)

FEED = "https://nextbus.test/service/publicXMLFeed"


@pytest.fixture
def route_501_xml(fixture_path) -> str:
    return (fixture_path / "nextbus_501.xml").read_text()


@pytest.fixture
def error_xml(fixture_path) -> str:
    return (fixture_path / "nextbus_error.xml").read_text()


def _fetcher(routes, fixed_clock) -> NextBusFetcher:
    return NextBusFetcher(FEED, routes=routes, max_concurrency=2, clock=fixed_clock)


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

class TestParsing:
    def test_parse_vehicle_locations(self, route_501_xml):
        vehicles = parse_vehicle_locations(route_501_xml)
        assert len(vehicles) == 2
        assert vehicles[0]["id"] == "4401"
        assert vehicles[0]["lat"] == "43.6532"
        assert vehicles[1]["speedKmHr"] == "0"

    def test_error_element_raises(self, error_xml):
        with pytest.raises(ValueError, match="Invalid route"):
            parse_vehicle_locations(error_xml)

    def test_empty_body_has_no_vehicles(self):
        assert parse_vehicle_locations("<body></body>") == []

    @pytest.mark.parametrize(
        ("route", "expected"),
        [("501", "streetcar"), ("599", "streetcar"), ("1", "subway"), ("199", "subway"),
         ("925", "bus"), ("N301", "bus")],
    )
    def test_vehicle_type_for_route(self, route, expected):
        assert vehicle_type_for_route(route) == expected

    def test_direction_name(self):
        assert direction_name("501_0_501", "501") == "Eastbound"
        assert direction_name("510_1_510", "510") == "Southbound"
        assert direction_name("502_1_502", "502") == "Westbound"
        assert direction_name("52_0_52A", "52") == "Outbound"
        assert direction_name("", "52") == "Inbound"


# ---------------------------------------------------------------------------
# fetch()
# ---------------------------------------------------------------------------

class TestNextBusFetch:
    @pytest.mark.asyncio
    async def test_fetch_builds_vehicle_records(self, mock_http, route_501_xml, fixed_clock):
        route = mock_http.get(FEED, params__contains={"r": "501"}).mock(
            return_value=httpx.Response(200, text=route_501_xml)
        )
        vehicles = await _fetcher(["501"], fixed_clock).fetch()

        assert route.called
        query = route.calls[0].request.url.params
        assert query["command"] == "vehicleLocations"
        assert query["a"] == "ttc"

        first = vehicles[0]
        assert first["id"] == "4401"
        assert first["route"] == "501"
        assert first["route_name"] == "Queen"
        assert first["direction"] == "Eastbound"
        assert first["latitude"] == pytest.approx(43.6532)
        assert first["longitude"] == pytest.approx(-79.3832)
        assert first["vehicle_type"] == "streetcar"
        assert first["timestamp"] == "2024-07-01T11:59:45Z"
        assert first["trip_id"] == "501_0_501"
        assert first["bearing"] == 85
        assert first["speed"] == 18
        assert vehicles[1]["speed"] == 0

    @pytest.mark.asyncio
    async def test_failed_route_is_omitted(self, mock_http, route_501_xml, fixed_clock):
        mock_http.get(FEED, params__contains={"r": "501"}).mock(
            return_value=httpx.Response(200, text=route_501_xml)
        )
        mock_http.get(FEED, params__contains={"r": "504"}).mock(
            return_value=httpx.Response(500)
        )
        vehicles = await _fetcher(["501", "504"], fixed_clock).fetch()

        assert len(vehicles) == 2
        assert {v["route"] for v in vehicles} == {"501"}

    @pytest.mark.asyncio
    async def test_feed_error_counts_as_route_failure(
        self, mock_http, route_501_xml, error_xml, fixed_clock
    ):
        mock_http.get(FEED, params__contains={"r": "501"}).mock(
            return_value=httpx.Response(200, text=route_501_xml)
        )
        mock_http.get(FEED, params__contains={"r": "999"}).mock(
            return_value=httpx.Response(200, text=error_xml)
        )
        vehicles = await _fetcher(["501", "999"], fixed_clock).fetch()
        assert len(vehicles) == 2

    @pytest.mark.asyncio
    async def test_all_routes_failing_raises(self, mock_http, fixed_clock):
        mock_http.get(FEED).mock(return_value=httpx.Response(503))

        with pytest.raises(FetchError, match="All 2 route fetches failed"):
            await _fetcher(["501", "504"], fixed_clock).fetch()

    @pytest.mark.asyncio
    async def test_timeout_counts_as_route_failure(self, mock_http, fixed_clock):
        mock_http.get(FEED).mock(side_effect=httpx.ReadTimeout("timed out"))

        with pytest.raises(FetchError):
            await _fetcher(["501"], fixed_clock).fetch()
