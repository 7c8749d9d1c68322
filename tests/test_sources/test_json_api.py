"""
tests/test_sources/test_json_api.py — Unit tests for JsonApiFetcher.
"""

from __future__ import annotations

import httpx
import pytest

from pulse_pipeline.exceptions import FetchError
from pulse_pipeline.sources.json_api import JsonApiFetcher

URL = "https://secure.toronto.test/opendata/cart/road_restrictions/v3"


class TestJsonApiFetch:
    @pytest.mark.asyncio
    async def test_fetch_returns_parsed_body(self, mock_http, load_json):
        payload = load_json("road_restrictions.json")
        route = mock_http.get(URL).mock(return_value=httpx.Response(200, json=payload))

        body = await JsonApiFetcher(URL, headers={"X-Client": "pulse"}).fetch()

        assert body == payload
        request = route.calls[0].request
        assert request.headers["X-Client"] == "pulse"
        assert request.headers["Accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_server_error_raises_fetch_error(self, mock_http):
        mock_http.get(URL).mock(return_value=httpx.Response(503))

        with pytest.raises(FetchError) as excinfo:
            await JsonApiFetcher(URL, source_id="road-restrictions").fetch()

        err = excinfo.value
        assert err.status_code == 503
        assert err.source_id == "road-restrictions"
        assert err.to_error_dict()["error"] == "FetchError"

    @pytest.mark.asyncio
    async def test_transport_error_raises_fetch_error(self, mock_http):
        mock_http.get(URL).mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(FetchError, match="Transport error"):
            await JsonApiFetcher(URL).fetch()

    @pytest.mark.asyncio
    async def test_timeout_raises_fetch_error(self, mock_http):
        mock_http.get(URL).mock(side_effect=httpx.ConnectTimeout("slow"))

        with pytest.raises(FetchError, match="Timed out"):
            await JsonApiFetcher(URL, timeout=0.5).fetch()
