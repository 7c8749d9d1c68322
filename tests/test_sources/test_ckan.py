"""
tests/test_sources/test_ckan.py — Unit tests for CkanDatastoreFetcher.

HTTP is mocked with respx; fixtures mirror Toronto CKAN package_show and
datastore_search responses.
"""

from __future__ import annotations

import httpx
import pytest

from pulse_pipeline.exceptions import FetchError
from pulse_pipeline.sources.ckan import CkanDatastoreFetcher

CKAN = "https://ckan.test/api/3/action"


@pytest.fixture
def package(load_json) -> dict:
    return load_json("ckan_package_show.json")


@pytest.fixture
def records(load_json) -> dict:
    return load_json("ckan_red_light_cameras.json")


class TestCkanFetch:
    @pytest.mark.asyncio
    async def test_fetch_uses_first_datastore_resource(self, mock_http, package, records):
        mock_http.get(f"{CKAN}/package_show").mock(
            return_value=httpx.Response(200, json=package)
        )
        search = mock_http.get(f"{CKAN}/datastore_search").mock(
            return_value=httpx.Response(200, json=records)
        )
        payload = await CkanDatastoreFetcher(
            "red-light-cameras", base_url=CKAN, limit=500
        ).fetch()

        assert payload["result"]["records"][0]["RLC"] == "RLC 1"
        params = search.calls[0].request.url.params
        assert params["resource_id"] == "b4a3b5c5-rlc"
        assert params["limit"] == "500"

    @pytest.mark.asyncio
    async def test_success_false_raises(self, mock_http):
        mock_http.get(f"{CKAN}/package_show").mock(
            return_value=httpx.Response(
                200, json={"success": False, "error": {"message": "Not found"}}
            )
        )
        with pytest.raises(FetchError, match="success=false"):
            await CkanDatastoreFetcher("missing", base_url=CKAN).fetch()

    @pytest.mark.asyncio
    async def test_package_without_datastore_raises(self, mock_http):
        mock_http.get(f"{CKAN}/package_show").mock(
            return_value=httpx.Response(
                200,
                json={"success": True, "result": {"resources": [{"id": "x", "datastore_active": False}]}},
            )
        )
        with pytest.raises(FetchError, match="no datastore resource"):
            await CkanDatastoreFetcher("csv-only", base_url=CKAN).fetch()

    @pytest.mark.asyncio
    async def test_invalid_json_body_raises(self, mock_http):
        mock_http.get(f"{CKAN}/package_show").mock(
            return_value=httpx.Response(200, text="<html>maintenance</html>")
        )
        with pytest.raises(FetchError, match="not valid JSON"):
            await CkanDatastoreFetcher("red-light-cameras", base_url=CKAN).fetch()


class TestCkanCatalog:
    @pytest.mark.asyncio
    async def test_package_show_returns_result(self, mock_http, package):
        route = mock_http.get(f"{CKAN}/package_show").mock(
            return_value=httpx.Response(200, json=package)
        )
        result = await CkanDatastoreFetcher("red-light-cameras", base_url=CKAN).package_show()

        assert result["title"] == "Red Light Cameras"
        assert route.calls[0].request.url.params["id"] == "red-light-cameras"

    def test_datastore_resources_filters_inactive(self, package):
        resources = CkanDatastoreFetcher.datastore_resources(package["result"])
        assert [r["id"] for r in resources] == ["b4a3b5c5-rlc"]
