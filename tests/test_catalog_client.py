"""Tests for the catalog lookup client."""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest

aiohttp_mod = pytest.importorskip("aiohttp")

from aiohttp import web
from aiohttp import test_utils

from catalog.client import CatalogClient, FetchError, FetchErrorKind


def _run_against(handler, app_identifier="123", country_code=None):
    """Serve ``handler`` at /lookup and run one fetch against it."""
    seen = {}

    async def _wrapped(request):
        seen["query"] = dict(request.query)
        seen["count"] = seen.get("count", 0) + 1
        return await handler(request)

    async def _run():
        app = web.Application()
        app.router.add_get("/lookup", _wrapped)
        async with test_utils.TestServer(app) as server:
            client = CatalogClient(lookup_url=str(server.make_url("/lookup")), timeout=5)
            return await client.fetch_latest_version(app_identifier, country_code)

    return asyncio.run(_run()), seen


class TestBuildLookupUrl:
    """Test lookup URL construction."""

    def test_without_country(self):
        client = CatalogClient(lookup_url="https://catalog.example/lookup")
        assert client.build_lookup_url("42") == "https://catalog.example/lookup?id=42"

    def test_with_country(self):
        client = CatalogClient(lookup_url="https://catalog.example/lookup")
        assert client.build_lookup_url("42", "gb") == "https://catalog.example/lookup?id=42&country=gb"

    def test_default_endpoint(self):
        assert CatalogClient().lookup_url == "https://itunes.apple.com/lookup"


class TestFetchLatestVersion:
    """Test fetch_latest_version against a local server."""

    def test_returns_first_result_version(self):
        async def handler(request):
            return web.json_response({"resultCount": 2, "results": [{"version": "2.1.0"}, {"version": "1.0.0"}]})

        result, seen = _run_against(handler, "987", "us")

        assert result == "2.1.0"
        assert seen["query"] == {"id": "987", "country": "us"}
        assert seen["count"] == 1

    def test_country_omitted_when_absent(self):
        async def handler(request):
            return web.json_response({"results": [{"version": "1.0.0"}]})

        _, seen = _run_against(handler, "987")

        assert seen["query"] == {"id": "987"}

    def test_text_javascript_content_type(self):
        async def handler(request):
            body = json.dumps({"results": [{"version": "3.0.1"}]})
            return web.Response(text=body, content_type="text/javascript")

        result, _ = _run_against(handler)

        assert result == "3.0.1"

    def test_empty_results(self):
        async def handler(request):
            return web.json_response({"resultCount": 0, "results": []})

        result, _ = _run_against(handler)

        assert isinstance(result, FetchError)
        assert result.kind is FetchErrorKind.NO_RESULTS

    def test_missing_results_field(self):
        async def handler(request):
            return web.json_response({"errorMessage": "unknown"})

        result, _ = _run_against(handler)

        assert result.kind is FetchErrorKind.NO_RESULTS

    def test_result_without_version(self):
        async def handler(request):
            return web.json_response({"results": [{"trackName": "Demo"}]})

        result, _ = _run_against(handler)

        assert result.kind is FetchErrorKind.NO_RESULTS

    def test_malformed_json(self):
        async def handler(request):
            return web.Response(text="<html>not json</html>", content_type="text/html")

        result, _ = _run_against(handler)

        assert isinstance(result, FetchError)
        assert result.kind is FetchErrorKind.MALFORMED

    def test_json_array_is_malformed(self):
        async def handler(request):
            return web.json_response([{"version": "1.0.0"}])

        result, _ = _run_against(handler)

        assert result.kind is FetchErrorKind.MALFORMED

    def test_server_error_is_transport(self):
        async def handler(request):
            return web.Response(status=503, text="unavailable")

        result, seen = _run_against(handler)

        assert result.kind is FetchErrorKind.TRANSPORT
        assert "503" in result.detail
        assert seen["count"] == 1


class TestTransportFailures:
    """Test failures that never reach a server."""

    def test_connection_refused(self):
        client = CatalogClient(lookup_url="http://127.0.0.1:1/lookup", timeout=2)

        result = asyncio.run(client.fetch_latest_version("123"))

        assert isinstance(result, FetchError)
        assert result.kind is FetchErrorKind.TRANSPORT
        assert result.detail

    @patch("catalog.client.catalog_pkg.get_text", new_callable=AsyncMock)
    def test_status_zero_maps_to_transport(self, mock_get_text):
        mock_get_text.return_value = (0, {}, "request timed out after 5 seconds")
        client = CatalogClient(lookup_url="https://catalog.example/lookup")

        result = asyncio.run(client.fetch_latest_version("123"))

        assert result == FetchError(FetchErrorKind.TRANSPORT, "request timed out after 5 seconds")
        mock_get_text.assert_awaited_once()

    @patch("catalog.client.catalog_pkg.get_text", new_callable=AsyncMock)
    def test_version_is_stripped(self, mock_get_text):
        mock_get_text.return_value = (200, {}, json.dumps({"results": [{"version": " 1.4.0\n"}]}))
        client = CatalogClient(lookup_url="https://catalog.example/lookup")

        assert asyncio.run(client.fetch_latest_version("123")) == "1.4.0"


class TestFetchErrorStr:
    def test_includes_detail(self):
        assert str(FetchError(FetchErrorKind.MALFORMED, "bad")) == "malformed: bad"

    def test_without_detail(self):
        assert str(FetchError(FetchErrorKind.NO_RESULTS)) == "no_results"


class TestLookupUrlQueryMerge:
    """Test lookup URLs that already carry query parameters."""

    def test_existing_query_kept(self):
        client = CatalogClient(lookup_url="https://catalog.example/lookup?entity=software")

        assert client.build_lookup_url("42", "gb") == (
            "https://catalog.example/lookup?entity=software&id=42&country=gb"
        )

    def test_existing_id_replaced(self):
        client = CatalogClient(lookup_url="https://catalog.example/lookup?id=1&lang=en")

        assert client.build_lookup_url("42") == "https://catalog.example/lookup?lang=en&id=42"

    def test_extra_query_reaches_server(self):
        seen = {}

        async def handler(request):
            seen["query"] = dict(request.query)
            return web.json_response({"results": [{"version": "1.0.0"}]})

        async def _run():
            app = web.Application()
            app.router.add_get("/lookup", handler)
            async with test_utils.TestServer(app) as server:
                url = str(server.make_url("/lookup")) + "?entity=software"
                return await CatalogClient(lookup_url=url, timeout=5).fetch_latest_version("7")

        assert asyncio.run(_run()) == "1.0.0"
        assert seen["query"] == {"entity": "software", "id": "7"}


class TestInjectedSession:
    """Test a caller-owned aiohttp session."""

    def _serve(self, handler, timeout):
        async def _run():
            app = web.Application()
            app.router.add_get("/lookup", handler)
            async with test_utils.TestServer(app) as server:
                async with aiohttp_mod.ClientSession() as session:
                    client = CatalogClient(
                        lookup_url=str(server.make_url("/lookup")), timeout=timeout, session=session
                    )
                    result = await client.fetch_latest_version("123")
                    return result, session.closed

        return asyncio.run(_run())

    def test_client_timeout_applies_to_injected_session(self):
        async def handler(request):
            await asyncio.sleep(3)
            return web.json_response({"results": [{"version": "9.9.9"}]})

        result, _ = self._serve(handler, timeout=0.5)

        assert isinstance(result, FetchError)
        assert result.kind is FetchErrorKind.TRANSPORT
        assert "timed out" in result.detail

    def test_injected_session_left_open(self):
        async def handler(request):
            return web.json_response({"results": [{"version": "2.0.0"}]})

        result, closed = self._serve(handler, timeout=5)

        assert result == "2.0.0"
        assert closed is False
