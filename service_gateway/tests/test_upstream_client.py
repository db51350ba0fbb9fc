"""
Unit tests for the music backend executor.
"""

import json

import httpx
import pytest

from service_gateway.app.adapters.upstream_client import UpstreamClient, parse_lenient_json
from service_gateway.app.domain.models import RequestDescriptor
from shared.errors import UpstreamError
from shared.metrics import MetricsCollector


def _client(handler, metrics=None):
    return UpstreamClient(transport=httpx.MockTransport(handler), metrics=metrics)


class TestParseLenientJson:
    """Test cases for tolerant JSON parsing."""

    def test_strict_json(self):
        assert parse_lenient_json('{"a": 1}') == {"a": 1}
        assert parse_lenient_json("[1, 2]") == [1, 2]

    def test_wrapped_json(self):
        """Test JSONP-style wrappers are stripped."""
        assert parse_lenient_json('callback({"abslist": []});') == {"abslist": []}

    def test_unparsable(self):
        assert parse_lenient_json("") is None
        assert parse_lenient_json("   ") is None
        assert parse_lenient_json("<html>oops</html>") is None
        assert parse_lenient_json("prefix { not json } suffix") is None
        assert parse_lenient_json(None) is None


class TestUpstreamClient:
    """Test cases for UpstreamClient."""

    @pytest.mark.asyncio
    async def test_get_never_sends_body(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["body"] = request.content
            seen["agent"] = request.headers.get("User-Agent")
            return httpx.Response(200, text='{"ok": true}')

        client = _client(handler)
        descriptor = RequestDescriptor(
            url="https://example.com/api?x=1",
            method="GET",
            headers={"User-Agent": "gateway-test"},
            body='{"ignored": true}',
        )

        result = await client.execute(descriptor)
        await client.close()

        assert result == {"ok": True}
        assert seen == {"method": "GET", "body": b"", "agent": "gateway-test"}

    @pytest.mark.asyncio
    async def test_post_sends_body(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            seen["content_type"] = request.headers.get("Content-Type")
            return httpx.Response(200, json={"code": 0})

        client = _client(handler)
        descriptor = RequestDescriptor(
            url="https://example.com/api",
            method="POST",
            headers={"Content-Type": "application/json"},
            body='{"s":"hello"}',
        )

        result = await client.execute(descriptor)
        await client.close()

        assert result == {"code": 0}
        assert seen == {"body": {"s": "hello"}, "content_type": "application/json"}

    @pytest.mark.asyncio
    async def test_wrapped_body_is_recovered(self):
        client = _client(lambda request: httpx.Response(200, text='jsonp1({"result":"ok"});'))

        result = await client.execute(RequestDescriptor(url="https://example.com/"))
        await client.close()

        assert result == {"result": "ok"}

    @pytest.mark.asyncio
    async def test_non_2xx_is_upstream_error(self):
        metrics = MetricsCollector("gateway")
        client = _client(lambda request: httpx.Response(503, text='{"error": "busy"}'), metrics=metrics)

        with pytest.raises(UpstreamError) as exc_info:
            await client.execute(RequestDescriptor(url="https://example.com/"))
        await client.close()

        assert exc_info.value.status_code == 502
        assert exc_info.value.details["status_code"] == 503
        assert "503" in exc_info.value.message
        assert metrics.registry.get_sample_value("upstream_requests_total", {"outcome": "bad_status"}) == 1.0

    @pytest.mark.asyncio
    async def test_unparsable_body_is_upstream_error(self):
        client = _client(lambda request: httpx.Response(200, text="<html>blocked</html>"))

        with pytest.raises(UpstreamError) as exc_info:
            await client.execute(RequestDescriptor(url="https://example.com/"))
        await client.close()

        assert exc_info.value.status_code == 502
        assert exc_info.value.message == "Upstream response could not be parsed"

    @pytest.mark.asyncio
    async def test_transport_error_is_upstream_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(handler)

        with pytest.raises(UpstreamError):
            await client.execute(RequestDescriptor(url="https://example.com/"))
        await client.close()
