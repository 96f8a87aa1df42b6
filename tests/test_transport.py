"""Tests for the httpx transport, URL validation and the fake transport."""

from __future__ import annotations

import httpx
import pytest

from connwatch.transport import (
    FakeTransport,
    HttpTransport,
    HttpxTransport,
    MalformedConfigurationError,
    TransportConnectionError,
    TransportTimeout,
    parse_endpoint,
)


def _mock(handler) -> HttpxTransport:
    return HttpxTransport(timeout=5.0, transport=httpx.MockTransport(handler))


# ── parse_endpoint ───────────────────────────────────────────────────────────


class TestParseEndpoint:
    def test_accepts_http_and_https(self) -> None:
        assert parse_endpoint("https://www.gstatic.com/generate_204").host == "www.gstatic.com"
        assert parse_endpoint("http://10.0.0.1:8080/ping").port == 8080

    @pytest.mark.parametrize("url", ["%%%", "not a url", "ftp://example.com/file", "/relative/path"])
    def test_rejects_unusable_urls(self, url: str) -> None:
        with pytest.raises(MalformedConfigurationError) as exc_info:
            parse_endpoint(url)
        assert exc_info.value.url == url


# ── HttpxTransport ───────────────────────────────────────────────────────────


class TestHttpxTransport:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(HttpxTransport(), HttpTransport)
        assert isinstance(FakeTransport(), HttpTransport)

    @pytest.mark.asyncio
    async def test_returns_status_and_forwards_headers(self) -> None:
        seen: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("authorization", "")
            seen["method"] = request.method
            return httpx.Response(204)

        transport = _mock(handler)
        resp = await transport.get("https://example.test/ping", headers={"Authorization": "Bearer t"})
        await transport.aclose()

        assert resp.status_code == 204
        assert seen == {"auth": "Bearer t", "method": "GET"}

    @pytest.mark.asyncio
    async def test_error_status_is_a_response(self) -> None:
        transport = _mock(lambda request: httpx.Response(503))
        resp = await transport.get("https://example.test/ping")
        await transport.aclose()
        assert resp.status_code == 503

    @pytest.mark.asyncio
    async def test_connect_error_mapped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        transport = _mock(handler)
        with pytest.raises(TransportConnectionError):
            await transport.get("https://example.test/ping")
        await transport.aclose()

    @pytest.mark.asyncio
    async def test_timeout_mapped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        transport = _mock(handler)
        with pytest.raises(TransportTimeout):
            await transport.get("https://example.test/ping")
        await transport.aclose()

    @pytest.mark.asyncio
    async def test_client_reused_and_closed(self) -> None:
        transport = _mock(lambda request: httpx.Response(200))
        await transport.get("https://example.test/a")
        client = transport._client
        await transport.get("https://example.test/b")
        assert transport._client is client

        await transport.aclose()
        assert transport._client is None
        assert client is not None and client.is_closed


# ── FakeTransport ────────────────────────────────────────────────────────────


class TestFakeTransport:
    @pytest.mark.asyncio
    async def test_script_consumed_in_order_then_last_repeats(self) -> None:
        fake = FakeTransport([500, 204])
        codes = [(await fake.get("http://x.test")).status_code for _ in range(4)]
        assert codes == [500, 204, 204, 204]
        assert fake.call_count == 4

    @pytest.mark.asyncio
    async def test_raises_exception_instances_and_classes(self) -> None:
        fake = FakeTransport([ConnectionRefusedError, TransportTimeout("late")])
        with pytest.raises(ConnectionRefusedError):
            await fake.get("http://x.test")
        with pytest.raises(TransportTimeout):
            await fake.get("http://x.test")

    @pytest.mark.asyncio
    async def test_records_calls(self) -> None:
        fake = FakeTransport([200])
        await fake.get("http://x.test/ping", headers={"X-Probe": "1"})
        assert fake.calls[0].url == "http://x.test/ping"
        assert fake.calls[0].headers == {"X-Probe": "1"}
