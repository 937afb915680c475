"""Tests for the BART HTTP transport."""

from __future__ import annotations

import httpx
import pytest

from bart_facade.services.bart_errors import TransportError
from bart_facade.services.bart_transport import BART_API_MAX_REDIRECTS, BARTTransport


def _transport(handler) -> BARTTransport:
    return BARTTransport("TEST-KEY", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_fetch_appends_key_and_returns_text():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="<root />")

    async with _transport(handler) as transport:
        payload = await transport.fetch("stn.aspx", {"cmd": "stns"})

    assert payload == "<root />"
    request = seen[0]
    assert request.url.host == "api.bart.gov"
    assert request.url.path == "/api/stn.aspx"
    assert request.url.params["cmd"] == "stns"
    assert request.url.params["key"] == "TEST-KEY"


@pytest.mark.asyncio
async def test_fetch_follows_redirects():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/stn.aspx":
            return httpx.Response(
                301, headers={"Location": "https://api.bart.gov/api/v2/stn.aspx"}
            )
        return httpx.Response(200, text="<root>moved</root>")

    async with _transport(handler) as transport:
        payload = await transport.fetch("stn.aspx", {"cmd": "stns"})

    assert payload == "<root>moved</root>"


@pytest.mark.asyncio
async def test_redirect_loop_raises_transport_error():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(302, headers={"Location": str(request.url)})

    async with _transport(handler) as transport:
        with pytest.raises(TransportError):
            await transport.fetch("stn.aspx", {"cmd": "stns"})

    assert len(calls) == BART_API_MAX_REDIRECTS + 1


@pytest.mark.asyncio
async def test_http_error_status_raises_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    async with _transport(handler) as transport:
        with pytest.raises(TransportError, match="HTTP 500"):
            await transport.fetch("bsa.aspx", {"cmd": "elev"})


@pytest.mark.asyncio
async def test_timeout_raises_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    async with _transport(handler) as transport:
        with pytest.raises(TransportError, match="timed out"):
            await transport.fetch("bsa.aspx", {"cmd": "count"})


@pytest.mark.asyncio
async def test_connection_error_raises_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _transport(handler) as transport:
        with pytest.raises(TransportError) as exc_info:
            await transport.fetch("bsa.aspx", {"cmd": "count"})

    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


def test_client_uses_fixed_timeout_and_redirect_policy():
    transport = BARTTransport("TEST-KEY", transport=httpx.MockTransport(lambda r: None))

    assert transport.client.timeout.read == 10.0
    assert transport.client.follow_redirects is True
    assert transport.client.max_redirects == BART_API_MAX_REDIRECTS
