# ABAP ADT MCP Server
# File: tests/test_csrf.py
# Version: v1

"""CSRF token fetching against a mocked discovery endpoint."""

from __future__ import annotations

from typing import List

import httpx
import pytest

from mcp_abap_adt.client import AdtClient
from mcp_abap_adt.config import SapConfig
from mcp_abap_adt.csrf import STATE_HOLDING, STATE_NO_TOKEN, discovery_url
from mcp_abap_adt.errors import CsrfTokenError


def _client(handler) -> AdtClient:
    return AdtClient(config=SapConfig.from_env(), transport=httpx.MockTransport(handler))


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://sap:443", "https://sap:443/sap/bc/adt/discovery"),
        ("https://sap:443/", "https://sap:443/sap/bc/adt/discovery"),
        ("https://sap:443/sap/bc/adt", "https://sap:443/sap/bc/adt/discovery"),
        ("https://sap:443/sap/bc/adt/discovery", "https://sap:443/sap/bc/adt/discovery"),
        ("https://sap:443/sap/bc/adt/core/discovery", "https://sap:443/sap/bc/adt/core/discovery"),
    ],
)
def test_discovery_url(url, expected) -> None:
    assert discovery_url(url) == expected


@pytest.mark.asyncio
async def test_fetch_sends_fetch_header_and_stores_cookies() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            headers=[
                ("x-csrf-token", "abc=="),
                ("set-cookie", "SAP_SESSIONID=s1; path=/; HttpOnly"),
                ("set-cookie", "sap-usercontext=sap-client=100; path=/"),
            ],
        )

    client = _client(handler)
    token = await client.csrf.fetch_token(client.base_url)

    assert token == "abc=="
    assert client.session.token == "abc=="
    assert client.session.cookies == "SAP_SESSIONID=s1; sap-usercontext=sap-client=100"
    assert client.csrf.state == STATE_HOLDING

    request = seen[0]
    assert request.method == "GET"
    assert str(request.url) == "https://sap.example.com:44300/sap/bc/adt/discovery"
    assert request.headers["x-csrf-token"] == "fetch"
    assert request.headers["Accept"] == "application/atomsvc+xml"
    assert request.headers["X-SAP-Client"] == "100"
    assert request.headers["Authorization"].startswith("Basic ")
    await client.aclose()


@pytest.mark.asyncio
async def test_405_with_token_counts_as_success() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(405, headers={"x-csrf-token": "from-405"}, text="Method not allowed")

    client = _client(handler)
    assert await client.csrf.fetch_token() == "from-405"
    assert len(calls) == 1
    await client.aclose()


@pytest.mark.asyncio
async def test_token_header_wins_over_error_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, headers={"x-csrf-token": "still-good"})

    client = _client(handler)
    assert await client.csrf.fetch_token() == "still-good"
    await client.aclose()


@pytest.mark.asyncio
async def test_exhausted_retries_raise(no_sleep) -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(403, headers={"x-csrf-token": "Required"}, text="forbidden")

    client = _client(handler)
    client.session.token = "stale"

    with pytest.raises(CsrfTokenError, match="after 3 attempts"):
        await client.csrf.fetch_token(retry_count=3, retry_delay_ms=250)

    assert len(calls) == 3
    # Delay only between attempts.
    assert no_sleep == [0.25, 0.25]
    assert client.session.token is None
    assert client.csrf.state == STATE_NO_TOKEN
    await client.aclose()


@pytest.mark.asyncio
async def test_transport_error_is_retried(no_sleep) -> None:
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, headers={"x-csrf-token": "second-try"})

    client = _client(handler)
    assert await client.csrf.fetch_token(retry_count=3, retry_delay_ms=10) == "second-try"
    assert len(attempts) == 2
    assert no_sleep == [0.01]
    await client.aclose()
