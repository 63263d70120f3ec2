"""Tests for the plugin-side BackendClient and URL helpers."""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from plugin_auth_bridge.plugin.client import BackendClient, build_login_url, new_session_id

BACKEND_URL = "https://bridge.example.com"


def _client(handler) -> BackendClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return BackendClient(BACKEND_URL, http_client=http)


def test_build_login_url() -> None:
    url = build_login_url(BACKEND_URL + "/", "abc 123")
    parsed = urlparse(url)
    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == f"{BACKEND_URL}/auth/google"
    assert parse_qs(parsed.query) == {"session": ["abc 123"]}


def test_new_session_ids_are_unique() -> None:
    ids = {new_session_id() for _ in range(200)}
    assert len(ids) == 200
    assert all(len(i) >= 32 for i in ids)


@pytest.mark.anyio
async def test_session_status_request() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"authenticated": False})

    client = _client(handler)
    assert await client.session_status("abc123") == {"authenticated": False}

    assert seen[0].method == "GET"
    assert seen[0].url.path == "/session-status"
    assert seen[0].url.params["session"] == "abc123"


@pytest.mark.anyio
async def test_session_status_http_error_raises() -> None:
    client = _client(lambda request: httpx.Response(502, text="bad gateway"))
    with pytest.raises(httpx.HTTPStatusError):
        await client.session_status("abc123")


@pytest.mark.anyio
async def test_session_status_rejects_non_object_body() -> None:
    client = _client(lambda request: httpx.Response(200, json=["authenticated"]))
    with pytest.raises(ValueError):
        await client.session_status("abc123")


@pytest.mark.anyio
async def test_logout_sends_bearer_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True})

    await _client(handler).logout("tok-1")

    assert seen[0].method == "POST"
    assert seen[0].url.path == "/logout"
    assert seen[0].headers["Authorization"] == "Bearer tok-1"


@pytest.mark.anyio
async def test_owned_client_closed_on_exit() -> None:
    async with BackendClient(BACKEND_URL) as client:
        http = client._http
    assert http.is_closed
