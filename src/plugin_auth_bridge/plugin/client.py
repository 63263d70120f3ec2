"""HTTP client for the handoff backend, as used from the plugin sandbox."""

from __future__ import annotations

import logging
import secrets
from typing import Any, Protocol, runtime_checkable
from urllib.parse import urlencode

import httpx

_LOG = logging.getLogger("plugin-auth-bridge.plugin.client")

_DEFAULT_TIMEOUT = httpx.Timeout(10.0, connect=5.0)


def new_session_id() -> str:
    """Return a fresh, unguessable session id for one login attempt."""
    return secrets.token_urlsafe(24)


def build_login_url(backend_url: str, session_id: str) -> str:
    """URL the user opens in a full browser to start the login."""
    return f"{backend_url.rstrip('/')}/auth/google?{urlencode({'session': session_id})}"


@runtime_checkable
class StatusClient(Protocol):
    """What the poller needs from the backend."""

    async def session_status(self, session_id: str) -> dict[str, Any]: ...


class BackendClient:
    """Async client for ``/session-status`` and ``/logout``.

    Non-2xx answers raise :class:`httpx.HTTPStatusError`; transport failures
    raise the matching :class:`httpx.HTTPError` subclass.
    """

    def __init__(
        self,
        backend_url: str,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.backend_url = backend_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=self.backend_url, timeout=_DEFAULT_TIMEOUT
        )

    async def session_status(self, session_id: str) -> dict[str, Any]:
        resp = await self._http.get(
            f"{self.backend_url}/session-status", params={"session": session_id}
        )
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError("session status body is not an object")
        return data

    async def logout(self, token: str) -> None:
        resp = await self._http.post(
            f"{self.backend_url}/logout",
            headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
        )
        resp.raise_for_status()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
