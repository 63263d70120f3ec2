"""Message-driven plugin core.

The sandboxed plugin talks to its UI through one-way messages only.  The UI
sends ``startPolling``, ``logout`` and ``checkAuth``; the core answers with
``authStateChanged``, ``loginSuccess``, ``loginError`` and ``logoutError``
through the injected ``notify`` callable.  Nothing here waits for the UI, and
no handler lets an exception escape into the host.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from plugin_auth_bridge.handoff.errors import LogoutError
from plugin_auth_bridge.plugin.client import BackendClient
from plugin_auth_bridge.plugin.credentials import CredentialCache
from plugin_auth_bridge.plugin.poller import Notifier, PluginPoller

_LOG = logging.getLogger("plugin-auth-bridge.plugin.core")


class PluginCore:
    """Wire UI messages to the poller, the backend and the credential cache."""

    def __init__(
        self,
        *,
        client: BackendClient,
        cache: CredentialCache,
        notify: Notifier,
        poller: PluginPoller | None = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.notify = notify
        self.poller = poller or PluginPoller(client=client, cache=cache, notify=notify)

    def restore(self) -> bool:
        """Announce a cached login at startup, without touching the network."""
        credential = self.cache.load()
        if credential is None:
            return False
        self.notify(
            {
                "type": "authStateChanged",
                "authenticated": True,
                "userProfile": credential.user_profile,
            }
        )
        return True

    async def handle_message(self, msg: dict[str, Any]) -> None:
        msg_type = msg.get("type")
        if msg_type == "startPolling":
            self._start_polling(msg.get("sessionId"))
        elif msg_type == "logout":
            await self.logout()
        elif msg_type == "checkAuth":
            self.check_auth()
        else:
            _LOG.debug("Ignoring unknown UI message type=%r", msg_type)

    def _start_polling(self, session_id: Any) -> None:
        if not isinstance(session_id, str) or not session_id:
            self.notify({"type": "loginError", "error": "Session ID required"})
            return
        self.poller.start_polling(session_id)

    def check_auth(self) -> None:
        credential = self.cache.load()
        self.notify(
            {
                "type": "authStateChanged",
                "authenticated": credential is not None,
                "userProfile": credential.user_profile if credential else None,
            }
        )

    async def logout(self) -> None:
        """Invalidate the backend session, then forget the local credential.

        A failing backend call is logged and does not block the local
        logout; a failing local clear is reported as ``logoutError``.
        """
        self.poller.cancel()
        credential = self.cache.load()
        if credential is not None:
            try:
                await self.client.logout(credential.auth_token)
            except httpx.HTTPError as exc:
                _LOG.warning("Backend logout failed: %s", type(exc).__name__)

        try:
            self.cache.clear()
        except OSError as exc:
            _LOG.error("Could not clear local credential: %s", exc)
            self.notify({"type": "logoutError", "error": str(LogoutError())})
            return

        self.notify({"type": "authStateChanged", "authenticated": False})
