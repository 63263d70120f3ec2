"""plugin_login.py

Drive the plugin side of the login handoff from a terminal, against a running
backend.  Handy for checking a deployment end-to-end without the real plugin
host.

Key features
------------
* Restores a cached login first (same credential file the plugin core uses)
* Generates a fresh session id and prints (or opens) the browser login URL
* Polls ``/session-status`` with the real poller until a terminal state
* Prints every UI notification as one JSON line on stdout
* ``--logout`` invalidates the stored token on the backend and clears it
  locally; tokens are never printed

Example
-------
    uv run python scripts/plugin_login.py --backend-url http://localhost:3000 --open
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
import webbrowser
from pathlib import Path
from typing import Any, Dict

from plugin_auth_bridge.config import PluginConfig
from plugin_auth_bridge.plugin import (
    BackendClient,
    FileCredentialCache,
    PluginCore,
    PluginPoller,
    PollStatus,
    build_login_url,
    new_session_id,
)
from plugin_auth_bridge.utils.logging import setup_logging

_REDACTED_KEYS = ("token", "authToken")


# --------------------------------------------------------------------------- #
# Output helpers
# --------------------------------------------------------------------------- #
def _print_notification(msg: Dict[str, Any]) -> None:
    """Print a UI notification as JSON (never print tokens)."""
    safe = {k: ("***" if k in _REDACTED_KEYS else v) for k, v in msg.items()}
    print(json.dumps(safe, ensure_ascii=False), flush=True)


# --------------------------------------------------------------------------- #
# Flows
# --------------------------------------------------------------------------- #
async def _login(core: PluginCore, backend_url: str, open_browser: bool) -> int:
    session_id = new_session_id()
    login_url = build_login_url(backend_url, session_id)
    print(f"Open this URL to log in:\n  {login_url}", file=sys.stderr)
    if open_browser:
        webbrowser.open(login_url)

    await core.handle_message({"type": "startPolling", "sessionId": session_id})
    while core.poller.is_active:
        await asyncio.sleep(0.5)

    return 0 if core.poller.last_outcome is PollStatus.SUCCEEDED else 1


async def _run(args: argparse.Namespace) -> int:
    config = PluginConfig.from_env()
    backend_url = (args.backend_url or config.backend_url).rstrip("/")
    cache = FileCredentialCache(args.credential_path or config.credential_path)

    async with BackendClient(backend_url) as client:
        poller = PluginPoller(
            client=client,
            cache=cache,
            notify=_print_notification,
            interval=config.poll_interval_seconds,
            max_duration=config.max_poll_seconds,
        )
        core = PluginCore(client=client, cache=cache, notify=_print_notification, poller=poller)

        if args.logout:
            await core.handle_message({"type": "logout"})
            return 0

        if core.restore() and not args.force:
            print("Already logged in (use --force to log in again).", file=sys.stderr)
            return 0

        return await _login(core, backend_url, args.open)


# --------------------------------------------------------------------------- #
# Main
# --------------------------------------------------------------------------- #
def main() -> None:
    parser = argparse.ArgumentParser(description="Run the plugin login handoff.")
    parser.add_argument("--backend-url", help="Backend base URL (default: $PLUGIN_BACKEND_URL)")
    parser.add_argument(
        "--credential-path",
        type=Path,
        help="Credential file (default: $PLUGIN_CREDENTIAL_PATH)",
    )
    parser.add_argument("--open", action="store_true", help="Open the login URL in a browser")
    parser.add_argument("--force", action="store_true", help="Log in even if a credential exists")
    parser.add_argument("--logout", action="store_true", help="Log out and clear the credential")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")

    args = parser.parse_args()
    setup_logging(args.log_level)
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
