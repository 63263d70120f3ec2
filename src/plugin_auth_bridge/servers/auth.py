"""Browser- and plugin-facing handoff endpoints.

Handlers are intentionally thin:

1. Parse and validate HTTP-layer parameters.
2. Delegate business logic to ``HandoffService``.
3. Return an appropriate Starlette ``Response`` type.

The initiation context is the signed session cookie managed by Starlette's
``SessionMiddleware``; it only ever holds the plugin session id between
``/auth/google`` and the provider callback.

SECURITY NOTE
-------------
• No raw secrets (state, authorization codes, bearer tokens, client secrets)
  are ever logged.  Session ids are truncated.
• Correlation IDs from ``request.state.correlation_id`` are included in INFO
  logs to aid troubleshooting.
"""

from __future__ import annotations

import html
import logging

from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from starlette.routing import Route

from plugin_auth_bridge.handoff.errors import (
    MissingCorrelationIdError,
    ProviderExchangeError,
    SessionConflictError,
)
from plugin_auth_bridge.handoff.service import HandoffService
from plugin_auth_bridge.servers.correlation import correlation_id_of
from plugin_auth_bridge.utils.logging import mask_sensitive

_LOG = logging.getLogger("plugin-auth-bridge.auth.routes")

CONTEXT_KEY = "plugin_session_id"
FAILURE_PATH = "/auth/failure"


def _html_page(title: str, *paragraphs: str, status: int = 200) -> HTMLResponse:
    """Return a tiny success / error HTML page."""
    body = "".join(f"<p>{html.escape(p)}</p>" for p in paragraphs)
    content = (
        "<!doctype html><html lang='en'>"
        f"<head><meta charset='utf-8'><title>{html.escape(title)}</title></head>"
        f"<body><h1>{html.escape(title)}</h1>{body}</body></html>"
    )
    return HTMLResponse(content, status_code=status)


def _failure_redirect() -> RedirectResponse:
    return RedirectResponse(FAILURE_PATH, status_code=302)


def bearer_token(request: Request) -> str | None:
    """Return the token of an ``Authorization: Bearer <token>`` header."""
    header_val = request.headers.get("authorization") or ""
    if not header_val.startswith("Bearer "):
        return None
    return header_val[7:].strip() or None


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #
def build_auth_routes(service: HandoffService) -> list[Route]:
    """Return the handoff endpoints bound to *service*."""

    # ----- GET /auth/google ---------------------------------------------- #
    async def _start_login(request: Request) -> Response:
        session_id = request.query_params.get("session")
        if not session_id:
            return JSONResponse({"error": "Session ID required"}, status_code=400)

        request.session[CONTEXT_KEY] = session_id
        try:
            authorize_url = service.begin_login(
                session_id, correlation_id=correlation_id_of(request)
            )
        except ValueError as exc:
            return JSONResponse({"error": str(exc)}, status_code=400)
        return RedirectResponse(authorize_url, status_code=302)

    # ----- GET /auth/google/callback ------------------------------------- #
    async def _oauth_callback(request: Request) -> Response:
        correlation_id = correlation_id_of(request)
        context_session_id = request.session.pop(CONTEXT_KEY, None)

        # Provider-side errors first (e.g. access_denied)
        oauth_error = request.query_params.get("error")
        code = request.query_params.get("code")
        if oauth_error or not code:
            _LOG.warning(
                "OAuth callback without code error=%s correlation_id=%s",
                oauth_error or "missing_code",
                correlation_id,
            )
            return _failure_redirect()

        try:
            session_id = service.recover_session_id(
                context_session_id=context_session_id,
                state=request.query_params.get("state"),
            )
        except MissingCorrelationIdError as exc:
            _LOG.warning("%s correlation_id=%s", exc, correlation_id)
            return _failure_redirect()

        try:
            await run_in_threadpool(
                service.complete_login,
                session_id=session_id,
                code=code,
                correlation_id=correlation_id,
            )
        except (ProviderExchangeError, SessionConflictError) as exc:
            _LOG.warning(
                "OAuth callback failed: %s correlation_id=%s", exc.to_payload(), correlation_id
            )
            return _failure_redirect()

        return _html_page(
            "Authentication Successful",
            "You have been successfully authenticated.",
            "You can now close this window and return to the plugin.",
        )

    # ----- GET /auth/failure --------------------------------------------- #
    async def _failure_page(request: Request) -> Response:
        return _html_page(
            "Authentication Failed",
            "There was an error during authentication.",
            "Please close this window and try again.",
        )

    # ----- GET /session-status ------------------------------------------- #
    async def _session_status(request: Request) -> Response:
        session_id = request.query_params.get("session")
        if not session_id:
            return JSONResponse({"error": "Session ID required"}, status_code=400)
        return JSONResponse(service.session_status(session_id))

    # ----- POST /logout -------------------------------------------------- #
    async def _logout(request: Request) -> Response:
        token = bearer_token(request)
        if token:
            removed = service.logout(token)
            _LOG.info(
                "Logout token=%s removed=%d correlation_id=%s",
                mask_sensitive(token, 4),
                removed,
                correlation_id_of(request),
            )
        request.session.clear()
        return JSONResponse({"success": True})

    return [
        Route("/auth/google", _start_login, methods=["GET"]),
        Route("/auth/google/callback", _oauth_callback, methods=["GET"]),
        Route(FAILURE_PATH, _failure_page, methods=["GET"]),
        Route("/session-status", _session_status, methods=["GET"]),
        Route("/logout", _logout, methods=["POST"]),
    ]
