"""Starlette application setup for the plugin auth bridge."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import secrets
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from plugin_auth_bridge.config import ServerConfig
from plugin_auth_bridge.handoff.provider import GoogleIdentityProvider
from plugin_auth_bridge.handoff.service import HandoffService
from plugin_auth_bridge.handoff.store import InMemorySessionStore
from plugin_auth_bridge.servers.auth import build_auth_routes
from plugin_auth_bridge.servers.correlation import CorrelationIdMiddleware, correlation_id_of

logger = logging.getLogger("plugin-auth-bridge.server.main")

SESSION_COOKIE_NAME = "bridge_login"


def build_service(config: ServerConfig, *, state_secret: str | None = None) -> HandoffService:
    """Wire the default Google-backed service from *config*.

    *state_secret* overrides ``config.session_secret`` for signing ``state``.
    """
    provider = GoogleIdentityProvider(
        client_id=config.google_client_id,
        client_secret=config.google_client_secret,
        redirect_uri=config.callback_url,
    )
    return HandoffService(
        provider=provider,
        store=InMemorySessionStore(ttl_seconds=config.session_ttl_seconds),
        state_secret=state_secret or config.session_secret,
        one_time_use=config.one_time_sessions,
        initiation_ttl_seconds=config.initiation_ttl_seconds,
    )


async def _sweep_forever(service: HandoffService, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            service.sweep_expired()
        except Exception as e:  # keep sweeping; the store stays usable
            logger.error(f"Session sweep failed: {e}", exc_info=True)


def create_app(
    config: ServerConfig | None = None,
    *,
    service: HandoffService | None = None,
) -> Starlette:
    """Build the ASGI application.

    *service* may be injected (tests, custom providers); otherwise a
    Google-backed service is built from *config*.
    """
    config = config or ServerConfig.from_env()
    session_secret = config.session_secret
    if not session_secret:
        session_secret = secrets.token_hex(32)
        logger.warning(
            "SESSION_SECRET not set – login cookies and state are signed with a transient key."
        )
    service = service or build_service(config, state_secret=session_secret)

    @asynccontextmanager
    async def main_lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info("Plugin auth bridge starting...")
        logger.info(f"Environment: {config.environment}")
        logger.info(f"Google OAuth configured: {config.provider_configured}")
        logger.info(
            f"One-time session reads: {'ENABLED' if service.one_time_use else 'DISABLED'}"
        )
        sweeper = asyncio.create_task(
            _sweep_forever(service, config.sweep_interval_seconds)
        )
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
            logger.info("Plugin auth bridge shutdown complete.")

    async def health_check(request: Request) -> JSONResponse:
        return JSONResponse(
            {
                "status": "ok",
                "message": "Plugin Auth Bridge",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        )

    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        correlation_id = correlation_id_of(request)
        body: dict[str, str] = {"error": "Something went wrong!"}
        if config.is_production:
            logger.error(
                "Unhandled %s on %s correlation_id=%s",
                type(exc).__name__,
                request.url.path,
                correlation_id,
            )
        else:
            logger.error(
                "Unhandled error on %s correlation_id=%s",
                request.url.path,
                correlation_id,
                exc_info=exc,
            )
            body["message"] = str(exc)
        return JSONResponse(body, status_code=500)

    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=config.allowed_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["Authorization", "Content-Type", "X-Correlation-ID"],
        ),
        Middleware(
            SessionMiddleware,
            secret_key=session_secret,
            session_cookie=SESSION_COOKIE_NAME,
            max_age=int(config.initiation_ttl_seconds),
            same_site="lax",
            https_only=config.is_production,
        ),
        Middleware(CorrelationIdMiddleware),
    ]

    routes = [Route("/", health_check, methods=["GET"]), *build_auth_routes(service)]
    app = Starlette(
        routes=routes,
        middleware=middleware,
        exception_handlers={Exception: unhandled_error},
        lifespan=main_lifespan,
    )
    app.state.service = service
    app.state.config = config
    return app
