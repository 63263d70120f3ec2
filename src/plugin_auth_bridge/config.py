"""Environment-driven configuration for the backend and the plugin core."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, Tuple

from plugin_auth_bridge.handoff.models import DEFAULT_SESSION_TTL_SECONDS
from plugin_auth_bridge.handoff.service import DEFAULT_INITIATION_TTL_SECONDS

logger = logging.getLogger("plugin-auth-bridge.config")

_TRUTHY: Final[Tuple[str, ...]] = ("true", "1", "yes", "y", "on")

DEFAULT_PORT: Final[int] = 3000
DEFAULT_CALLBACK_URL: Final[str] = "http://localhost:3000/auth/google/callback"
DEFAULT_SWEEP_INTERVAL_SECONDS: Final[int] = 60 * 60
DEFAULT_POLL_INTERVAL_SECONDS: Final[float] = 3.0
DEFAULT_MAX_POLL_SECONDS: Final[float] = 300.0
DEFAULT_CREDENTIAL_PATH: Final[Path] = Path.home() / ".plugin-auth-bridge" / "credentials.json"


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in _TRUTHY


def _env_number(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default


def _split_csv(value: str | None) -> list[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


@dataclass(frozen=True)
class ServerConfig:
    """Settings of the handoff backend."""

    google_client_id: str = ""
    google_client_secret: str = ""
    callback_url: str = DEFAULT_CALLBACK_URL
    session_secret: str | None = None
    port: int = DEFAULT_PORT
    allowed_origins: list[str] = field(default_factory=list)
    environment: str = "development"
    session_ttl_seconds: float = DEFAULT_SESSION_TTL_SECONDS
    sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS
    initiation_ttl_seconds: float = DEFAULT_INITIATION_TTL_SECONDS
    one_time_sessions: bool = False

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def provider_configured(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        return cls(
            google_client_id=os.getenv("GOOGLE_CLIENT_ID", ""),
            google_client_secret=os.getenv("GOOGLE_CLIENT_SECRET", ""),
            callback_url=os.getenv("CALLBACK_URL") or DEFAULT_CALLBACK_URL,
            session_secret=os.getenv("SESSION_SECRET") or None,
            port=int(_env_number("PORT", DEFAULT_PORT)),
            allowed_origins=_split_csv(os.getenv("ALLOWED_ORIGINS")),
            environment=(os.getenv("APP_ENV") or "development").strip().lower(),
            session_ttl_seconds=_env_number(
                "BRIDGE_SESSION_TTL_SECONDS", DEFAULT_SESSION_TTL_SECONDS
            ),
            sweep_interval_seconds=_env_number(
                "BRIDGE_SWEEP_INTERVAL_SECONDS", DEFAULT_SWEEP_INTERVAL_SECONDS
            ),
            initiation_ttl_seconds=_env_number(
                "BRIDGE_INITIATION_TTL_SECONDS", DEFAULT_INITIATION_TTL_SECONDS
            ),
            one_time_sessions=_truthy(os.getenv("BRIDGE_ONE_TIME_SESSIONS")),
        )


@dataclass(frozen=True)
class PluginConfig:
    """Settings of the sandbox-side plugin core."""

    backend_url: str = f"http://localhost:{DEFAULT_PORT}"
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    max_poll_seconds: float = DEFAULT_MAX_POLL_SECONDS
    credential_path: Path = DEFAULT_CREDENTIAL_PATH

    @classmethod
    def from_env(cls) -> "PluginConfig":
        return cls(
            backend_url=(
                os.getenv("PLUGIN_BACKEND_URL") or f"http://localhost:{DEFAULT_PORT}"
            ).rstrip("/"),
            poll_interval_seconds=_env_number(
                "PLUGIN_POLL_INTERVAL_SECONDS", DEFAULT_POLL_INTERVAL_SECONDS
            ),
            max_poll_seconds=_env_number("PLUGIN_MAX_POLL_SECONDS", DEFAULT_MAX_POLL_SECONDS),
            credential_path=Path(
                os.getenv("PLUGIN_CREDENTIAL_PATH") or DEFAULT_CREDENTIAL_PATH
            ).expanduser(),
        )
