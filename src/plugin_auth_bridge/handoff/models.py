"""Typed, immutable records used by the handoff core."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from plugin_auth_bridge.handoff.clock import Clock, default_clock

# Sessions are kept for 24 hours unless logged out earlier
DEFAULT_SESSION_TTL_SECONDS: int = 24 * 60 * 60


@dataclass(frozen=True, slots=True)
class UserProfile:
    """Identity returned by the provider, reduced to what the plugin shows."""

    id: str
    display_name: str
    email: str | None = None
    picture_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "displayName": self.display_name,
            "email": self.email,
            "pictureUrl": self.picture_url,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserProfile":
        return cls(
            id=str(data["id"]),
            display_name=str(data.get("displayName") or ""),
            email=data.get("email"),
            picture_url=data.get("pictureUrl"),
        )


@dataclass(frozen=True, slots=True)
class Session:
    """Authentication result stored under a plugin-chosen session id."""

    session_id: str
    token: str
    user_profile: UserProfile
    created_at: float
    authenticated: bool = True

    def is_expired(
        self,
        *,
        ttl_seconds: float = DEFAULT_SESSION_TTL_SECONDS,
        clock: Clock = default_clock,
    ) -> bool:
        """Return *True* if the session outlived *ttl_seconds*."""
        return (clock() - self.created_at) > ttl_seconds

    def to_status_payload(self) -> dict[str, Any]:
        """Body served to the polling plugin for a valid session."""
        return {
            "authenticated": self.authenticated,
            "token": self.token,
            "userProfile": self.user_profile.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class PluginCredential:
    """Credential the plugin keeps across reloads."""

    auth_token: str
    user_profile: dict[str, Any]
