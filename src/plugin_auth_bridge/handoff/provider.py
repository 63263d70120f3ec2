"""Identity-provider adapters.

The handoff core only needs two things from a provider: an authorize URL
carrying our ``state`` and a way to turn the returned authorization code into
a :class:`~plugin_auth_bridge.handoff.models.UserProfile`.  Everything else of
the OAuth 2.0 authorization-code flow stays inside the adapter.

The provider's own access token is used once to read the profile and then
dropped; the plugin receives a bearer token of our own instead.
"""

from __future__ import annotations

import logging
from typing import Any, Final, Protocol, runtime_checkable
from urllib.parse import urlencode

import requests

from plugin_auth_bridge.handoff.errors import ProviderExchangeError
from plugin_auth_bridge.handoff.models import UserProfile

_LOG = logging.getLogger("plugin-auth-bridge.handoff.provider")

GOOGLE_AUTHORIZE_URL: Final[str] = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL: Final[str] = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL: Final[str] = "https://www.googleapis.com/oauth2/v2/userinfo"
GOOGLE_DEFAULT_SCOPE: Final[str] = "profile email"

_TIMEOUT: Final[tuple[int, int]] = (5, 20)


@runtime_checkable
class IdentityProvider(Protocol):
    """What the handoff service needs from an OAuth 2.0 provider."""

    name: str

    def authorization_url(self, state: str) -> str: ...

    def exchange_code(self, code: str) -> UserProfile: ...


class GoogleIdentityProvider:
    """Google OAuth 2.0 authorization-code flow backed by ``requests``."""

    name = "google"

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        scope: str = GOOGLE_DEFAULT_SCOPE,
        authorize_url: str = GOOGLE_AUTHORIZE_URL,
        token_url: str = GOOGLE_TOKEN_URL,
        userinfo_url: str = GOOGLE_USERINFO_URL,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scope = scope
        self.authorize_base = authorize_url
        self.token_url = token_url
        self.userinfo_url = userinfo_url

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def authorization_url(self, state: str) -> str:
        if not self.client_id:
            raise ValueError("google OAuth environment not configured")
        query_params: dict[str, str] = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.scope,
            "state": state,
        }
        return f"{self.authorize_base}?{urlencode(query_params)}"

    def exchange_code(self, code: str) -> UserProfile:
        """Exchange *code* for tokens and fetch the user's profile.

        Raises
        ------
        ProviderExchangeError
            On transport failures, non-2xx answers or incomplete payloads.
        """
        payload: dict[str, str] = {
            "grant_type": "authorization_code",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
            "redirect_uri": self.redirect_uri,
        }
        try:
            resp = requests.post(self.token_url, data=payload, timeout=_TIMEOUT)
        except requests.RequestException as exc:
            raise ProviderExchangeError(f"Token request failed: {exc}") from exc

        if not resp.ok:
            raise ProviderExchangeError(
                f"Token endpoint returned {resp.status_code}: {resp.text[:200]}"
            )

        access_token = _json_object(resp, "Token").get("access_token")
        if not access_token:
            raise ProviderExchangeError("Token response missing access_token")

        try:
            info_resp = requests.get(
                self.userinfo_url,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise ProviderExchangeError(f"Userinfo request failed: {exc}") from exc

        if not info_resp.ok:
            raise ProviderExchangeError(
                f"Userinfo endpoint returned {info_resp.status_code}"
            )

        profile = _profile_from_userinfo(_json_object(info_resp, "Userinfo"))
        _LOG.info("Exchanged Google authorization code for user id=%s", profile.id)
        return profile


def _json_object(resp: requests.Response, what: str) -> dict[str, Any]:
    try:
        data = resp.json()
    except ValueError as exc:  # requests.JSONDecodeError is a ValueError
        raise ProviderExchangeError(f"{what} response is not JSON") from exc
    if not isinstance(data, dict):
        raise ProviderExchangeError(f"{what} response is not a JSON object")
    return data


def _profile_from_userinfo(data: dict[str, Any]) -> UserProfile:
    # v2 userinfo uses "id", the OIDC endpoint uses "sub"
    user_id = data.get("id") or data.get("sub")
    if not user_id:
        raise ProviderExchangeError("Userinfo response missing user id")
    return UserProfile(
        id=str(user_id),
        display_name=data.get("name") or data.get("email") or str(user_id),
        email=data.get("email"),
        picture_url=data.get("picture"),
    )
