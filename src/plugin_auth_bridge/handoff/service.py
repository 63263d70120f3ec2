"""HandoffService – business logic of the cross-context login handoff.

Handlers in ``plugin_auth_bridge.servers.auth`` call the thin façade methods
below.  The service is HTTP-agnostic: it never touches requests, cookies or
responses, it only receives the values the HTTP layer extracted.

Correlation protocol
--------------------
1. :meth:`begin_login` signs the plugin session id into the OAuth ``state``.
2. :meth:`recover_session_id` prefers the id kept in the initiation context
   and falls back to ``state`` when the cookie was lost: a signed state is
   unwrapped, any other value is taken as the raw session id.
3. :meth:`complete_login` exchanges the code, issues our own bearer token and
   stores the :class:`~plugin_auth_bridge.handoff.models.Session`.
4. :meth:`session_status` serves the polling plugin.

All secrets are redacted from logs.
"""

from __future__ import annotations

import logging
import secrets
from typing import Any, Final

from plugin_auth_bridge.handoff.clock import Clock, default_clock
from plugin_auth_bridge.handoff.errors import (
    MissingCorrelationIdError,
    SessionExpiredError,
)
from plugin_auth_bridge.handoff.log_utils import get_handoff_logger
from plugin_auth_bridge.handoff.models import Session
from plugin_auth_bridge.handoff.provider import IdentityProvider
from plugin_auth_bridge.handoff.state import (
    ExpiredStateError,
    InvalidStateError,
    build_state,
    parse_state,
)
from plugin_auth_bridge.handoff.store import InMemorySessionStore, SessionStore
from plugin_auth_bridge.handoff.tokens import TokenIssuer

_LOG = logging.getLogger("plugin-auth-bridge.handoff.service")

DEFAULT_INITIATION_TTL_SECONDS: Final[int] = 600


class HandoffService:
    """Application service orchestrating the plugin login handoff."""

    def __init__(
        self,
        *,
        provider: IdentityProvider,
        store: SessionStore | None = None,
        issuer: TokenIssuer | None = None,
        state_secret: str | None = None,
        clock: Clock = default_clock,
        one_time_use: bool = False,
        initiation_ttl_seconds: float = DEFAULT_INITIATION_TTL_SECONDS,
    ) -> None:
        self.provider = provider
        self.store = store or InMemorySessionStore(clock=clock)
        self.issuer = issuer or TokenIssuer()
        self.clock = clock
        self.one_time_use = one_time_use
        self.initiation_ttl_seconds = initiation_ttl_seconds
        if not state_secret:
            # Ephemeral secret – only suitable for single-process dev setups
            state_secret = secrets.token_hex(32)
            _LOG.warning(
                "No state secret configured – generated transient secret. "
                "Logins in flight will fail after a process restart."
            )
        self._state_secret: str = state_secret

    # ------------------------------------------------------------------ #
    # Login                                                              #
    # ------------------------------------------------------------------ #
    def begin_login(self, session_id: str, *, correlation_id: str | None = None) -> str:
        """Return the provider authorize URL carrying *session_id* in ``state``."""
        if not session_id:
            raise ValueError("Session ID required")
        state = build_state(session_id, self._state_secret, clock=self.clock)
        url = self.provider.authorization_url(state)
        get_handoff_logger(session_id=session_id, correlation_id=correlation_id).info(
            "Login started with provider=%s", self.provider.name
        )
        return url

    def recover_session_id(
        self,
        *,
        context_session_id: str | None,
        state: str | None,
    ) -> str:
        """Return the plugin session id for an OAuth callback.

        The initiation context wins.  Otherwise ``state`` is used: a state
        built by :meth:`begin_login` is unwrapped, any other non-empty value
        is the session id echoed back verbatim.

        Raises
        ------
        MissingCorrelationIdError
            If neither source carries an id, or the signed ``state`` is older
            than the initiation TTL.
        """
        if context_session_id:
            return context_session_id
        if not state:
            raise MissingCorrelationIdError()
        try:
            session_id, _ = parse_state(
                state,
                self._state_secret,
                max_age=self.initiation_ttl_seconds,
                clock=self.clock,
            )
        except ExpiredStateError as exc:
            _LOG.warning("Rejected callback state: %s", exc)
            raise MissingCorrelationIdError() from None
        except InvalidStateError:
            _LOG.debug("Callback state is not signed; using it as the session id")
            return state
        _LOG.debug("Session id recovered from state for session_id=%s****", session_id[:6])
        return session_id

    def complete_login(
        self,
        *,
        session_id: str,
        code: str,
        correlation_id: str | None = None,
    ) -> Session:
        """Exchange *code*, issue a bearer token and store the session.

        Blocking (provider I/O); HTTP handlers run it in the thread pool.

        Raises
        ------
        ProviderExchangeError
            If the identity provider exchange fails.
        SessionConflictError
            If *session_id* already holds a live result.
        """
        log = get_handoff_logger(session_id=session_id, correlation_id=correlation_id)
        profile = self.provider.exchange_code(code)
        session = Session(
            session_id=session_id,
            token=self.issuer.issue(),
            user_profile=profile,
            created_at=self.clock(),
        )
        self.store.put(session_id, session)
        log.info("Login completed for user id=%s", profile.id)
        return session

    # ------------------------------------------------------------------ #
    # Polling & logout                                                   #
    # ------------------------------------------------------------------ #
    def session_status(self, session_id: str) -> dict[str, Any]:
        """Return the JSON body served to the polling plugin."""
        try:
            session = self.store.lookup(session_id)
        except SessionExpiredError as exc:
            return {"authenticated": False, "error": str(exc)}

        if session is None:
            return {"authenticated": False}

        if self.one_time_use:
            self.store.delete(session_id)
            _LOG.debug("One-time session consumed session_id=%s****", session_id[:6])
        return session.to_status_payload()

    def logout(self, token: str | None) -> int:
        """Delete the sessions bound to *token*; returns how many were removed."""
        if not token:
            return 0
        removed = self.store.delete_by_token(token)
        _LOG.info("Logout removed %d session(s)", removed)
        return removed

    def sweep_expired(self) -> int:
        return self.store.sweep_expired()
