"""Concurrency-safe, in-memory session storage for the login handoff.

This module introduces a *narrow* storage interface (:class:`SessionStore`)
and a process-local implementation (:class:`InMemorySessionStore`).  The
design follows these goals:

* **Encapsulation** – the mapping is private; callers only see the operations
  below.  Iteration happens exclusively inside :meth:`sweep_expired` and
  :meth:`delete_by_token`.
* **Concurrency** – every operation holds one ``threading.Lock`` because the
  OAuth callback writes from the thread pool while status polls read on the
  event loop.
* **Write-once** – a live entry is never replaced; expired entries may be.
* **Lazy expiry** – reads evict entries older than the TTL, the periodic sweep
  bounds memory for sessions nobody polls again.

Nothing survives a process restart.
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol, runtime_checkable

from plugin_auth_bridge.handoff.clock import Clock, default_clock
from plugin_auth_bridge.handoff.errors import SessionConflictError, SessionExpiredError
from plugin_auth_bridge.handoff.models import DEFAULT_SESSION_TTL_SECONDS, Session

_LOG = logging.getLogger("plugin-auth-bridge.handoff.store")


# --------------------------------------------------------------------------- #
# public interface                                                            #
# --------------------------------------------------------------------------- #


@runtime_checkable
class SessionStore(Protocol):
    """Minimal storage contract for handoff sessions."""

    def put(self, session_id: str, session: Session) -> None: ...
    def get(self, session_id: str) -> Session | None: ...
    def lookup(self, session_id: str) -> Session | None: ...
    def delete(self, session_id: str) -> None: ...
    def delete_by_token(self, token: str) -> int: ...

    # ----- maintenance ----------------------------------------------------- #
    def sweep_expired(self) -> int: ...


# --------------------------------------------------------------------------- #
# In-memory implementation                                                    #
# --------------------------------------------------------------------------- #


class InMemorySessionStore(SessionStore):
    """Lock-guarded dictionary implementation of :class:`SessionStore`."""

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_SESSION_TTL_SECONDS,
        clock: Clock = default_clock,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _expired(self, session: Session) -> bool:
        return session.is_expired(ttl_seconds=self.ttl_seconds, clock=self._clock)

    # ---------------- writes --------------------------------------------- #
    def put(self, session_id: str, session: Session) -> None:
        """Store *session* under *session_id*.

        Raises
        ------
        SessionConflictError
            If a live (non-expired) entry already exists for *session_id*.
        """
        with self._lock:
            existing = self._sessions.get(session_id)
            if existing is not None and not self._expired(existing):
                raise SessionConflictError(session_id=session_id)
            self._sessions[session_id] = session

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def delete_by_token(self, token: str) -> int:
        """Remove every session whose bearer token equals *token*."""
        if not token:
            return 0
        with self._lock:
            matches = [sid for sid, s in self._sessions.items() if s.token == token]
            for sid in matches:
                del self._sessions[sid]
        return len(matches)

    # ---------------- reads ---------------------------------------------- #
    def lookup(self, session_id: str) -> Session | None:
        """Return the live session, ``None`` if unknown.

        Raises
        ------
        SessionExpiredError
            If the entry outlived the TTL.  The entry is evicted first, so the
            next lookup returns ``None``.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if self._expired(session):
                del self._sessions[session_id]
                _LOG.debug("Evicted expired session_id=%s****", session_id[:6])
                raise SessionExpiredError()
            return session

    def get(self, session_id: str) -> Session | None:
        """Like :meth:`lookup` but reports expired sessions as absent."""
        try:
            return self.lookup(session_id)
        except SessionExpiredError:
            return None

    # ---------------- maintenance ---------------------------------------- #
    def sweep_expired(self) -> int:
        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if self._expired(s)]
            for sid in expired:
                del self._sessions[sid]
        if expired:
            _LOG.info("Swept %d expired session(s)", len(expired))
        return len(expired)
