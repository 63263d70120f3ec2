"""Cross-context login handoff core package.

This namespace hosts the **HTTP-agnostic** building blocks that let a
sandboxed plugin obtain a credential from a browser-based OAuth 2.0 login.

Sub-modules
-----------
clock
    Test-friendly time abstraction.
state
    Signed ``state`` parameter carrying the plugin session id.
models
    Immutable dataclasses for sessions, profiles and plugin credentials.
store
    Lock-guarded in-memory session store with TTL expiry.
tokens
    Bearer token issuance.
provider
    Identity-provider adapters (Google).
service
    The handoff service orchestrating the above.
errors
    Exception types used by the handoff logic and the plugin poller.
log_utils
    Structured logging helpers (thin wrapper around :pymod:`logging`).

All public objects are re-exported here for convenience.
"""

from __future__ import annotations

from .clock import Clock, default_clock  # noqa: F401
from .errors import (  # noqa: F401
    HandoffError,
    LogoutError,
    MissingCorrelationIdError,
    PollNetworkError,
    PollTimeoutError,
    ProviderExchangeError,
    SessionConflictError,
    SessionExpiredError,
)
from .log_utils import get_handoff_logger  # noqa: F401
from .models import PluginCredential, Session, UserProfile  # noqa: F401
from .provider import GoogleIdentityProvider, IdentityProvider  # noqa: F401
from .service import HandoffService  # noqa: F401
from .state import ExpiredStateError, InvalidStateError, build_state, parse_state  # noqa: F401
from .store import InMemorySessionStore, SessionStore  # noqa: F401
from .tokens import TokenIssuer  # noqa: F401

__all__ = [
    # clock
    "Clock",
    "default_clock",
    # errors
    "HandoffError",
    "LogoutError",
    "MissingCorrelationIdError",
    "PollNetworkError",
    "PollTimeoutError",
    "ProviderExchangeError",
    "SessionConflictError",
    "SessionExpiredError",
    # logging helpers
    "get_handoff_logger",
    # models
    "PluginCredential",
    "Session",
    "UserProfile",
    # provider
    "GoogleIdentityProvider",
    "IdentityProvider",
    # service
    "HandoffService",
    # state
    "ExpiredStateError",
    "InvalidStateError",
    "build_state",
    "parse_state",
    # store
    "InMemorySessionStore",
    "SessionStore",
    # tokens
    "TokenIssuer",
]
