"""State parameter helpers for the OAuth 2.0 web-flow.

The plugin's session id has to survive the round-trip through the identity
provider even when the browser drops the initiation cookie on the cross-site
redirect.  It therefore travels in the OAuth ``state`` parameter, encoded
together with:

1. ``session_id`` – the plugin-chosen correlation id
2. ``ts`` – UNIX timestamp produced by an injected :pyclass:`~plugin_auth_bridge.handoff.clock.Clock`
3. ``sig`` – HMAC-SHA256 signature of the first two fields using the
   application secret

Format (plain text before base64-url encoding)::

    <session_id>:<ts>:<sig>

The session id itself may contain ``:``; parsing splits from the right.

Logging
-------
Only the (truncated) session id is ever logged; the full state string as well
as the HMAC secret are *never* written to logs.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import logging
from hashlib import sha256
from typing import Final

from plugin_auth_bridge.handoff.clock import Clock, default_clock

_LOG = logging.getLogger("plugin-auth-bridge.handoff.state")

_SIG_LEN: Final[int] = 16  # characters kept from hex digest


def _b64e(data: str) -> str:
    """Base64-URL encode *without* padding."""
    return base64.urlsafe_b64encode(data.encode("utf-8")).rstrip(b"=").decode("ascii")


def _b64d(data: str) -> str:
    """Decode base64-URL data that may lack padding."""
    pad_len = (-len(data)) % 4
    return base64.urlsafe_b64decode(data + "=" * pad_len).decode("utf-8")


def _sign(message: str, secret: str) -> str:
    digest = hmac.new(secret.encode(), msg=message.encode(), digestmod=sha256).hexdigest()
    return digest[:_SIG_LEN]


def build_state(session_id: str, secret: str, *, clock: Clock = default_clock) -> str:
    """Build the state string for an OAuth authorization request.

    Parameters
    ----------
    session_id:
        Plugin session id to carry through the provider redirect.
    secret:
        Application secret used to sign the state.
    clock:
        Time source; defaults to :pyfunc:`~plugin_auth_bridge.handoff.clock.default_clock`.

    Returns
    -------
    str
        URL-safe state value.
    """
    if not session_id:
        raise ValueError("session_id must not be empty")
    ts = int(clock())
    payload = f"{session_id}:{ts}"
    sig = _sign(payload, secret)
    encoded = _b64e(f"{payload}:{sig}")
    _LOG.debug("Built state for session_id=%s****", session_id[:6])
    return encoded


class InvalidStateError(Exception):
    """Raised when an incoming state is malformed, forged or too old."""


class ExpiredStateError(InvalidStateError):
    """Raised when a correctly signed state is older than the allowed age."""


def parse_state(
    state: str,
    secret: str,
    *,
    max_age: float | None = None,
    clock: Clock = default_clock,
) -> tuple[str, int]:
    """Validate and decode a state received in the OAuth callback.

    Parameters
    ----------
    state:
        The base64-url encoded state string from the callback request.
    secret:
        Application secret (same value used in :pyfunc:`build_state`).
    max_age:
        Reject states older than this many seconds. ``None`` disables the check.
    clock:
        Time source for the age check.

    Returns
    -------
    tuple[str, int]
        ``(session_id, ts)`` on success.

    Raises
    ------
    InvalidStateError
        If the state is malformed or the signature does not validate.
    ExpiredStateError
        If a correctly signed state is older than *max_age*.
    """
    try:
        decoded = _b64d(state)
    except (ValueError, binascii.Error):  # UnicodeDecodeError is a ValueError
        raise InvalidStateError("state cannot be decoded") from None

    parts = decoded.rsplit(":", 2)
    if len(parts) != 3:
        raise InvalidStateError("state has an unexpected format")

    session_id, ts_str, sig = parts
    if not session_id or not ts_str.isdigit():
        raise InvalidStateError("state missing fields")

    expected_sig = _sign(f"{session_id}:{ts_str}", secret)
    if not hmac.compare_digest(sig, expected_sig):
        raise InvalidStateError("state signature mismatch")

    ts = int(ts_str)
    if max_age is not None and (clock() - ts) > max_age:
        raise ExpiredStateError("state expired")

    _LOG.debug("Parsed state for session_id=%s****", session_id[:6])
    return session_id, ts
