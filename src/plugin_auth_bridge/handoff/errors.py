"""Exception types raised by the handoff core and the plugin poller.

Only lightweight, **data-carrying** exceptions live here so that web and plugin
layers can turn them into failure pages, JSON bodies or UI notifications.
None of them ever carries a token, authorization code or state value.
"""

from __future__ import annotations


class HandoffError(RuntimeError):
    """Base class for every failure of the cross-context login handoff."""

    code: str = "handoff_error"
    default_message: str = "Authentication handoff failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    def to_payload(self) -> dict[str, str]:
        """Return a JSON-serialisable payload **without secrets**."""
        return {"error": self.code, "message": str(self)}


class MissingCorrelationIdError(HandoffError):
    """No plugin session id could be recovered at the OAuth callback."""

    code = "missing_correlation_id"
    default_message = "No plugin session could be correlated with this login."


class ProviderExchangeError(HandoffError):
    """The identity provider rejected the login or the code exchange failed."""

    code = "provider_exchange_failed"
    default_message = "The identity provider exchange failed."


class SessionConflictError(HandoffError):
    """A live session already holds a result for this session id."""

    code = "session_conflict"
    default_message = "Session ID already holds an authentication result."

    def __init__(self, *, session_id: str, message: str | None = None) -> None:
        super().__init__(message)
        self.session_id: str = session_id

    def to_payload(self) -> dict[str, str]:
        payload = super().to_payload()
        payload["session_id"] = self.session_id[:6]
        return payload


class SessionExpiredError(HandoffError):
    """The session existed but outlived its TTL; it has been evicted."""

    code = "session_expired"
    default_message = "Session expired"


class PollTimeoutError(HandoffError):
    """The plugin gave up waiting for the browser login to complete."""

    code = "poll_timeout"
    default_message = "Authentication timeout. Please try again."


class PollNetworkError(HandoffError):
    """A status poll failed; polling stops without retrying."""

    code = "poll_network_error"
    default_message = "Network error. Please check your connection and try again."


class LogoutError(HandoffError):
    """The local credential could not be cleared during logout."""

    code = "logout_failed"
    default_message = "Failed to logout. Please try again."
