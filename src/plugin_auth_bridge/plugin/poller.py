"""Sandbox-side polling state machine.

The plugin cannot receive the OAuth redirect, so after sending the user to the
browser it polls ``/session-status`` until the backend has a result::

    IDLE ──start_polling──▶ POLLING ──▶ SUCCEEDED | FAILED | TIMED_OUT ──▶ IDLE

Only one poll loop exists per poller.  ``start_polling`` and ``cancel`` always
cancel the previous timer first, and a response that arrives for a loop that
was cancelled or replaced meanwhile is discarded.

Errors while polling are fail-fast: the first transport error, non-2xx answer
or undecodable body ends the attempt with a ``loginError`` notification.  The
user restarts the login to try again.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Final

import httpx

from plugin_auth_bridge.handoff.clock import Clock, default_clock
from plugin_auth_bridge.handoff.errors import PollNetworkError, PollTimeoutError
from plugin_auth_bridge.plugin.client import StatusClient
from plugin_auth_bridge.plugin.credentials import CredentialCache
from plugin_auth_bridge.plugin.scheduler import AsyncioScheduler, Scheduler, TimerHandle

_LOG = logging.getLogger("plugin-auth-bridge.plugin.poller")

POLL_INTERVAL_SECONDS: Final[float] = 3.0
MAX_POLL_SECONDS: Final[float] = 300.0

STORAGE_ERROR_MESSAGE: Final[str] = "Failed to store credentials. Please try again."

Notifier = Callable[[dict[str, Any]], None]


class PollStatus(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass
class PollState:
    """One login attempt being polled."""

    session_id: str
    started_at: float
    timer: TimerHandle | None = None


class PluginPoller:
    """Poll the backend for a login result, one attempt at a time."""

    def __init__(
        self,
        *,
        client: StatusClient,
        cache: CredentialCache,
        notify: Notifier,
        scheduler: Scheduler | None = None,
        clock: Clock = default_clock,
        interval: float = POLL_INTERVAL_SECONDS,
        max_duration: float = MAX_POLL_SECONDS,
    ) -> None:
        self.client = client
        self.cache = cache
        self.notify = notify
        self.scheduler = scheduler or AsyncioScheduler()
        self.clock = clock
        self.interval = interval
        self.max_duration = max_duration
        self.last_outcome: PollStatus | None = None
        self._state: PollState | None = None

    @property
    def status(self) -> PollStatus:
        return PollStatus.POLLING if self._state is not None else PollStatus.IDLE

    @property
    def is_active(self) -> bool:
        return self._state is not None

    @property
    def state(self) -> PollState | None:
        return self._state

    # ------------------------------------------------------------------ #
    # Control                                                            #
    # ------------------------------------------------------------------ #
    def start_polling(self, session_id: str) -> PollState:
        """Cancel any running loop and start polling for *session_id*."""
        if not session_id:
            raise ValueError("session_id must not be empty")
        self.cancel()
        state = PollState(session_id=session_id, started_at=self.clock())
        self._state = state
        state.timer = self.scheduler.call_every(
            self.interval, functools.partial(self._tick, state)
        )
        _LOG.info("Polling started for session_id=%s****", session_id[:6])
        return state

    def cancel(self) -> bool:
        """Stop the active loop, if any. Returns whether one was running."""
        state = self._state
        if state is None:
            return False
        self._state = None
        if state.timer is not None:
            state.timer.cancel()
        _LOG.debug("Polling cancelled for session_id=%s****", state.session_id[:6])
        return True

    def _finish(self, state: PollState, outcome: PollStatus) -> None:
        if state.timer is not None:
            state.timer.cancel()
        if self._state is state:
            self._state = None
        self.last_outcome = outcome
        _LOG.info("Polling finished: %s", outcome.value)

    # ------------------------------------------------------------------ #
    # Tick                                                               #
    # ------------------------------------------------------------------ #
    async def _tick(self, state: PollState) -> None:
        if self._state is not state:
            return

        if self.clock() - state.started_at > self.max_duration:
            self._finish(state, PollStatus.TIMED_OUT)
            self.notify({"type": "loginError", "error": str(PollTimeoutError())})
            return

        try:
            data = await self.client.session_status(state.session_id)
        except (httpx.HTTPError, ValueError, OSError) as exc:
            if self._state is not state:
                return
            _LOG.warning("Session status poll failed: %s", type(exc).__name__)
            self._finish(state, PollStatus.FAILED)
            self.notify({"type": "loginError", "error": str(PollNetworkError())})
            return

        if self._state is not state:
            _LOG.debug("Discarding status for a cancelled poll")
            return

        if data.get("authenticated"):
            self._complete(state, data)
        elif data.get("error"):
            self._finish(state, PollStatus.FAILED)
            self.notify({"type": "loginError", "error": str(data["error"])})
        # not authenticated yet: wait for the next tick

    def _complete(self, state: PollState, data: dict[str, Any]) -> None:
        token = data.get("token")
        profile = data.get("userProfile") or {}
        if not token:
            self._finish(state, PollStatus.FAILED)
            self.notify({"type": "loginError", "error": str(PollNetworkError())})
            return

        self._finish(state, PollStatus.SUCCEEDED)
        try:
            self.cache.save(token, profile)
        except OSError as exc:
            _LOG.error("Could not persist credential: %s", exc)
            self.last_outcome = PollStatus.FAILED
            self.notify({"type": "loginError", "error": STORAGE_ERROR_MESSAGE})
            return
        self.notify({"type": "loginSuccess", "userProfile": profile})
