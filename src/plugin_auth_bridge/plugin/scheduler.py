"""Timer abstraction for the plugin poller.

The poller never sleeps itself; it asks a :class:`Scheduler` for a repeating
timer and keeps the returned :class:`TimerHandle` so it can cancel it.  Tests
inject a manual scheduler and drive ticks explicitly.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Protocol, runtime_checkable

_LOG = logging.getLogger("plugin-auth-bridge.plugin.scheduler")

TickCallback = Callable[[], Awaitable[None]]


@runtime_checkable
class TimerHandle(Protocol):
    """Cancellable repeating timer."""

    @property
    def cancelled(self) -> bool: ...

    def cancel(self) -> None: ...


@runtime_checkable
class Scheduler(Protocol):
    """Schedule *callback* every *interval* seconds, first run after one interval."""

    def call_every(self, interval: float, callback: TickCallback) -> TimerHandle: ...


def _current_task() -> asyncio.Task | None:
    try:
        return asyncio.current_task()
    except RuntimeError:  # no running loop
        return None


class _AsyncioTimer:
    def __init__(self) -> None:
        self._task: asyncio.Task | None = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        # A tick cancelling its own timer must finish normally; the loop
        # notices the flag before sleeping again.
        if self._task is not None and self._task is not _current_task():
            self._task.cancel()


class AsyncioScheduler:
    """:class:`Scheduler` running ticks as an asyncio task.

    Ticks never overlap: the next interval starts after the previous tick
    returned.  Exceptions escaping a tick are logged and the timer keeps
    running.
    """

    def call_every(self, interval: float, callback: TickCallback) -> _AsyncioTimer:
        if interval <= 0:
            raise ValueError("interval must be positive")
        timer = _AsyncioTimer()
        timer._task = asyncio.get_running_loop().create_task(
            self._run(timer, interval, callback)
        )
        return timer

    @staticmethod
    async def _run(timer: _AsyncioTimer, interval: float, callback: TickCallback) -> None:
        while not timer.cancelled:
            await asyncio.sleep(interval)
            if timer.cancelled:
                break
            try:
                await callback()
            except Exception:
                _LOG.exception("Timer callback failed")
