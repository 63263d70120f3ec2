"""Shared fixtures: fake identity provider, fake clock and manual scheduler."""

from __future__ import annotations

from typing import Awaitable, Callable
from urllib.parse import urlencode

import pytest

from plugin_auth_bridge.handoff.errors import ProviderExchangeError
from plugin_auth_bridge.handoff.models import UserProfile


def pytest_addoption(parser):
    """Add integration option to pytest."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests",
    )


# --------------------------------------------------------------------------- #
# Identity provider                                                           #
# --------------------------------------------------------------------------- #
FAKE_AUTHORIZE_URL = "https://idp.example.test/authorize"
FAKE_PROFILE = UserProfile(
    id="user-1",
    display_name="Ada Lovelace",
    email="ada@example.test",
    picture_url="https://idp.example.test/ada.png",
)


class FakeProvider:
    """In-process stand-in for an OAuth provider; records exchanged codes."""

    name = "fake"

    def __init__(self, profile: UserProfile = FAKE_PROFILE) -> None:
        self.profile = profile
        self.fail = False
        self.codes: list[str] = []

    def authorization_url(self, state: str) -> str:
        return f"{FAKE_AUTHORIZE_URL}?{urlencode({'state': state})}"

    def exchange_code(self, code: str) -> UserProfile:
        self.codes.append(code)
        if self.fail:
            raise ProviderExchangeError("Token endpoint returned 400: invalid_grant")
        return self.profile


@pytest.fixture()
def fake_provider() -> FakeProvider:
    return FakeProvider()


# --------------------------------------------------------------------------- #
# Time                                                                        #
# --------------------------------------------------------------------------- #
class FakeClock:
    """Callable clock whose time only moves when told to."""

    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualTimer:
    def __init__(self, interval: float, callback: Callable[[], Awaitable[None]], due: float):
        self.interval = interval
        self.callback = callback
        self.due = due
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class ManualScheduler:
    """Scheduler whose timers fire only from :meth:`advance`.

    Advancing moves the shared :class:`FakeClock` to each due time before
    awaiting the tick, so the poller sees the same time a real loop would.
    """

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.timers: list[ManualTimer] = []

    def call_every(self, interval: float, callback: Callable[[], Awaitable[None]]) -> ManualTimer:
        timer = ManualTimer(interval, callback, self.clock.now + interval)
        self.timers.append(timer)
        return timer

    @property
    def live_timers(self) -> list[ManualTimer]:
        return [t for t in self.timers if not t.cancelled]

    async def advance(self, seconds: float) -> None:
        target = self.clock.now + seconds
        while True:
            due = [t for t in self.live_timers if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.clock.now = timer.due
            timer.due += timer.interval
            await timer.callback()
        self.clock.now = target


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def scheduler(fake_clock: FakeClock) -> ManualScheduler:
    return ManualScheduler(fake_clock)


@pytest.fixture()
def anyio_backend() -> str:
    # The code under test is asyncio-only (see SPEC_FULL.md); don't run on trio.
    return "asyncio"
