"""Tests for AsyncioScheduler against a real event loop."""

from __future__ import annotations

import anyio
import pytest

from plugin_auth_bridge.plugin.scheduler import AsyncioScheduler, Scheduler, TimerHandle


def test_scheduler_satisfies_protocol() -> None:
    assert isinstance(AsyncioScheduler(), Scheduler)


@pytest.mark.anyio
async def test_timer_repeats_until_cancelled_from_inside() -> None:
    ticks: list[int] = []
    done = anyio.Event()
    timer_box: list[TimerHandle] = []

    async def _tick() -> None:
        ticks.append(len(ticks))
        if len(ticks) == 3:
            timer_box[0].cancel()
            done.set()

    timer = AsyncioScheduler().call_every(0.01, _tick)
    timer_box.append(timer)
    assert isinstance(timer, TimerHandle)

    with anyio.fail_after(2):
        await done.wait()
    await anyio.sleep(0.05)

    assert ticks == [0, 1, 2]
    assert timer.cancelled


@pytest.mark.anyio
async def test_external_cancel_stops_before_first_tick() -> None:
    ticks: list[int] = []

    async def _tick() -> None:
        ticks.append(1)

    timer = AsyncioScheduler().call_every(0.05, _tick)
    timer.cancel()
    await anyio.sleep(0.1)

    assert ticks == []


@pytest.mark.anyio
async def test_failing_tick_is_logged_and_timer_continues(caplog) -> None:
    calls: list[int] = []
    done = anyio.Event()

    async def _tick() -> None:
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")
        done.set()

    timer = AsyncioScheduler().call_every(0.01, _tick)
    with anyio.fail_after(2):
        await done.wait()
    timer.cancel()

    assert len(calls) >= 2
    assert "Timer callback failed" in caplog.text


@pytest.mark.anyio
async def test_non_positive_interval_rejected() -> None:
    async def _tick() -> None:
        return None

    with pytest.raises(ValueError):
        AsyncioScheduler().call_every(0, _tick)
