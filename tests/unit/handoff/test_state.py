"""Tests for the signed OAuth ``state`` helpers."""

from __future__ import annotations

import base64

import pytest

from plugin_auth_bridge.handoff.state import (
    ExpiredStateError,
    InvalidStateError,
    build_state,
    parse_state,
)

SECRET = "unit-test-secret"


def fake_clock_factory(now: float):
    return lambda now=now: now


def test_round_trip_keeps_session_id_and_timestamp() -> None:
    state = build_state("abc123", SECRET, clock=fake_clock_factory(1_700_000_000))

    assert parse_state(state, SECRET) == ("abc123", 1_700_000_000)


def test_session_id_may_contain_colons() -> None:
    state = build_state("plugin:abc:123", SECRET, clock=fake_clock_factory(42))

    session_id, ts = parse_state(state, SECRET)
    assert session_id == "plugin:abc:123"
    assert ts == 42


def test_state_is_url_safe_without_padding() -> None:
    state = build_state("abc123", SECRET)
    assert "=" not in state
    assert "+" not in state and "/" not in state


def test_empty_session_id_rejected() -> None:
    with pytest.raises(ValueError):
        build_state("", SECRET)


def test_wrong_secret_rejected() -> None:
    state = build_state("abc123", SECRET)
    with pytest.raises(InvalidStateError, match="signature"):
        parse_state(state, "other-secret")


def test_tampered_session_id_rejected() -> None:
    state = build_state("abc123", SECRET, clock=fake_clock_factory(100))
    raw = base64.urlsafe_b64decode(state + "=" * (-len(state) % 4)).decode()
    forged_raw = raw.replace("abc123", "evil99", 1)
    forged = base64.urlsafe_b64encode(forged_raw.encode()).rstrip(b"=").decode()

    with pytest.raises(InvalidStateError, match="signature"):
        parse_state(forged, SECRET)


@pytest.mark.parametrize("garbage", ["abc123", "%%%", "", "Zm9v"])
def test_unsigned_or_garbage_state_rejected(garbage: str) -> None:
    with pytest.raises(InvalidStateError):
        parse_state(garbage, SECRET)


def test_max_age_enforced() -> None:
    state = build_state("abc123", SECRET, clock=fake_clock_factory(1_000))

    assert parse_state(state, SECRET, max_age=600, clock=fake_clock_factory(1_600))[0] == "abc123"
    with pytest.raises(ExpiredStateError):
        parse_state(state, SECRET, max_age=600, clock=fake_clock_factory(1_601))
