"""Tests for TokenIssuer."""

from __future__ import annotations

import re

import pytest

from plugin_auth_bridge.handoff.tokens import TokenIssuer


def test_tokens_are_url_safe_and_unique() -> None:
    issuer = TokenIssuer()
    tokens = {issuer.issue() for _ in range(1000)}

    assert len(tokens) == 1000
    for token in tokens:
        # 32 random bytes -> 43 base64url characters
        assert len(token) == 43
        assert re.fullmatch(r"[A-Za-z0-9_-]+", token)


def test_low_entropy_rejected() -> None:
    with pytest.raises(ValueError):
        TokenIssuer(nbytes=8)
