"""
Unit tests for FileCredentialCache.

Coverage:
* on-disk layout (``authToken`` + JSON-encoded ``userInfo``)
* atomic write leaves no temp file behind
* missing / corrupt / partial files read as "not logged in"
* idempotent clear
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from plugin_auth_bridge.plugin.credentials import CredentialCache, FileCredentialCache

PROFILE = {"id": "user-1", "displayName": "Ada", "email": None, "pictureUrl": None}


@pytest.fixture()
def path(tmp_path: Path) -> Path:
    return tmp_path / "nested" / "credentials.json"


def test_cache_satisfies_protocol(path: Path) -> None:
    assert isinstance(FileCredentialCache(path), CredentialCache)


def test_save_writes_both_keys(path: Path) -> None:
    cache = FileCredentialCache(path)
    cache.save("tok-1", PROFILE)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["authToken"] == "tok-1"
    assert json.loads(data["userInfo"]) == PROFILE
    assert not list(path.parent.glob("*.tmp"))

    credential = cache.load()
    assert credential is not None
    assert credential.auth_token == "tok-1"
    assert credential.user_profile == PROFILE


def test_save_overwrites_previous_credential(path: Path) -> None:
    cache = FileCredentialCache(path)
    cache.save("tok-1", PROFILE)
    cache.save("tok-2", {**PROFILE, "displayName": "Grace"})

    credential = cache.load()
    assert credential.auth_token == "tok-2"
    assert credential.user_profile["displayName"] == "Grace"


def test_load_missing_file(path: Path) -> None:
    assert FileCredentialCache(path).load() is None


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        "[]",
        json.dumps({"authToken": "tok-1"}),
        json.dumps({"authToken": "", "userInfo": json.dumps(PROFILE)}),
        json.dumps({"authToken": "tok-1", "userInfo": "{broken"}),
        json.dumps({"authToken": "tok-1", "userInfo": json.dumps(["a"])}),
    ],
)
def test_load_unusable_content(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True)
    path.write_text(content, encoding="utf-8")

    assert FileCredentialCache(path).load() is None


def test_clear_is_idempotent(path: Path) -> None:
    cache = FileCredentialCache(path)
    cache.save("tok-1", PROFILE)

    cache.clear()
    cache.clear()

    assert not path.exists()
    assert cache.load() is None


def test_user_path_is_expanded(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    cache = FileCredentialCache("~/creds.json")
    assert cache.path == tmp_path / "creds.json"
