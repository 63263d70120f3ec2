"""Durable credential storage on the plugin side.

The plugin keeps two keys across reloads: ``authToken`` (our bearer token) and
``userInfo`` (the JSON-serialised profile).  :class:`FileCredentialCache`
stores them in one JSON document:

* **Atomicity** – writes use *temp-file + os.replace*.
* **Tolerance** – a missing or corrupt file reads as "not logged in".

Tokens are never logged.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Final, Protocol, runtime_checkable

from plugin_auth_bridge.handoff.models import PluginCredential

_LOG = logging.getLogger("plugin-auth-bridge.plugin.credentials")

TOKEN_KEY: Final[str] = "authToken"
PROFILE_KEY: Final[str] = "userInfo"


def _atomic_write(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as fh:
        json.dump(data, fh, separators=(",", ":"), sort_keys=True)
    os.replace(tmp, path)  # atomic on POSIX


@runtime_checkable
class CredentialCache(Protocol):
    """Persistent key-value store for the plugin credential."""

    def save(self, token: str, profile: dict[str, Any]) -> None: ...
    def load(self) -> PluginCredential | None: ...
    def clear(self) -> None: ...


class FileCredentialCache(CredentialCache):
    """JSON-file implementation of :class:`CredentialCache`."""

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path).expanduser()

    def save(self, token: str, profile: dict[str, Any]) -> None:
        _atomic_write(self.path, {TOKEN_KEY: token, PROFILE_KEY: json.dumps(profile)})

    def load(self) -> PluginCredential | None:
        if not self.path.exists():
            return None
        try:
            with self.path.open(encoding="utf-8") as fh:
                data = json.load(fh)
            token = data.get(TOKEN_KEY)
            raw_profile = data.get(PROFILE_KEY)
            if not token or not raw_profile:
                return None
            profile = json.loads(raw_profile)
        except (OSError, ValueError, TypeError, AttributeError) as exc:
            _LOG.warning("Ignoring unreadable credential file %s: %s", self.path, exc)
            return None
        if not isinstance(profile, dict):
            return None
        return PluginCredential(auth_token=token, user_profile=profile)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
