"""Structured logging helpers for handoff components.

This module purposefully restricts **which** contextual attributes are attached
to log records in order to avoid accidentally leaking secrets.  All helpers
ONLY inject the following *non-sensitive* fields:

- ``session_id``     – The plugin session id (first 6 chars kept; the full
  value is a capability and must not reach the logs)
- ``correlation_id`` – Request correlation id set by the HTTP middleware

Usage
-----
>>> from plugin_auth_bridge.handoff.log_utils import get_handoff_logger
>>> log = get_handoff_logger(session_id="abc123def456", correlation_id="f00d")
>>> log.info("Session stored")
INFO plugin-auth-bridge.handoff session_id=abc123 correlation_id=f00d ...

The adapter is a thin wrapper around :class:`logging.LoggerAdapter`.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, MutableMapping


class _HandoffLoggerAdapter(logging.LoggerAdapter):
    """Inject whitelisted handoff context into log records."""

    extra_keys = ("session_id", "correlation_id")

    def __init__(self, logger: logging.Logger, extra: Mapping[str, Any] | None = None):
        extra_clean: MutableMapping[str, Any] = {}
        for k in self.extra_keys:
            if not extra or extra.get(k) is None:
                continue
            if k == "session_id":
                extra_clean[k] = str(extra[k])[:6]
            else:
                extra_clean[k] = extra[k]
        super().__init__(logger, extra_clean)

    def process(self, msg: str, kwargs: MutableMapping[str, Any]):
        if "extra" not in kwargs or kwargs["extra"] is None:
            kwargs["extra"] = {}
        # merge but do not overwrite call-site provided extras
        for k, v in self.extra.items():
            kwargs["extra"].setdefault(k, v)
        return msg, kwargs


def get_handoff_logger(
    *,
    base_logger_name: str = "plugin-auth-bridge.handoff",
    session_id: str | None = None,
    correlation_id: str | None = None,
) -> logging.LoggerAdapter:
    """Return a LoggerAdapter pre-filled with handoff context."""
    logger = logging.getLogger(base_logger_name)
    return _HandoffLoggerAdapter(
        logger,
        {"session_id": session_id, "correlation_id": correlation_id},
    )
