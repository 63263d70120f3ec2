"""Clock abstraction for testable time handling in the handoff core.

A `Clock` is any callable returning the current UNIX timestamp as ``float``.
Session expiry, state freshness and poll timeouts MUST depend on an injected
``Clock`` instance rather than calling ``time.time()`` directly.

Example
-------
>>> from plugin_auth_bridge.handoff.clock import default_clock
>>> now = default_clock()
>>> isinstance(now, float)
True
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Callable protocol returning *seconds* since the UNIX epoch."""

    def __call__(self) -> float: ...


def default_clock() -> float:
    """Default implementation that delegates to ``time.time()``."""
    return time.time()
