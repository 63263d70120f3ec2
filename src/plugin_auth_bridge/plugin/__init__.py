"""Sandbox-side half of the login handoff: poller, credential cache and core."""

from .client import BackendClient, build_login_url, new_session_id
from .core import PluginCore
from .credentials import CredentialCache, FileCredentialCache
from .poller import PluginPoller, PollState, PollStatus
from .scheduler import AsyncioScheduler, Scheduler, TimerHandle

__all__ = [
    "AsyncioScheduler",
    "BackendClient",
    "CredentialCache",
    "FileCredentialCache",
    "PluginCore",
    "PluginPoller",
    "PollState",
    "PollStatus",
    "Scheduler",
    "TimerHandle",
    "build_login_url",
    "new_session_id",
]
