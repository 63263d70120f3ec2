"""Plugin Auth Bridge - OAuth login handoff between a sandboxed plugin and a backend."""

__version__ = "0.1.0"
