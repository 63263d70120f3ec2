"""HTTP layer of the plugin auth bridge (Starlette)."""

from .main import build_service, create_app

__all__ = ["build_service", "create_app"]
