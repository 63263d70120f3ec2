"""Run the handoff backend with uvicorn."""

from __future__ import annotations

import argparse
import logging

import uvicorn

from plugin_auth_bridge.config import ServerConfig
from plugin_auth_bridge.servers.main import create_app
from plugin_auth_bridge.utils.logging import setup_logging

logger = logging.getLogger("plugin-auth-bridge.cli")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="plugin-auth-bridge",
        description="OAuth login handoff backend for sandboxed plugins.",
    )
    parser.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Port (default: $PORT or 3000)")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    setup_logging(args.log_level)
    config = ServerConfig.from_env()
    port = args.port or config.port
    logger.info("Server running on http://%s:%d", args.host, port)
    uvicorn.run(create_app(config), host=args.host, port=port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
