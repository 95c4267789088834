#!/usr/bin/env python3
"""Main entry point for the Court Table debate engine."""

import argparse
import logging

from config.settings import get_default_config


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the web server."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def start_web_server(host: str | None = None, port: int | None = None) -> None:
    """Start the FastAPI web server."""
    config = get_default_config()
    setup_logging(config.system.log_level)

    import uvicorn

    from web.api import create_app

    host = host or config.server.host
    port = port or config.server.port

    print("Starting Court Table debate engine...")
    print(f"API Documentation: http://localhost:{port}/docs")
    print(f"WebSocket: ws://localhost:{port}/ws/discussions/{{id}}")

    uvicorn.run(create_app(config), host=host, port=port, log_level="info", access_log=True)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Court Table debate engine")
    parser.add_argument("--host", help="Bind address (default from config)")
    parser.add_argument("--port", type=int, help="Bind port (default from config)")
    args = parser.parse_args()

    start_web_server(args.host, args.port)


if __name__ == "__main__":
    main()
