"""
lumactl command line.

Usage:
    python -m lumactl serve                 # HTTP API + sensing loop
    python -m lumactl serve --port 8080
    python -m lumactl run                   # headless sensing loop

Sensors, backlight and storage are configured through environment
variables or a .env file (see lumactl.core.config.Settings).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys


def run_headless() -> int:
    from .core.log import configure_logging
    from .domain.errors import LumactlError
    from . import main

    configure_logging()
    log = logging.getLogger("lumactl")

    async def _run() -> None:
        sensing = await main.prepare()
        try:
            await sensing.run()
        finally:
            main.shutdown_drivers()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        log.info("Shutting down")
    except LumactlError as e:
        log.critical("Exiting: %s", e)
        return 1
    return 0


def main() -> None:
    p = argparse.ArgumentParser(prog="lumactl", description="Adaptive display brightness controller")
    sub = p.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API together with the sensing loop")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    sub.add_parser("run", help="Run the sensing loop without the HTTP API")

    args = p.parse_args()

    if args.command == "serve":
        import uvicorn

        uvicorn.run("lumactl.main:app", host=args.host, port=args.port)
        return

    sys.exit(run_headless())


if __name__ == "__main__":
    main()
