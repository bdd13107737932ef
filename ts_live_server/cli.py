"""
cli.py — run the live server from a terminal.

Usage:
    ts-live-server                      # serve the current directory on 5500
    ts-live-server path/to/site         # serve another directory
    ts-live-server --port 8080 --no-open
    python -m ts_live_server --no-live-reload

Requests for x.js are answered by x.ts / x.tsx / x.jsx when present,
compiled with esbuild (set ESBUILD_BINARY to use a specific binary).
"""

import argparse
import asyncio
import logging
import sys
import webbrowser

from watchfiles import awatch

from .errors import NotRunning, PortInUse
from .server import DEFAULT_PORT, LiveServer, ServerConfig

log = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="ts-live-server",
        description="Serve a directory with on-the-fly TypeScript/JSX compilation "
                    "and live reload.",
    )
    parser.add_argument("root", nargs="?", default=".",
                        help="directory to serve (default: current directory)")
    parser.add_argument("-p", "--port", type=int, default=DEFAULT_PORT,
                        help=f"port to listen on (default: {DEFAULT_PORT})")
    parser.add_argument("--host", default="localhost",
                        help="interface to bind (default: localhost)")
    parser.add_argument("--no-live-reload", dest="live_reload", action="store_false",
                        help="do not inject the reload client or watch for changes")
    parser.add_argument("--no-open", dest="open", action="store_false",
                        help="do not open a browser on start")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="log connections and broadcasts")
    return parser.parse_args(argv)


def build_config(args):
    return ServerConfig(args.root, args.port, args.live_reload, args.host)


async def watch(server, root, stop_event=None):
    """Broadcast a reload for every batch of changes under root."""
    async for changes in awatch(root, watch_filter=None, stop_event=stop_event):
        log.debug("%d change(s) under %s", len(changes), root)
        server.notify_clients()


async def run(config, open_browser=True):
    server = LiveServer(config)
    try:
        await server.start()
    except PortInUse as e:
        print(f"Failed to start server: {e}")
        return 1

    print(f"TS Live Server running at {config.url}")
    print(f"Serving files from: {config.root}")
    if config.live_reload:
        print("Live reload enabled.\n")
    if open_browser:
        webbrowser.open(config.url)

    try:
        if config.live_reload:
            await watch(server, config.root)
        else:
            await asyncio.Future()  # run forever
    finally:
        try:
            await server.stop()
        except NotRunning as e:
            log.warning("%s", e)
    return 0


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        config = build_config(args)
    except ValueError as e:
        print(f"Invalid configuration: {e}")
        return 2

    try:
        return asyncio.run(run(config, open_browser=args.open))
    except KeyboardInterrupt:
        print("\nServer stopped.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
