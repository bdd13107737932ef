"""
server.py — one listening socket serving files and the reload channel.

HTTP requests and WebSocket upgrades share a port. The websockets server
reads each request line and headers; process_request answers plain GETs
with file contents and lets only upgrades on RELOAD_PATH through to the
handshake. Every connection runs in its own task on the event loop.

    server = await start_server(ServerConfig(root, 5500))
    ...
    server.notify_clients()     # from any thread
    await server.stop()
"""

import asyncio
import errno
import logging
import os
from dataclasses import dataclass
from http import HTTPStatus

import websockets
from websockets.datastructures import Headers
from websockets.http11 import Response

from .content import serve
from .errors import LiveServerError, NotRunning, PortInUse
from .reload import RELOAD_PATH, ReloadChannel
from .resolver import resolve, url_path

log = logging.getLogger(__name__)

DEFAULT_PORT = 5500

STOPPED = "stopped"
STARTING = "starting"
RUNNING = "running"
STOPPING = "stopping"


@dataclass(frozen=True)
class ServerConfig:
    root: str
    port: int = DEFAULT_PORT
    live_reload: bool = True
    host: str = "localhost"

    def __post_init__(self):
        if not 1 <= self.port <= 65535:
            raise ValueError(f"port must be between 1 and 65535, got {self.port}")
        root = os.path.abspath(os.fspath(self.root))
        if not os.path.isdir(root):
            raise ValueError(f"root is not a directory: {root}")
        object.__setattr__(self, "root", root)

    @property
    def url(self):
        return f"http://localhost:{self.port}"


def is_upgrade(request):
    upgrade = ",".join(request.headers.get_all("Upgrade"))
    return "websocket" in upgrade.lower()


def drop(connection):
    """Kill the socket outright; the returned response is never written."""
    connection.transport.abort()
    return connection.respond(HTTPStatus.BAD_REQUEST, "")


def to_response(reply):
    headers = Headers()
    for name, value in reply.headers.items():
        headers[name] = value
    headers["Connection"] = "close"
    return Response(reply.status, HTTPStatus(reply.status).phrase, headers, reply.body)


class LiveServer:
    """Serve config.root over HTTP, with live reload when enabled."""

    def __init__(self, config, compiler=None):
        self.config = config
        self.compiler = compiler
        self.state = STOPPED
        self.server = None
        self.channel = None
        self.loop = None

    def is_running(self):
        return self.state == RUNNING

    @property
    def clients(self):
        return len(self.channel) if self.channel is not None else 0

    async def start(self):
        """Bind the listen socket. Raises PortInUse if the port is taken."""
        if self.state != STOPPED:
            raise LiveServerError(f"Cannot start: server is {self.state}")
        self.state = STARTING

        self.channel = ReloadChannel() if self.config.live_reload else None
        try:
            self.server = await websockets.serve(
                self._connection,
                self.config.host,
                self.config.port,
                process_request=self._process_request,
            )
        except OSError as e:
            self.channel = None
            self.state = STOPPED
            if e.errno == errno.EADDRINUSE:
                raise PortInUse(self.config.port) from e
            raise

        self.loop = asyncio.get_running_loop()
        self.state = RUNNING
        log.info("TS Live Server running at %s", self.config.url)
        log.info("Serving files from: %s", self.config.root)

    async def stop(self):
        """Close all clients, then the listener. Raises NotRunning if stopped."""
        if self.state != RUNNING:
            raise NotRunning()
        self.state = STOPPING
        try:
            if self.channel is not None:
                await self.channel.close()
            self.server.close()
            await self.server.wait_closed()
        finally:
            self.channel = None
            self.server = None
            self.loop = None
            self.state = STOPPED
        log.info("TS Live Server stopped")

    def notify_clients(self):
        """Broadcast a reload to every open client. Safe from any thread."""
        loop = self.loop
        channel = self.channel
        if loop is None or channel is None or not self.is_running():
            return
        try:
            current = asyncio.get_running_loop()
        except RuntimeError:
            current = None
        if current is loop:
            channel.notify_all()
            return
        try:
            loop.call_soon_threadsafe(self._notify)
        except RuntimeError:
            # Loop closed by a concurrent stop().
            pass

    def _notify(self):
        # Re-checked on the loop: stop() may have run since the hop.
        if self.channel is not None:
            self.channel.notify_all()

    async def _connection(self, ws):
        # Only upgrades on RELOAD_PATH with a live channel get this far.
        await self.channel.handler(ws)

    async def _process_request(self, connection, request):
        path = url_path(request.path)
        if is_upgrade(request):
            if path == RELOAD_PATH and self.channel is not None:
                return None
            return drop(connection)
        if path == RELOAD_PATH:
            return drop(connection)

        loop = asyncio.get_running_loop()
        resolved = await loop.run_in_executor(
            None, resolve, self.config.root, request.path)
        reply = await serve(
            resolved, path, self.config.live_reload, self.compiler)
        return to_response(reply)


async def start_server(config, compiler=None):
    """Start a LiveServer and hand it to the caller, who stops it."""
    server = LiveServer(config, compiler)
    await server.start()
    return server
