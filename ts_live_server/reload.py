"""
reload.py — live-reload channel between the server and open browser tabs.

Every HTML page served with live reload enabled carries LIVE_RELOAD_SCRIPT,
which opens a WebSocket to RELOAD_PATH on the same host. notify_all() sends
RELOAD_TOKEN to each open socket and the page reloads itself.

The connection set is only touched from the event loop thread, so adds,
removals and broadcasts never interleave.
"""

import asyncio
import logging

import websockets
from websockets.protocol import State

log = logging.getLogger(__name__)

RELOAD_PATH = "/__ts-live-server-ws"
RELOAD_TOKEN = "reload"
RECONNECT_DELAY_MS = 1000

LIVE_RELOAD_SCRIPT = f"""
<script>
(function() {{
    const protocol = window.location.protocol === 'https:' ? 'wss:' : 'ws:';
    const ws = new WebSocket(protocol + '//' + window.location.host + '{RELOAD_PATH}');

    ws.onmessage = function(event) {{
        if (event.data === '{RELOAD_TOKEN}') {{
            window.location.reload();
        }}
    }};

    ws.onclose = function() {{
        console.log('TS Live Server: Connection lost. Attempting to reconnect...');
        setTimeout(function() {{
            window.location.reload();
        }}, {RECONNECT_DELAY_MS});
    }};
}})();
</script>
"""


class ReloadChannel:
    """The set of open reload sockets and the broadcast over them."""

    def __init__(self):
        self.clients = set()
        self.closed = False

    def __len__(self):
        return len(self.clients)

    async def handler(self, ws):
        """Handle a single WebSocket connection until either side closes it."""
        if self.closed:
            await ws.close(1001, "server stopping")
            return

        peer = getattr(ws, "remote_address", None)
        self.clients.add(ws)
        log.debug("Client connected: %s", peer)
        try:
            # Clients never send anything meaningful; drain until close.
            async for _ in ws:
                pass
        except websockets.ConnectionClosed:
            pass
        finally:
            self.clients.discard(ws)
            log.debug("Client disconnected: %s", peer)

    def notify_all(self):
        """Send the reload token to every open client. Returns the count."""
        if self.closed:
            return 0
        targets = [ws for ws in self.clients if ws.state is State.OPEN]
        # broadcast() logs and skips sockets that fail mid-write.
        websockets.broadcast(targets, RELOAD_TOKEN)
        log.debug("Reload sent to %d client(s)", len(targets))
        return len(targets)

    async def close(self):
        """Close every client socket and refuse any later traffic."""
        self.closed = True
        clients = list(self.clients)
        self.clients.clear()
        if clients:
            await asyncio.gather(
                *(ws.close(1001, "server stopping") for ws in clients),
                return_exceptions=True,
            )
