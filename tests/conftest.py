import asyncio
import contextlib
import socket

import pytest

from ts_live_server.errors import CompileError
from ts_live_server.server import LiveServer, ServerConfig


class FakeCompiler:
    """Stands in for esbuild: records calls and echoes the source back."""

    def __init__(self, fail=None, warnings=()):
        self.fail = fail
        self.warnings = list(warnings)
        self.calls = []

    async def __call__(self, source, loader, sourcefile):
        self.calls.append((source, loader, sourcefile))
        if self.fail:
            raise CompileError(self.fail)
        return f"// compiled as {loader}\n{source}", list(self.warnings)


@pytest.fixture
def compiler():
    return FakeCompiler()


@pytest.fixture
def site(tmp_path):
    """A served root with an HTML page, a TSX app and a few assets."""
    root = tmp_path / "site"
    root.mkdir()
    (root / "index.html").write_text(
        "<html><body><h1>Hello</h1><script type=\"module\" src=\"/app.js\"></script>"
        "</body></html>"
    )
    (root / "app.tsx").write_text("export const App = () => <div>hi</div>;\n")
    (root / "style.css").write_text("body { color: red; }\n")
    (root / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x01\x02")
    docs = root / "docs"
    docs.mkdir()
    (docs / "index.html").write_text("<p>docs</p>")
    return root


def free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@contextlib.asynccontextmanager
async def running(root, compiler=None, live_reload=True, port=None):
    config = ServerConfig(str(root), port or free_port(), live_reload, host="127.0.0.1")
    server = LiveServer(config, compiler)
    await server.start()
    try:
        yield server
    finally:
        if server.is_running():
            await server.stop()


class HttpReply:
    def __init__(self, raw):
        head, _, self.body = raw.partition(b"\r\n\r\n")
        lines = head.decode("latin-1").split("\r\n")
        self.status = int(lines[0].split()[1])
        self.headers = {}
        for line in lines[1:]:
            name, _, value = line.partition(":")
            self.headers[name.strip().lower()] = value.strip()


async def raw_request(port, path, extra_headers=()):
    """Send one GET and return everything the server writes before closing."""
    reader, writer = await asyncio.open_connection("127.0.0.1", port)
    lines = [f"GET {path} HTTP/1.1", f"Host: 127.0.0.1:{port}", *extra_headers, "", ""]
    writer.write("\r\n".join(lines).encode("latin-1"))
    await writer.drain()
    try:
        return await asyncio.wait_for(reader.read(), 5)
    except ConnectionResetError:
        return b""
    finally:
        writer.close()


async def http_get(port, path):
    return HttpReply(await raw_request(port, path))


async def wait_until(predicate, timeout=5.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)
