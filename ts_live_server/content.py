"""
content.py — turn a resolved file into an HTTP reply.

Nothing here mutates server state: a reply depends only on the resolved
file, what is on disk at the moment of the read, and the live-reload flag.
"""

import asyncio
import html
from dataclasses import dataclass, field

from .errors import TranspileDiagnostic
from .reload import LIVE_RELOAD_SCRIPT
from .resolver import JAVASCRIPT
from .transpiler import transpile

NO_CACHE = "no-cache"
BODY_CLOSE = "</body>"

NOT_FOUND_PAGE = """<!DOCTYPE html>
<html>
<head>
    <title>404 - Not Found</title>
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            display: flex;
            justify-content: center;
            align-items: center;
            height: 100vh;
            margin: 0;
            background: #1e1e1e;
            color: #fff;
        }}
        .container {{ text-align: center; }}
        h1 {{ font-size: 4em; margin: 0; color: #007acc; }}
        p {{ color: #888; }}
    </style>
</head>
<body>
    <div class="container">
        <h1>404</h1>
        <p>File not found: {path}</p>
    </div>
</body>
</html>
"""


@dataclass
class Reply:
    status: int
    headers: dict = field(default_factory=dict)
    body: bytes = b""


def make_reply(status, content_type, body):
    return Reply(status, {
        "Content-Type": content_type,
        "Cache-Control": NO_CACHE,
        "Content-Length": str(len(body)),
    }, body)


def not_found(request_path):
    page = NOT_FOUND_PAGE.format(path=html.escape(request_path))
    return make_reply(404, "text/html", page.encode("utf-8"))


def inject_live_reload(text):
    """Insert the reload client before the first </body>, else append it."""
    index = text.find(BODY_CLOSE)
    if index < 0:
        return text + LIVE_RELOAD_SCRIPT
    return text[:index] + LIVE_RELOAD_SCRIPT + text[index:]


async def read_file(path):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, path.read_bytes)


async def serve(resolved, request_path, live_reload=True, compiler=None):
    """Build the reply for one request.

    resolved is a ResolvedFile, or None when nothing answers request_path.
    A file that vanishes between resolution and the read is a 404.
    """
    if resolved is None:
        return not_found(request_path)

    try:
        data = await read_file(resolved.path)
    except OSError:
        return not_found(request_path)

    if resolved.kind.compiled:
        source = data.decode("utf-8", errors="replace")
        try:
            code = await transpile(source, resolved.kind, resolved.path, compiler)
        except TranspileDiagnostic as e:
            return make_reply(500, "text/plain", f"Transpilation error: {e}".encode("utf-8"))
        return make_reply(200, JAVASCRIPT, code.encode("utf-8"))

    if resolved.is_html and live_reload:
        text = inject_live_reload(data.decode("utf-8", errors="replace"))
        data = text.encode("utf-8")

    return make_reply(200, resolved.content_type, data)
