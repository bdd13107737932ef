"""
resolver.py — map a request path onto a file under the served root.

A request for x.js is answered by x.ts, x.tsx or x.jsx when one of them
exists, in that order, whether or not x.js itself is on disk. Directories
are answered by their index.html. Anything that would leave the root is
treated as missing.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote

from .transpiler import TRANSPILE_EXTENSIONS, SourceKind

INDEX_FILE = "index.html"
COMPILED_EXTENSION = ".js"
SOURCE_ALTERNATIVES = (".ts", ".tsx", ".jsx")

JAVASCRIPT = "application/javascript"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

MIME_TYPES = {
    ".html": "text/html",
    ".css": "text/css",
    ".js": JAVASCRIPT,
    ".mjs": JAVASCRIPT,
    ".ts": JAVASCRIPT,
    ".tsx": JAVASCRIPT,
    ".jsx": JAVASCRIPT,
    ".json": "application/json",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".webp": "image/webp",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".eot": "application/vnd.ms-fontobject",
    ".otf": "font/otf",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".xml": "application/xml",
}

TEXT_TYPES = {JAVASCRIPT, "application/json", "application/xml", "image/svg+xml"}


@dataclass(frozen=True)
class ResolvedFile:
    path: Path
    kind: SourceKind
    content_type: str

    @property
    def is_html(self):
        return self.content_type == "text/html"


def classify(path):
    """Build the ResolvedFile for an existing file from its extension alone."""
    ext = os.path.splitext(str(path))[1].lower()
    kind = TRANSPILE_EXTENSIONS.get(ext)
    if kind is not None:
        return ResolvedFile(Path(path), kind, JAVASCRIPT)

    content_type = MIME_TYPES.get(ext, DEFAULT_CONTENT_TYPE)
    if content_type.startswith("text/") or content_type in TEXT_TYPES:
        kind = SourceKind.STATIC_TEXT
    else:
        kind = SourceKind.STATIC_BINARY
    return ResolvedFile(Path(path), kind, content_type)


def find_source(base):
    """Return the first existing base + .ts/.tsx/.jsx, checked in order."""
    for ext in SOURCE_ALTERNATIVES:
        candidate = base + ext
        if os.path.isfile(candidate):
            return candidate
    return None


def url_path(request_path):
    """Percent-decoded path of a request target, without query or fragment.

    A leading "//" is kept as part of the path, not read as a host.
    """
    return unquote(request_path.partition("?")[0].partition("#")[0])


def join_root(root, request_path):
    """Join a URL path onto root, or None if the result escapes root."""
    path = url_path(request_path)
    if "\x00" in path:
        return None
    root = os.path.abspath(root)
    joined = os.path.normpath(os.path.join(root, path.lstrip("/")))
    if joined != root and not joined.startswith(root.rstrip(os.sep) + os.sep):
        return None
    return joined


def resolve(root, request_path):
    """Find the file that answers request_path, or None when there is none."""
    path = join_root(root, request_path)
    if path is None:
        return None

    if os.path.isdir(path):
        path = os.path.join(path, INDEX_FILE)

    base, ext = os.path.splitext(path)
    if ext == COMPILED_EXTENSION:
        path = find_source(base) or path

    if not os.path.isfile(path):
        return None
    return classify(path)
