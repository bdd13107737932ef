"""Local development server with on-the-fly TypeScript/JSX and live reload."""

from .content import Reply, serve
from .errors import (
    CompileError,
    LiveServerError,
    NotRunning,
    PortInUse,
    TranspileDiagnostic,
)
from .reload import LIVE_RELOAD_SCRIPT, RELOAD_PATH, RELOAD_TOKEN, ReloadChannel
from .resolver import ResolvedFile, resolve
from .server import LiveServer, ServerConfig, start_server
from .transpiler import Esbuild, SourceKind, needs_transpilation, transpile

__version__ = "0.1.0"

__all__ = [
    "CompileError",
    "Esbuild",
    "LIVE_RELOAD_SCRIPT",
    "LiveServer",
    "LiveServerError",
    "NotRunning",
    "PortInUse",
    "RELOAD_PATH",
    "RELOAD_TOKEN",
    "ReloadChannel",
    "Reply",
    "ResolvedFile",
    "ServerConfig",
    "SourceKind",
    "TranspileDiagnostic",
    "needs_transpilation",
    "resolve",
    "serve",
    "start_server",
    "transpile",
]
