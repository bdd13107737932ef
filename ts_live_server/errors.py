"""Exceptions raised by the live server."""


class LiveServerError(Exception):
    """Base class for live server failures."""


class PortInUse(LiveServerError):
    """The listen port is already bound by another process."""

    def __init__(self, port):
        self.port = port
        super().__init__(f"Port {port} is already in use")


class NotRunning(LiveServerError):
    """stop() was called on a server that is not running."""

    def __init__(self, message="TS Live Server is not running."):
        super().__init__(message)


class CompileError(LiveServerError):
    """The external compiler rejected its input."""


class TranspileDiagnostic(LiveServerError):
    """A source file failed to transpile.

    Carries the offending file path and the compiler's message. This is a
    per-request outcome, rendered as a 500 response.
    """

    def __init__(self, path, message):
        self.path = path
        self.message = message
        super().__init__(f"Failed to transpile {path}: {message}")
