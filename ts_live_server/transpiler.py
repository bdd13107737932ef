"""
transpiler.py — TypeScript / JSX to browser JavaScript, one file at a time.

Each request compiles a single file through the esbuild executable. The
compiler is a black box: source text goes in on stdin, an ES module with an
inline source map comes out on stdout. Imports are left untouched.

Anything with the same call shape as Esbuild can be passed instead:

    async def compiler(source, loader, sourcefile) -> (code, warnings)

raising CompileError on failure.
"""

import asyncio
import enum
import logging
import os
import shutil

from .errors import CompileError, TranspileDiagnostic

log = logging.getLogger(__name__)


class SourceKind(str, enum.Enum):
    STATIC_BINARY = "static-binary"
    STATIC_TEXT = "static-text"
    COMPILE_PLAIN = "compile-plain"
    COMPILE_TYPED = "compile-typed"
    COMPILE_TYPED_MARKUP = "compile-typed-markup"
    COMPILE_MARKUP = "compile-markup"

    @property
    def compiled(self):
        return self in LOADERS


# esbuild loader per kind: typed vs untyped, JSX on or off
LOADERS = {
    SourceKind.COMPILE_PLAIN: "js",
    SourceKind.COMPILE_TYPED: "ts",
    SourceKind.COMPILE_TYPED_MARKUP: "tsx",
    SourceKind.COMPILE_MARKUP: "jsx",
}

TRANSPILE_EXTENSIONS = {
    ".ts": SourceKind.COMPILE_TYPED,
    ".tsx": SourceKind.COMPILE_TYPED_MARKUP,
    ".jsx": SourceKind.COMPILE_MARKUP,
}

ESBUILD_OPTIONS = (
    "--format=esm",
    "--sourcemap=inline",
    "--target=es2020",
    "--jsx=transform",
    "--jsx-factory=React.createElement",
    "--jsx-fragment=React.Fragment",
    "--log-level=warning",
    "--color=false",
)


def needs_transpilation(path):
    """Return True if the file at path is compiled before it is served."""
    return os.path.splitext(str(path))[1].lower() in TRANSPILE_EXTENSIONS


def find_esbuild():
    """Locate the esbuild executable, honouring $ESBUILD_BINARY."""
    return os.environ.get("ESBUILD_BINARY") or shutil.which("esbuild") or "esbuild"


class Esbuild:
    """Drive the esbuild CLI as a subprocess, one transform per call."""

    def __init__(self, binary=None):
        self.binary = binary or find_esbuild()

    async def __call__(self, source, loader, sourcefile):
        argv = [self.binary, f"--loader={loader}", f"--sourcefile={sourcefile}",
                *ESBUILD_OPTIONS]
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise CompileError(f"esbuild executable not found: {self.binary}") from e

        try:
            stdout, stderr = await proc.communicate(source.encode("utf-8"))
        except asyncio.CancelledError:
            proc.kill()
            await proc.wait()
            raise
        messages = stderr.decode("utf-8", errors="replace").strip()
        if proc.returncode != 0:
            raise CompileError(messages or f"esbuild exited with status {proc.returncode}")
        warnings = [messages] if messages else []
        return stdout.decode("utf-8"), warnings


_default = None


def default_compiler():
    global _default
    if _default is None:
        _default = Esbuild()
    return _default


async def transpile(contents, kind, path, compiler=None):
    """Compile one source file's contents to an ES module.

    Raises TranspileDiagnostic naming path when the compiler reports an
    error. Warnings are logged and the code is returned anyway.
    """
    loader = LOADERS.get(kind)
    if loader is None:
        raise ValueError(f"{kind} is not a transpilable source kind")
    if compiler is None:
        compiler = default_compiler()

    try:
        code, warnings = await compiler(contents, loader, str(path))
    except CompileError as e:
        log.error("Transpilation error for %s: %s", path, e)
        raise TranspileDiagnostic(path, str(e)) from e

    for warning in warnings:
        log.warning("Warnings for %s: %s", path, warning)
    return code
