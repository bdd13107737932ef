#!/usr/bin/env python3
# /// script
# requires-python = ">=3.10"
# dependencies = [
#     "websockets>=14",
#     "watchfiles",
# ]
# ///
"""
Local dev server — serves a directory at http://localhost:5500 with
TypeScript/JSX compiled on request and live reload on every change.

Usage:
    uv run serve.py                 # serve the current directory
    uv run serve.py site/ --port 8080
    uv run serve.py --no-open --no-live-reload
"""
import sys

from ts_live_server.cli import main

if __name__ == "__main__":
    sys.exit(main())
