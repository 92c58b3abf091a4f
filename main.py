"""Development entrypoint: runs the HTTP API, forwarding --host/--port/--reload."""

from __future__ import annotations

import sys

from warzone.cli import main

if __name__ == "__main__":
    sys.exit(main(["serve", *sys.argv[1:]]))
