#!/usr/bin/env python3
"""Run the ``GET /world-state`` endpoint.

Usage
-----
::

    python scripts/serve.py --port 8080
    curl 'http://127.0.0.1:8080/world-state?lat=40.4168&lng=-3.7038'

Configuration comes from ``WORLDSTATE_*`` environment variables (see
:meth:`pyworldstate.WorldStateConfig.from_env`).
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from aiohttp import web

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyworldstate import WorldStateConfig  # noqa: E402
from pyworldstate.server import create_app  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve world-state snapshots over HTTP")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8080, help="Port (default: 8080)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    app = create_app(WorldStateConfig.from_env())
    web.run_app(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
