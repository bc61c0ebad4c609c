#!/usr/bin/env python3
"""
Form Template Viewer: launch the web GUI.

Usage:
    python main.py                                   # http://localhost:8000
    python main.py --port 9000                       # http://localhost:9000
    python main.py --host 0.0.0.0                    # listen on all interfaces
    python main.py --api http://forms:8080/api/v1    # upstream forms API
    python main.py --reload                          # auto-reload on code changes
"""

from __future__ import annotations

import argparse
import os
import threading
import webbrowser

import uvicorn

from utils.config import DEFAULT_API_BASE_URL


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Launch the Form Template Viewer web interface.",
    )
    parser.add_argument(
        "--host", default=os.getenv("APP_HOST", "127.0.0.1"),
        help="Bind address (default: 127.0.0.1 or APP_HOST env var)",
    )
    parser.add_argument(
        "--port", type=int, default=int(os.getenv("APP_PORT", "8000")),
        help="Port to listen on (default: 8000 or APP_PORT env var)",
    )
    parser.add_argument(
        "--api", default=None,
        help=f"Forms API base URL (default: {DEFAULT_API_BASE_URL} "
             "or FORMS_API_BASE_URL env var)",
    )
    parser.add_argument(
        "--reload", action="store_true",
        help="Enable auto-reload on file changes (development mode)",
    )
    parser.add_argument(
        "--no-browser", action="store_true",
        help="Don't open a browser window automatically",
    )
    return parser


def main() -> None:
    args = build_parser().parse_args()

    # The app reads its configuration from the environment at import time.
    if args.api is not None:
        os.environ["FORMS_API_BASE_URL"] = args.api
    os.environ["APP_HOST"] = args.host
    os.environ["APP_PORT"] = str(args.port)

    url = f"http://{'localhost' if args.host == '0.0.0.0' else args.host}:{args.port}"
    print(f"Starting Form Template Viewer at {url}")
    print(f"Forms API: {os.getenv('FORMS_API_BASE_URL', DEFAULT_API_BASE_URL)}")
    print()

    if not args.no_browser:
        # Open browser after a short delay to let the server start
        threading.Timer(1.5, webbrowser.open, args=(url,)).start()

    uvicorn.run(
        "viewer.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
