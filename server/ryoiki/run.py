import argparse
import logging
import os
import threading
import time
import webbrowser
from pathlib import Path

import uvicorn

from ryoiki.config import load_config
from ryoiki.services import analysis, cache
from ryoiki.services.report import render_stats_report


def _open_browser_later(url: str, delay: float = 1.0) -> None:
    """
    Open the default web browser after a short delay.

    This lets the server start first so the page is reachable.
    """

    def _worker() -> None:
        time.sleep(delay)
        try:
            webbrowser.open(url)
        except webbrowser.Error:
            # Don't crash the CLI if opening the browser fails (e.g. headless env)
            pass

    thread = threading.Thread(target=_worker, daemon=True)
    thread.start()


def _scan_only(project_root: str) -> None:
    """Scan, write the artifacts and print the stats table. No server."""
    root = Path(project_root)
    config = load_config(root)
    try:
        result = analysis.scan(config, root)
    except analysis.ScanError as e:
        raise SystemExit(f"Scan failed: {e}")
    cache.save_analysis(config, root, result)
    print(render_stats_report(result.summary, config.tracked_language), end="")


def main(argv: list[str] | None = None) -> None:
    """
    Entry point for the CLI.

    - Uses the current working directory (or a provided path) as the project root.
    - With --scan-only, writes the metrics artifacts and exits.
    - Otherwise starts the FastAPI server and opens the browser.
    """
    parser = argparse.ArgumentParser(
        prog="ryoiki",
        description=(
            "Codebase complexity metrics and treemap server. "
            "By default, analyzes the current working directory."
        ),
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Project root containing tools.config.json (default: current directory).",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host interface to bind the server to (default: 127.0.0.1).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=3030,
        help="Port to run the server on (default: 3030).",
    )
    parser.add_argument(
        "--scan-only",
        action="store_true",
        help="Write the metrics artifacts and exit without starting the server.",
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Do not open a browser window when the server starts.",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    target_path = os.path.abspath(args.path)
    if not os.path.exists(target_path):
        raise SystemExit(f"Path does not exist: {target_path}")

    # Change working directory so the API defaults to this path.
    os.chdir(target_path)

    if args.scan_only:
        _scan_only(target_path)
        return

    print(f"📂 Project root: {target_path}")

    url = f"http://{args.host}:{args.port}"
    print(f"🚀 Starting server at {url}")
    print("   Press Ctrl+C to stop.")

    if not args.no_browser:
        _open_browser_later(url)

    uvicorn.run(
        "ryoiki.main:app",
        host=args.host,
        port=args.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
