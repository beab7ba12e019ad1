#!/usr/bin/env python3
"""
Map Viewer Entry Point

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Command-line access to the map viewer core.

Usage:
    python main_map_viewer.py serve
    python main_map_viewer.py inspect data/countries.geojson --click 512 256

"inspect" opens a file the way the viewer does, reports the load state and
fitted view, and optionally prints the popup rows for a click.

═══════════════════════════════════════════════════════════════════════════════
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Fix Windows console encoding for emoji support
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")


# ═══════════════════════════════════════════════════════════════════════════════
# 📋 LOGGING SETUP
# ═══════════════════════════════════════════════════════════════════════════════


def setup_logging() -> logging.Logger:
    """Configure logging with console output.

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("MapViewer")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()

    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(logging.INFO)
    ch.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(ch)

    return logger


# ═══════════════════════════════════════════════════════════════════════════════
# 🔍 INSPECT
# ═══════════════════════════════════════════════════════════════════════════════


async def inspect_file(
    path: str,
    click: Optional[List[float]],
    color_mode: str,
    logger: logging.Logger,
) -> int:
    """Open a file like the viewer does and report what the UI would show."""
    from map_viewer.viewer import MapViewer, compatibility_check

    filename = Path(path).name
    if not compatibility_check(filename):
        logger.error(f"❌ Not a .pmtiles or .geojson file: {filename}")
        return 2

    viewer = MapViewer(path, filename, color_mode=color_mode)
    try:
        await viewer.open()

        logger.info(f"📂 Source: {viewer.source.source_type.value}")
        logger.info(f"   State: {viewer.source.state.value}")
        if viewer.status_message:
            logger.info(f"   {viewer.status_message}")
        if viewer.error:
            return 1

        lon, lat = viewer.view.center
        logger.info(f"   View: center=({lon:.5f}, {lat:.5f}) zoom={viewer.view.zoom:.2f}")
        logger.info(f"   Features: {len(viewer.source.layer)}")

        if click:
            viewer.click((click[0], click[1]))
            await viewer.selection.settle()
            logger.info(f"🖱️ Click at {tuple(click)}: {viewer.selection.status.value}")
            for row in viewer.popup_rows:
                logger.info(f"   {row}")
        return 0
    finally:
        viewer.dispose()


# ═══════════════════════════════════════════════════════════════════════════════
# 🚀 MAIN ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════════


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the map viewer."""
    parser = argparse.ArgumentParser(description="Map viewer for .pmtiles/.geojson")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("serve", help="Start the Flask API server")

    inspect_parser = subparsers.add_parser("inspect", help="Open a file and report")
    inspect_parser.add_argument("path")
    inspect_parser.add_argument("--click", nargs=2, type=float, metavar=("X", "Y"))
    inspect_parser.add_argument("--color-mode", default="light")

    args = parser.parse_args(argv)

    if args.command == "serve":
        from map_viewer.server import main as serve

        serve()
        return

    logger = setup_logging()
    logging.basicConfig(level=logging.WARNING)
    try:
        code = asyncio.run(inspect_file(args.path, args.click, args.color_mode, logger))
    except Exception as e:
        logger.error(f"❌ ERROR: {e}")
        import traceback

        traceback.print_exc()
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
