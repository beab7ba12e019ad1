#!/usr/bin/env python3
"""
Map Viewer - Flask Server

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Lightweight Flask server exposing the viewer core to a web
frontend: configuration, compatibility, palettes, style resolution and a
PMTiles tile proxy.

Key Interactions:
- Style resolution is delegated to basemap_style.style_feature
- Tiles are read through pmtiles_archive.PMTilesArchive (HTTP range reads)

Navigation Guide:
- ROUTES: API endpoints (/api/config, /api/style, /api/tiles/...)
- STARTUP: Server entry point

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from collections import OrderedDict
from typing import Any, Dict, Optional, Tuple
import logging
import math

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from map_viewer.basemap_style import style_feature
from map_viewer.data_sources import detect_source_type
from map_viewer.map_view import zoom_for_resolution
from map_viewer.pmtiles_archive import PMTilesArchive
from map_viewer.source_lifecycle import SourceLoadError
from map_viewer.theme import data_layer_style, resolve_palette
from map_viewer.viewer import VIEWER_METADATA
from map_viewer.viewer_config_types import VIEWER_CONFIG, get_frontend_config

# ═══════════════════════════════════════════════════════════════════════════
# 🌐 FLASK APPLICATION
# ═══════════════════════════════════════════════════════════════════════════

app = Flask(__name__)
CORS(app)

logger = logging.getLogger(__name__)

# Opened archives, keyed by URL, least recently used first
_archives: "OrderedDict[str, PMTilesArchive]" = OrderedDict()


def _allowed_archive_urls() -> Tuple[str, ...]:
    """The basemap archive plus the configured extra archives."""
    return (VIEWER_CONFIG.basemap.url,) + VIEWER_CONFIG.tiles.proxy_allowed_urls


def _get_archive(url: str) -> PMTilesArchive:
    archive = _archives.get(url)
    if archive is not None:
        _archives.move_to_end(url)
        return archive

    archive = PMTilesArchive(url, timeout=VIEWER_CONFIG.document.request_timeout_s)
    _archives[url] = archive
    while len(_archives) > VIEWER_CONFIG.tiles.proxy_cache_size:
        evicted, _ = _archives.popitem(last=False)
        logger.debug(f"Evicted archive {evicted}")
    return archive


def _resolve_zoom(data: Dict[str, Any]) -> Tuple[Optional[float], Optional[str]]:
    """Zoom from "zoom" or "resolution" in a request body: (zoom, error)."""
    try:
        if "zoom" in data:
            zoom = float(data["zoom"])
        elif "resolution" in data:
            resolution = float(data["resolution"])
            if resolution <= 0:
                return None, "resolution must be positive"
            zoom = zoom_for_resolution(resolution)
        else:
            return None, "Missing zoom or resolution"
    except (TypeError, ValueError):
        return None, "zoom/resolution must be numeric"
    if not math.isfinite(zoom):
        return None, "zoom must be finite"
    return zoom, None


def _style_one(item: Dict[str, Any], color_mode: Optional[str]) -> Any:
    if not isinstance(item, dict):
        raise ValueError("Each feature must be an object")
    properties = item.get("properties")
    if properties is None:
        properties = {}
    elif not isinstance(properties, dict):
        raise ValueError("properties must be an object")
    layer_name = item.get("layer") or properties.get("layer", "")
    zoom, error = _resolve_zoom(item)
    if error:
        raise ValueError(error)
    style = style_feature(layer_name, properties, zoom, resolve_palette(color_mode))
    return style.to_dict() if style else None


# ═══════════════════════════════════════════════════════════════════════════
# 🛣️ API ROUTES
# ═══════════════════════════════════════════════════════════════════════════


@app.route("/api/config")
def get_config() -> Response:
    """Frontend configuration settings."""
    return jsonify(get_frontend_config())


@app.route("/api/viewer")
def get_viewer() -> Response:
    """Viewer title and description for the host file browser."""
    return jsonify(VIEWER_METADATA.to_dict())


@app.route("/api/compatibility")
def get_compatibility():
    """
    Check whether a file can be opened by the viewer.

    Query:
        filename: Display name of the file

    Returns:
        {"compatible": bool, "source_type": "pmtiles" | "geojson" | null}
    """
    filename = request.args.get("filename")
    if not filename:
        return jsonify({"error": "Missing filename"}), 400

    source_type = detect_source_type(filename)
    return jsonify(
        {
            "compatible": source_type is not None,
            "source_type": source_type.value if source_type else None,
        }
    )


@app.route("/api/palette")
def get_palette() -> Response:
    """Basemap palette and data-layer style for a color mode."""
    palette = resolve_palette(request.args.get("color_mode"))
    return jsonify(
        {
            "palette": palette.to_dict(),
            "data_layer_style": data_layer_style(palette).to_dict(),
        }
    )


@app.route("/api/style", methods=["POST"])
def post_style():
    """
    Resolve the basemap style of one feature.

    Request Body:
        {
            "layer": str,            # optional, falls back to properties.layer
            "properties": {...},
            "zoom": float,           # or "resolution": float
            "color_mode": "light" | "dark"
        }

    Returns:
        Style dict, or null when the feature is not rendered.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Missing request body"}), 400

    try:
        return jsonify(_style_one(data, data.get("color_mode")))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400


@app.route("/api/style/batch", methods=["POST"])
def post_style_batch():
    """
    Resolve styles for many features sharing one color mode.

    Request Body:
        {"color_mode": str, "features": [{layer, properties, zoom}, ...]}

    Returns:
        {"styles": [style dict | null, ...]} in request order.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get("features"), list):
        return jsonify({"error": "Missing features list"}), 400

    color_mode = data.get("color_mode")
    try:
        styles = [_style_one(item, color_mode) for item in data["features"]]
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    logger.info(f"🎨 Resolved {len(styles)} style(s) ({color_mode})")
    return jsonify({"styles": styles})


@app.route("/api/tiles/<int:z>/<int:x>/<int:y>")
def get_tile(z: int, x: int, y: int):
    """
    Proxy one vector tile out of a remote PMTiles archive (?url=...).

    Only the basemap archive and tiles.proxy_allowed_urls can be read.
    """
    url = request.args.get("url")
    if not url:
        return jsonify({"error": "Missing url"}), 400
    if url not in _allowed_archive_urls():
        logger.warning(f"Tile proxy refused {url}")
        return jsonify({"error": "Archive url not allowed"}), 400

    try:
        data = _get_archive(url).get_tile(z, x, y)
    except SourceLoadError as e:
        logger.error(f"❌ Tile {z}/{x}/{y} failed: {e}")
        return jsonify({"error": str(e)}), 502

    if data is None:
        return jsonify({"error": "Tile not found"}), 404
    return Response(data, mimetype="application/x-protobuf")


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 SERVER STARTUP
# ═══════════════════════════════════════════════════════════════════════════


def main() -> None:
    """Start the server with the configured host/port."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")

    host = VIEWER_CONFIG.server.host
    port = VIEWER_CONFIG.server.port
    logger.info(f"🌐 Starting server at http://{host}:{port}")
    app.run(host=host, port=port)


if __name__ == "__main__":
    main()
