#!/usr/bin/env python3
"""
Map Viewer - Configuration

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Configuration dictionary for the map viewer.
This is the user-facing configuration file - edit values here.

Pattern:
- viewer_config.py defines the VIEWER_CONFIG_DATA dictionary (edit this)
- viewer_config_types.py defines typed dataclasses and loads from VIEWER_CONFIG_DATA

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from typing import Dict, Any

# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ MAP VIEWER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

VIEWER_CONFIG_DATA: Dict[str, Any] = {
    # ═══════════════════════════════════════════════════════════════════════
    # 🗺️ MAP SETTINGS
    # ═══════════════════════════════════════════════════════════════════════
    "map": {
        "center": [0.0, 0.0],  # [lon, lat] - Initial view center
        "zoom": 0,
        "min_zoom": 0,
        "max_zoom": 28,
        "viewport_px": [1024, 512],  # [width, height] of the map surface
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🌍 BASEMAP SETTINGS
    # ═══════════════════════════════════════════════════════════════════════
    "basemap": {
        "url": "https://data.source.coop/protomaps/openstreetmap/tiles/v3.pmtiles",
        "attribution": "© OpenStreetMap",
        "attribution_url": "https://openstreetmap.org/copyright",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 💬 POPUP SETTINGS
    # ═══════════════════════════════════════════════════════════════════════
    "popup": {
        "autopan_duration_ms": 250,
        "opacity": 0.5,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🖱️ HIT-TEST SETTINGS
    # ═══════════════════════════════════════════════════════════════════════
    "hit_test": {
        "tolerance_px": 3,  # Click slop around points and lines
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📂 DOCUMENT SOURCE SETTINGS
    # ═══════════════════════════════════════════════════════════════════════
    "document": {
        "request_timeout_s": 30.0,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🧱 VECTOR TILE SETTINGS
    # ═══════════════════════════════════════════════════════════════════════
    "tiles": {
        "max_tiles_per_view": 64,  # Views needing more tiles load none
        # Archives the /api/tiles proxy may read besides the basemap
        "proxy_allowed_urls": [],
        "proxy_cache_size": 16,  # Opened archives kept (least recently used evicted)
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🌐 SERVER SETTINGS
    # ═══════════════════════════════════════════════════════════════════════
    "server": {
        "host": "127.0.0.1",
        "port": 5052,
    },
}
