#!/usr/bin/env python3
"""
Map Viewer - Configuration Types

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Typed configuration for the map viewer using frozen
dataclasses for immutability and type safety.

This follows the Typed Configuration Architecture pattern:
- viewer_config.py defines VIEWER_CONFIG_DATA dictionary (user edits this)
- viewer_config_types.py defines frozen dataclasses (this file)
- VIEWER_CONFIG module-level instance for orchestrator access

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from dataclasses import dataclass
from typing import Dict, Any, Tuple

# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ MAP CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class MapConfig:
    """Configuration for the initial map view."""

    center_lon: float = 0.0
    center_lat: float = 0.0
    zoom: float = 0.0
    min_zoom: float = 0.0
    max_zoom: float = 28.0
    viewport_width_px: int = 1024
    viewport_height_px: int = 512

    @property
    def viewport_px(self) -> Tuple[int, int]:
        return (self.viewport_width_px, self.viewport_height_px)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MapConfig":
        """Create from dictionary."""
        center = d.get("center", [0.0, 0.0])
        viewport = d.get("viewport_px", [1024, 512])
        return cls(
            center_lon=center[0],
            center_lat=center[1],
            zoom=d.get("zoom", 0.0),
            min_zoom=d.get("min_zoom", 0.0),
            max_zoom=d.get("max_zoom", 28.0),
            viewport_width_px=viewport[0],
            viewport_height_px=viewport[1],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "center": [self.center_lon, self.center_lat],
            "zoom": self.zoom,
            "min_zoom": self.min_zoom,
            "max_zoom": self.max_zoom,
            "viewport_px": [self.viewport_width_px, self.viewport_height_px],
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🌍 BASEMAP CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class BasemapConfig:
    """Configuration for the OpenStreetMap basemap archive."""

    url: str = "https://data.source.coop/protomaps/openstreetmap/tiles/v3.pmtiles"
    attribution: str = "© OpenStreetMap"
    attribution_url: str = "https://openstreetmap.org/copyright"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BasemapConfig":
        """Create from dictionary."""
        defaults = cls()
        return cls(
            url=d.get("url", defaults.url),
            attribution=d.get("attribution", defaults.attribution),
            attribution_url=d.get("attribution_url", defaults.attribution_url),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "url": self.url,
            "attribution": self.attribution,
            "attribution_url": self.attribution_url,
        }


# ═══════════════════════════════════════════════════════════════════════════
# 💬 POPUP / HIT-TEST CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class PopupConfig:
    """Configuration for the feature popup overlay."""

    autopan_duration_ms: int = 250
    opacity: float = 0.5

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PopupConfig":
        """Create from dictionary."""
        return cls(
            autopan_duration_ms=d.get("autopan_duration_ms", 250),
            opacity=d.get("opacity", 0.5),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "autopan_duration_ms": self.autopan_duration_ms,
            "opacity": self.opacity,
        }


@dataclass(frozen=True)
class HitTestConfig:
    """Configuration for click hit-testing."""

    tolerance_px: float = 3.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "HitTestConfig":
        """Create from dictionary."""
        return cls(tolerance_px=d.get("tolerance_px", 3.0))


# ═══════════════════════════════════════════════════════════════════════════
# 📂 SOURCE / SERVER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class DocumentConfig:
    """Configuration for single-document (GeoJSON) sources."""

    request_timeout_s: float = 30.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DocumentConfig":
        """Create from dictionary."""
        return cls(request_timeout_s=d.get("request_timeout_s", 30.0))


@dataclass(frozen=True)
class TilesConfig:
    """Configuration for vector tile loading and the tile proxy."""

    max_tiles_per_view: int = 64
    proxy_allowed_urls: Tuple[str, ...] = ()
    proxy_cache_size: int = 16

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TilesConfig":
        """Create from dictionary."""
        return cls(
            max_tiles_per_view=d.get("max_tiles_per_view", 64),
            proxy_allowed_urls=tuple(d.get("proxy_allowed_urls", ())),
            proxy_cache_size=d.get("proxy_cache_size", 16),
        )


@dataclass(frozen=True)
class ServerConfig:
    """Configuration for the Flask server."""

    host: str = "127.0.0.1"
    port: int = 5052

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ServerConfig":
        """Create from dictionary."""
        return cls(host=d.get("host", "127.0.0.1"), port=d.get("port", 5052))


# ═══════════════════════════════════════════════════════════════════════════
# 📦 MAIN VIEWER CONFIGURATION CLASS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ViewerConfig:
    """
    Main configuration class for the map viewer.

    Access via the module-level VIEWER_CONFIG instance.
    """

    map: MapConfig
    basemap: BasemapConfig
    popup: PopupConfig
    hit_test: HitTestConfig
    document: DocumentConfig
    tiles: TilesConfig
    server: ServerConfig

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ViewerConfig":
        """Create from dictionary."""
        return cls(
            map=MapConfig.from_dict(d.get("map", {})),
            basemap=BasemapConfig.from_dict(d.get("basemap", {})),
            popup=PopupConfig.from_dict(d.get("popup", {})),
            hit_test=HitTestConfig.from_dict(d.get("hit_test", {})),
            document=DocumentConfig.from_dict(d.get("document", {})),
            tiles=TilesConfig.from_dict(d.get("tiles", {})),
            server=ServerConfig.from_dict(d.get("server", {})),
        )

    @classmethod
    def defaults(cls) -> "ViewerConfig":
        """Create with all default values."""
        return cls.from_dict({})

    def to_frontend_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for frontend JSON API."""
        return {
            "map": self.map.to_dict(),
            "basemap": self.basemap.to_dict(),
            "popup": self.popup.to_dict(),
            "hitTolerancePx": self.hit_test.tolerance_px,
        }


# ═══════════════════════════════════════════════════════════════════════════
# 📌 MODULE-LEVEL CONFIG INSTANCE
# ═══════════════════════════════════════════════════════════════════════════

# Import configuration data from separate file (user-editable)
from map_viewer.viewer_config import VIEWER_CONFIG_DATA

# Create typed config from data dictionary
# Edit viewer_config.py to change settings (restart server after changes)
VIEWER_CONFIG: ViewerConfig = ViewerConfig.from_dict(VIEWER_CONFIG_DATA)


def get_frontend_config() -> Dict[str, Any]:
    """
    Get configuration for frontend JavaScript.

    Returns a dict suitable for JSON serialization and use in the frontend.
    """
    return VIEWER_CONFIG.to_frontend_dict()
