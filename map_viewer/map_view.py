#!/usr/bin/env python3
"""
Map Viewer - View Model

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Web-Mercator view state (center, zoom, viewport) and the
conversions the core needs from it.

Key Features:
1. Zoom <-> resolution conversion (256 px tiles, zoom factor 2)
2. Pixel <-> lon/lat conversion through pyproj (EPSG:3857 <-> EPSG:4326)
3. Fit-to-extent for freshly loaded documents
4. Zoom in/out clamped to the configured zoom range

All public coordinates are lon/lat (geographic); projection happens inside.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from typing import Optional, Tuple
import logging
import math

from pyproj import Transformer
from shapely.geometry import Polygon, box

from map_viewer.viewer_config_types import VIEWER_CONFIG, MapConfig

# ═══════════════════════════════════════════════════════════════════════════
# 🔧 CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════

CRS_WGS84 = "EPSG:4326"
CRS_WEB_MERCATOR = "EPSG:3857"

TILE_SIZE_PX = 256
EARTH_CIRCUMFERENCE_M = 40075016.68557849
MAX_RESOLUTION = EARTH_CIRCUMFERENCE_M / TILE_SIZE_PX
MAX_LATITUDE = 85.0511287798

logger = logging.getLogger(__name__)

Coordinate = Tuple[float, float]
Pixel = Tuple[float, float]
Extent = Tuple[float, float, float, float]

_TO_MERCATOR = Transformer.from_crs(CRS_WGS84, CRS_WEB_MERCATOR, always_xy=True)
_TO_WGS84 = Transformer.from_crs(CRS_WEB_MERCATOR, CRS_WGS84, always_xy=True)


def zoom_for_resolution(resolution: float) -> float:
    """Fractional zoom level for a map resolution in meters per pixel."""
    return math.log2(MAX_RESOLUTION / resolution)


def resolution_for_zoom(zoom: float) -> float:
    """Map resolution in meters per pixel at a zoom level."""
    return MAX_RESOLUTION / (2 ** zoom)


def _to_mercator(lon: float, lat: float) -> Coordinate:
    lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, lat))
    return _TO_MERCATOR.transform(lon, lat)


def mercator_to_lonlat(x, y):
    """Web-Mercator meters to (lon, lat); accepts scalars or numpy arrays."""
    return _TO_WGS84.transform(x, y)


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ MAP VIEW
# ═══════════════════════════════════════════════════════════════════════════


class MapView:
    """
    Mutable view state of one map surface.

    Args:
        center: Initial (lon, lat)
        zoom: Initial zoom level
        viewport_px: (width, height) of the map surface in pixels
        min_zoom: Lowest allowed zoom
        max_zoom: Highest allowed zoom
    """

    def __init__(
        self,
        center: Coordinate = (0.0, 0.0),
        zoom: float = 0.0,
        viewport_px: Tuple[int, int] = (1024, 512),
        min_zoom: float = 0.0,
        max_zoom: float = 28.0,
    ) -> None:
        self.min_zoom = min_zoom
        self.max_zoom = max_zoom
        self.viewport_px = viewport_px
        self._center_m = _to_mercator(*center)
        self._zoom = self._clamp(zoom)

    @classmethod
    def from_config(cls, config: Optional[MapConfig] = None) -> "MapView":
        """Create a view from MapConfig (defaults to VIEWER_CONFIG.map)."""
        config = config or VIEWER_CONFIG.map
        return cls(
            center=(config.center_lon, config.center_lat),
            zoom=config.zoom,
            viewport_px=config.viewport_px,
            min_zoom=config.min_zoom,
            max_zoom=config.max_zoom,
        )

    def _clamp(self, zoom: float) -> float:
        return max(self.min_zoom, min(self.max_zoom, zoom))

    # ───────────────────────────────────────────────────────────────────────
    # State
    # ───────────────────────────────────────────────────────────────────────

    @property
    def zoom(self) -> float:
        return self._zoom

    def set_zoom(self, zoom: float) -> None:
        self._zoom = self._clamp(zoom)

    @property
    def resolution(self) -> float:
        return resolution_for_zoom(self._zoom)

    @property
    def center(self) -> Coordinate:
        """View center as (lon, lat)."""
        return _TO_WGS84.transform(*self._center_m)

    def set_center(self, center: Coordinate) -> None:
        self._center_m = _to_mercator(*center)

    def zoom_for_resolution(self, resolution: float) -> float:
        return zoom_for_resolution(resolution)

    def zoom_in(self) -> None:
        self.set_zoom(self._zoom + 1)

    def zoom_out(self) -> None:
        self.set_zoom(self._zoom - 1)

    # ───────────────────────────────────────────────────────────────────────
    # Conversions
    # ───────────────────────────────────────────────────────────────────────

    def pixel_to_coordinate(self, pixel: Pixel) -> Coordinate:
        """Convert a viewport pixel (origin top-left) to (lon, lat)."""
        width, height = self.viewport_px
        res = self.resolution
        x_m = self._center_m[0] + (pixel[0] - width / 2) * res
        y_m = self._center_m[1] - (pixel[1] - height / 2) * res
        return _TO_WGS84.transform(x_m, y_m)

    def coordinate_to_pixel(self, coordinate: Coordinate) -> Pixel:
        """Convert (lon, lat) to a viewport pixel (origin top-left)."""
        width, height = self.viewport_px
        res = self.resolution
        x_m, y_m = _to_mercator(*coordinate)
        return (
            width / 2 + (x_m - self._center_m[0]) / res,
            height / 2 - (y_m - self._center_m[1]) / res,
        )

    def visible_bounds_m(self) -> Extent:
        """(min_x, min_y, max_x, max_y) of the viewport in Web-Mercator meters."""
        width, height = self.viewport_px
        half_w = width / 2 * self.resolution
        half_h = height / 2 * self.resolution
        x, y = self._center_m
        return (x - half_w, y - half_h, x + half_w, y + half_h)

    def pixel_tolerance_to_map(self, pixels: float) -> float:
        """Length of `pixels` screen pixels in Web-Mercator meters at this zoom."""
        return pixels * self.resolution

    def pixel_box(self, pixel: Pixel, tolerance_px: float) -> Polygon:
        """Lon/lat box covering tolerance_px pixels around a pixel."""
        min_lon, min_lat = self.pixel_to_coordinate(
            (pixel[0] - tolerance_px, pixel[1] + tolerance_px)
        )
        max_lon, max_lat = self.pixel_to_coordinate(
            (pixel[0] + tolerance_px, pixel[1] - tolerance_px)
        )
        return box(min_lon, min_lat, max_lon, max_lat)

    # ───────────────────────────────────────────────────────────────────────
    # Fit
    # ───────────────────────────────────────────────────────────────────────

    def fit(self, extent: Extent, padding_px: int = 0) -> None:
        """
        Center the view on a lon/lat extent and zoom so it fills the viewport.

        A degenerate extent (a single point) only re-centers the view.

        Args:
            extent: (min_lon, min_lat, max_lon, max_lat)
            padding_px: Pixels kept free on every side
        """
        min_x, min_y = _to_mercator(extent[0], extent[1])
        max_x, max_y = _to_mercator(extent[2], extent[3])
        self._center_m = ((min_x + max_x) / 2, (min_y + max_y) / 2)

        width, height = self.viewport_px
        usable_w = max(width - 2 * padding_px, 1)
        usable_h = max(height - 2 * padding_px, 1)
        resolution = max((max_x - min_x) / usable_w, (max_y - min_y) / usable_h)

        if resolution > 0:
            self.set_zoom(zoom_for_resolution(resolution))

        logger.info(
            f"🔍 View fit to extent {tuple(round(v, 5) for v in extent)} "
            f"-> zoom {self._zoom:.2f}"
        )
