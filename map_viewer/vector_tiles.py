#!/usr/bin/env python3
"""
Map Viewer - Vector Tile Features

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Turn fetched Mapbox Vector Tiles into lon/lat features that a
RenderableLayer can hit-test, and work out which tiles cover a view.

Key Features:
1. Slippy-map tile addressing in Web-Mercator meters (z/x/y, y from the top)
2. MVT decoding through mapbox_vector_tile
3. Tile-local coordinates (0..extent, y up) reprojected to lon/lat
4. The source layer name stored under the "layer" attribute, like the
   rendering engine does, so basemap styling and popups see it

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from typing import Any, Dict, Iterator, List, Tuple
import math

import mapbox_vector_tile
import numpy as np
import shapely
from shapely.geometry import shape
from shapely.geometry.base import BaseGeometry

from map_viewer.feature import LAYER_KEY
from map_viewer.map_view import EARTH_CIRCUMFERENCE_M, Extent, mercator_to_lonlat

# ═══════════════════════════════════════════════════════════════════════════
# 🔧 CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════

HALF_WORLD_M = EARTH_CIRCUMFERENCE_M / 2
DEFAULT_TILE_EXTENT = 4096

TileKey = Tuple[int, int, int]
TileFeature = Tuple[BaseGeometry, Dict[str, Any]]


# ═══════════════════════════════════════════════════════════════════════════
# 🧭 TILE ADDRESSING
# ═══════════════════════════════════════════════════════════════════════════


def tile_bounds_m(z: int, x: int, y: int) -> Extent:
    """(min_x, min_y, max_x, max_y) of a tile in Web-Mercator meters."""
    size = EARTH_CIRCUMFERENCE_M / (2 ** z)
    min_x = -HALF_WORLD_M + x * size
    max_y = HALF_WORLD_M - y * size
    return (min_x, max_y - size, min_x + size, max_y)


def tiles_for_bounds(bounds_m: Extent, z: int) -> Iterator[TileKey]:
    """All z/x/y tiles intersecting a Web-Mercator box, clipped to the world."""
    n = 2 ** z
    size = EARTH_CIRCUMFERENCE_M / n

    def column(x_m: float) -> int:
        return min(max(int(math.floor((x_m + HALF_WORLD_M) / size)), 0), n - 1)

    def row(y_m: float) -> int:
        return min(max(int(math.floor((HALF_WORLD_M - y_m) / size)), 0), n - 1)

    min_x, min_y, max_x, max_y = bounds_m
    for tile_x in range(column(min_x), column(max_x) + 1):
        for tile_y in range(row(max_y), row(min_y) + 1):
            yield (z, tile_x, tile_y)


def count_tiles(bounds_m: Extent, z: int) -> int:
    return sum(1 for _ in tiles_for_bounds(bounds_m, z))


# ═══════════════════════════════════════════════════════════════════════════
# 🧩 DECODING
# ═══════════════════════════════════════════════════════════════════════════


def _tile_to_lonlat(bounds_m: Extent, extent: int):
    min_x, min_y, max_x, max_y = bounds_m
    scale_x = (max_x - min_x) / extent
    scale_y = (max_y - min_y) / extent

    def transform(coords: np.ndarray) -> np.ndarray:
        lon, lat = mercator_to_lonlat(
            min_x + coords[:, 0] * scale_x, min_y + coords[:, 1] * scale_y
        )
        return np.column_stack([lon, lat])

    return transform


def decode_tile(data: bytes, z: int, x: int, y: int) -> List[TileFeature]:
    """
    Decode one vector tile into lon/lat features.

    Features keep the tile's layer order, then the order inside each layer,
    which is the order the engine draws them in.

    Args:
        data: Uncompressed MVT payload
        z, x, y: Address of the tile

    Returns:
        (geometry, attributes) pairs; attributes include "layer".

    Raises:
        google.protobuf DecodeError, ValueError, KeyError or ShapelyError on
        a malformed tile.
    """
    bounds_m = tile_bounds_m(z, x, y)
    features: List[TileFeature] = []
    for layer_name, layer in mapbox_vector_tile.decode(data).items():
        to_lonlat = _tile_to_lonlat(bounds_m, layer.get("extent", DEFAULT_TILE_EXTENT))
        for feature in layer.get("features", []):
            geometry = shape(feature["geometry"])
            if geometry.is_empty:
                continue
            attributes = dict(feature.get("properties") or {})
            attributes[LAYER_KEY] = layer_name
            features.append((shapely.transform(geometry, to_lonlat), attributes))
    return features
