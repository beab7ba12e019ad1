#!/usr/bin/env python3
"""
Map Viewer - Data Source Adapters

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Normalize the two supported source kinds into a renderable
layer plus a load lifecycle event stream.

Key Features:
1. Source kind detection from the file name (case-insensitive extension)
2. TiledArchiveSource: remote .pmtiles archive, tiles decoded per view,
   reports tile read errors only
3. DocumentSource: single .geojson document, full load-start/end/error cycle
4. GeoJSON features fed to the RenderableLayer with their own properties;
   a WGS84 GeoDataFrame of the document is kept for table access

Navigation Guide:
- detect_source_type / create_data_source: entry points for the shell
- DataSourceAdapter: shared base (lifecycle + layer)
- TiledArchiveSource / DocumentSource: the two variants

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple
from urllib.parse import urlparse
import asyncio
import json
import logging
import math

import geopandas as gpd
import requests
from google.protobuf.message import DecodeError
from shapely.errors import ShapelyError
from shapely.geometry import shape
from shapely.geometry.base import BaseGeometry

from map_viewer.hit_testing import RenderableLayer
from map_viewer.map_view import MapView
from map_viewer.pmtiles_archive import PMTilesArchive
from map_viewer.source_lifecycle import (
    Extent,
    SourceEvent,
    SourceLifecycle,
    SourceLoadError,
)
from map_viewer.vector_tiles import (
    TileFeature,
    TileKey,
    count_tiles,
    decode_tile,
    tiles_for_bounds,
)
from map_viewer.viewer_config_types import VIEWER_CONFIG

# ═══════════════════════════════════════════════════════════════════════════
# 🔧 CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════

CRS_WGS84 = "EPSG:4326"

logger = logging.getLogger(__name__)

GeoFeature = Tuple[Optional[BaseGeometry], Dict[str, Any]]


class DataSourceType(str, Enum):
    TILED_ARCHIVE = "pmtiles"
    DOCUMENT = "geojson"


_EXTENSIONS = {
    ".pmtiles": DataSourceType.TILED_ARCHIVE,
    ".geojson": DataSourceType.DOCUMENT,
}


def detect_source_type(filename: str) -> Optional[DataSourceType]:
    """Source kind for a display name, None if the file is not compatible."""
    lowered = filename.lower()
    for extension, source_type in _EXTENSIONS.items():
        if lowered.endswith(extension):
            return source_type
    return None


# ═══════════════════════════════════════════════════════════════════════════
# 🧩 ADAPTER BASE
# ═══════════════════════════════════════════════════════════════════════════


class DataSourceAdapter(SourceLifecycle):
    """Lifecycle plus the renderable layer of one opened file."""

    source_type: DataSourceType

    def __init__(self, url: str, layer_name: str) -> None:
        super().__init__(url)
        self.layer = RenderableLayer(layer_name)

    @property
    def extent(self) -> Optional[Extent]:
        return self.layer.extent


# ═══════════════════════════════════════════════════════════════════════════
# 🗂️ TILED ARCHIVE VARIANT
# ═══════════════════════════════════════════════════════════════════════════


class TiledArchiveSource(DataSourceAdapter):
    """
    Remote PMTiles archive.

    Tiles are fetched on demand by the rendering engine through fetch_tile().
    load_view() decodes the tiles covering a view into the layer so clicks
    can hit archive features. There is no load-start/load-end and no
    fit-to-extent; the first failed tile read moves the source to ERROR.
    """

    source_type = DataSourceType.TILED_ARCHIVE

    def __init__(
        self,
        url: str,
        layer_name: str = "data",
        archive: Optional[PMTilesArchive] = None,
    ) -> None:
        super().__init__(url, layer_name)
        self.archive = archive or PMTilesArchive(
            url, timeout=VIEWER_CONFIG.document.request_timeout_s
        )
        self._tile_zoom: Optional[int] = None
        self._loaded_tiles: Set[TileKey] = set()

    def header(self) -> Optional[Dict[str, Any]]:
        """Archive header (bounds, zoom range), None on failure."""
        try:
            return self.archive.header()
        except SourceLoadError as e:
            self.emit(SourceEvent.LOAD_ERROR, error=e)
            return None

    def fetch_tile(self, z: int, x: int, y: int) -> Optional[bytes]:
        """Tile payload for the engine, None if absent or on failure."""
        try:
            return self.archive.get_tile(z, x, y)
        except SourceLoadError as e:
            self.emit(SourceEvent.LOAD_ERROR, error=e)
            return None

    def _read_features(self, z: int, x: int, y: int) -> List[TileFeature]:
        """Fetch and decode one tile (runs in a worker thread)."""
        data = self.archive.get_tile(z, x, y)
        if data is None:
            return []
        try:
            return decode_tile(data, z, x, y)
        except (DecodeError, KeyError, TypeError, ValueError, ShapelyError) as e:
            raise SourceLoadError(self.url, f"Invalid vector tile {z}/{x}/{y}: {e}") from e

    async def read_tile_features(self, z: int, x: int, y: int) -> List[TileFeature]:
        """Lon/lat features of one tile, [] if absent or on failure."""
        try:
            return await asyncio.to_thread(self._read_features, z, x, y)
        except SourceLoadError as e:
            self.emit(SourceEvent.LOAD_ERROR, error=e)
            return []

    async def load_view(self, view: MapView) -> int:
        """
        Decode the tiles covering a view into the layer.

        The tile zoom is the view's integer zoom clamped to the archive's
        zoom range. Switching tile zoom drops the features of the previous
        zoom; tiles already decoded at the current zoom are not read again.

        Returns:
            Number of features added.
        """
        header = self.header()
        if header is None:
            return 0

        z = int(min(max(math.floor(view.zoom), header["min_zoom"]), header["max_zoom"]))
        bounds_m = view.visible_bounds_m()
        tile_count = count_tiles(bounds_m, z)
        if tile_count > VIEWER_CONFIG.tiles.max_tiles_per_view:
            logger.warning(
                f"⚠️ View needs {tile_count} tiles at z{z}; "
                f"limit is {VIEWER_CONFIG.tiles.max_tiles_per_view}"
            )
            return 0

        if z != self._tile_zoom:
            self.layer.clear()
            self._loaded_tiles.clear()
            self._tile_zoom = z

        added = 0
        for key in tiles_for_bounds(bounds_m, z):
            if key in self._loaded_tiles:
                continue
            features = await self.read_tile_features(*key)
            if self._tile_zoom != z:
                # A newer view switched zoom while this tile was in flight
                return added
            self._loaded_tiles.add(key)
            added += self.layer.add_features(features)

        logger.info(f"🧱 Loaded {added} feature(s) at z{z} from {self.url}")
        return added


# ═══════════════════════════════════════════════════════════════════════════
# 📄 DOCUMENT VARIANT
# ═══════════════════════════════════════════════════════════════════════════


def parse_geojson_features(geojson: Dict[str, Any]) -> List[GeoFeature]:
    """
    Split a GeoJSON FeatureCollection (or single Feature) into features.

    Each feature keeps its own properties dict exactly as parsed: no keys
    are added and no values are coerced.

    Returns:
        (geometry, properties) pairs in document order; a null geometry is None.

    Raises:
        KeyError, TypeError, ValueError or ShapelyError on malformed input.
    """
    doc_type = geojson.get("type")
    if doc_type == "FeatureCollection":
        features = geojson["features"]
    elif doc_type == "Feature":
        features = [geojson]
    else:
        raise ValueError(f"Unsupported GeoJSON type: {doc_type!r}")

    parsed = []
    for feature in features:
        geometry = feature.get("geometry")
        properties = feature.get("properties") or {}
        if not isinstance(properties, dict):
            raise TypeError(f"Feature properties must be an object, got {properties!r}")
        parsed.append((shape(geometry) if geometry else None, dict(properties)))
    return parsed


def geojson_to_gdf(geojson: Dict[str, Any]) -> gpd.GeoDataFrame:
    """
    Convert a GeoJSON FeatureCollection (or single Feature) to a GeoDataFrame.

    The table is the document's geometry and extent view; per-feature
    attributes for display come from parse_geojson_features().

    Returns:
        GeoDataFrame in WGS84; features with a null geometry keep a None geometry.
    """
    return _features_to_gdf(parse_geojson_features(geojson))


def _features_to_gdf(features: List[GeoFeature]) -> gpd.GeoDataFrame:
    geometries = [geometry for geometry, _ in features]
    properties_list = [properties for _, properties in features]
    return gpd.GeoDataFrame(properties_list, geometry=geometries, crs=CRS_WGS84)


class DocumentSource(DataSourceAdapter):
    """Single GeoJSON document loaded in one piece."""

    source_type = DataSourceType.DOCUMENT

    def __init__(
        self,
        url: str,
        layer_name: str = "data",
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__(url, layer_name)
        self.session = session or requests.Session()
        self.timeout = (
            VIEWER_CONFIG.document.request_timeout_s if timeout is None else timeout
        )
        self.gdf: Optional[gpd.GeoDataFrame] = None

    def _fetch(self) -> Dict[str, Any]:
        """Fetch and decode the document (runs in a worker thread)."""
        parsed = urlparse(self.url)
        try:
            if parsed.scheme in ("http", "https"):
                response = self.session.get(self.url, timeout=self.timeout)
                response.raise_for_status()
                return response.json()
            path = Path(parsed.path if parsed.scheme == "file" else self.url)
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except requests.RequestException as e:
            raise SourceLoadError(self.url, f"Fetch failed: {e}") from e
        except OSError as e:
            raise SourceLoadError(self.url, f"Read failed: {e}") from e
        except ValueError as e:
            raise SourceLoadError(self.url, f"Invalid JSON: {e}") from e

    def _parse(
        self, geojson: Dict[str, Any]
    ) -> Tuple[List[GeoFeature], gpd.GeoDataFrame]:
        try:
            features = parse_geojson_features(geojson)
            return features, _features_to_gdf(features)
        except (KeyError, TypeError, ValueError, AttributeError, ShapelyError) as e:
            raise SourceLoadError(self.url, f"Invalid GeoJSON: {e}") from e

    async def load(self) -> bool:
        """
        Fetch, parse and publish the document.

        Emits load-start, then load-end with the data extent, or load-error.
        A document either loads completely or not at all.

        Returns:
            True on success.
        """
        if not self.emit(SourceEvent.LOAD_START):
            return False

        try:
            geojson = await asyncio.to_thread(self._fetch)
            features, gdf = self._parse(geojson)
        except SourceLoadError as e:
            self.emit(SourceEvent.LOAD_ERROR, error=e)
            return False

        self.gdf = gdf
        count = self.layer.add_features(features)
        logger.info(f"✅ Loaded {count} feature(s) from {self.url}")
        self.emit(SourceEvent.LOAD_END, extent=self.layer.extent)
        return True


# ═══════════════════════════════════════════════════════════════════════════
# 🏭 FACTORY
# ═══════════════════════════════════════════════════════════════════════════


def create_data_source(url: str, filename: str) -> DataSourceAdapter:
    """
    Create the adapter matching a file's extension.

    Raises:
        ValueError: If the file is neither .pmtiles nor .geojson.
    """
    source_type = detect_source_type(filename)
    if source_type is DataSourceType.TILED_ARCHIVE:
        return TiledArchiveSource(url)
    if source_type is DataSourceType.DOCUMENT:
        return DocumentSource(url)
    raise ValueError(f"Incompatible file for the map viewer: {filename}")
