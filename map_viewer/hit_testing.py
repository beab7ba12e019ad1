#!/usr/bin/env python3
"""
Map Viewer - Renderable Layer & Hit-Testing

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Hold the features a layer has rendered and answer "which
features are under this pixel?" queries.

Key Features:
1. Features kept in render order (last added is drawn on top)
2. Shapely STRtree index, rebuilt lazily after additions
3. Pixel tolerance so points and hairlines remain clickable
4. Asynchronous get_features() that yields to the event loop once

Navigation Guide:
- RenderedFeature: geometry + attribute bag pair
- RenderableLayer: feature store and hit-test entry point

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Tuple
import asyncio
import logging

from shapely import STRtree
from shapely.geometry.base import BaseGeometry

from map_viewer.feature import Feature
from map_viewer.map_view import Extent, MapView, Pixel
from map_viewer.style_types import RenderStyle
from map_viewer.viewer_config_types import VIEWER_CONFIG

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedFeature:
    """A feature as drawn: lon/lat geometry plus its attributes."""

    geometry: BaseGeometry
    feature: Feature


# ═══════════════════════════════════════════════════════════════════════════
# 🧱 RENDERABLE LAYER
# ═══════════════════════════════════════════════════════════════════════════


class RenderableLayer:
    """
    Feature store of one rendered layer.

    The document source fills it with its parsed features; a tiled archive
    source adds the decoded features of the tiles covering the view.
    """

    def __init__(self, name: str, tolerance_px: Optional[float] = None) -> None:
        self.name = name
        self.tolerance_px = (
            VIEWER_CONFIG.hit_test.tolerance_px if tolerance_px is None else tolerance_px
        )
        self.style: Optional[RenderStyle] = None
        self._rendered: List[RenderedFeature] = []
        self._tree: Optional[STRtree] = None

    def __len__(self) -> int:
        return len(self._rendered)

    @property
    def features(self) -> Tuple[RenderedFeature, ...]:
        return tuple(self._rendered)

    def set_style(self, style: Optional[RenderStyle]) -> None:
        self.style = style

    def add_features(
        self, features: Iterable[Tuple[BaseGeometry, Mapping[str, Any]]]
    ) -> int:
        """
        Append features in render order.

        Args:
            features: (geometry, attributes) pairs, geometry in lon/lat

        Returns:
            Number of features added (empty geometries are skipped).
        """
        added = 0
        for geometry, attributes in features:
            if geometry is None or geometry.is_empty:
                continue
            self._rendered.append(RenderedFeature(geometry, Feature(attributes)))
            added += 1
        if added:
            self._tree = None
        return added

    def clear(self) -> None:
        self._rendered.clear()
        self._tree = None

    @property
    def extent(self) -> Optional[Extent]:
        """(min_lon, min_lat, max_lon, max_lat) of all features, None when empty."""
        if not self._rendered:
            return None
        bounds = [rendered.geometry.bounds for rendered in self._rendered]
        return (
            min(b[0] for b in bounds),
            min(b[1] for b in bounds),
            max(b[2] for b in bounds),
            max(b[3] for b in bounds),
        )

    # ───────────────────────────────────────────────────────────────────────
    # Hit-testing
    # ───────────────────────────────────────────────────────────────────────

    def query(self, pixel: Pixel, view: MapView) -> List[Feature]:
        """Features under a pixel, topmost first."""
        if not self._rendered:
            return []
        if self._tree is None:
            self._tree = STRtree([rendered.geometry for rendered in self._rendered])

        search_box = view.pixel_box(pixel, self.tolerance_px)
        hits = self._tree.query(search_box, predicate="intersects")
        return [self._rendered[int(i)].feature for i in sorted(hits, reverse=True)]

    async def get_features(self, pixel: Pixel, view: MapView) -> List[Feature]:
        """Asynchronous hit-test; resolves on a later turn of the event loop."""
        await asyncio.sleep(0)
        features = self.query(pixel, view)
        logger.debug(f"Hit-test {self.name} at {pixel}: {len(features)} feature(s)")
        return features
