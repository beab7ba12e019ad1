#!/usr/bin/env python3
"""
Map Viewer - Viewer Shell

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Wire one opened file into a map surface: data source,
basemap, view, popup and selection. The style resolver and the selection
controller are used as black boxes.

Key Interactions:
- Compatibility check and metadata consumed by the host file browser
- Document load-end fits the view to the loaded extent
- Archive tiles covering the view are decoded so clicks can hit them
- Basemap tiles are decoded and styled with the active palette
- Color mode changes swap the basemap style function and data-layer style
- Loading / error flags and popup rows are read by the UI

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple
import asyncio
import logging

from shapely.geometry.base import BaseGeometry

from map_viewer.basemap_style import basemap_style_function
from map_viewer.data_sources import (
    DataSourceAdapter,
    DocumentSource,
    TiledArchiveSource,
    create_data_source,
    detect_source_type,
)
from map_viewer.map_view import MapView, Pixel, resolution_for_zoom
from map_viewer.selection import PopupOverlay, SelectionController, SelectionState
from map_viewer.source_lifecycle import SourceEvent, SourceEventData
from map_viewer.style_types import RenderStyle
from map_viewer.theme import ThemePalette, data_layer_style, resolve_palette
from map_viewer.viewer_config_types import VIEWER_CONFIG, ViewerConfig

logger = logging.getLogger(__name__)

ERROR_MESSAGE = "Error Loading File"
LOADING_MESSAGE = "Loading..."

StyledGeometry = Tuple[BaseGeometry, RenderStyle]


# ═══════════════════════════════════════════════════════════════════════════
# 📋 VIEWER METADATA
# ═══════════════════════════════════════════════════════════════════════════


def compatibility_check(filename: str) -> bool:
    """True for .pmtiles and .geojson files (case-insensitive)."""
    return detect_source_type(filename) is not None


@dataclass(frozen=True)
class ViewerMetadata:
    title: str
    description: str
    compatibility_check: Callable[[str], bool]

    def to_dict(self) -> dict:
        return {"title": self.title, "description": self.description}


VIEWER_METADATA = ViewerMetadata(
    title="Map Viewer",
    description="A map viewer.",
    compatibility_check=compatibility_check,
)


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ MAP VIEWER
# ═══════════════════════════════════════════════════════════════════════════


class MapViewer:
    """
    One map surface showing one file over the OpenStreetMap basemap.

    Args:
        url: Resource locator of the file
        filename: Display name, used only to pick the source kind
        color_mode: "light" or anything else (dark)
        config: Viewer configuration (defaults to VIEWER_CONFIG)
        source: Pre-built adapter, mainly for tests
        basemap: Pre-built basemap archive source, mainly for tests

    Raises:
        ValueError: If the file is not compatible with the viewer.
    """

    def __init__(
        self,
        url: str,
        filename: str,
        color_mode: Optional[str] = None,
        config: Optional[ViewerConfig] = None,
        source: Optional[DataSourceAdapter] = None,
        basemap: Optional[TiledArchiveSource] = None,
    ) -> None:
        self.config = config or VIEWER_CONFIG
        self.source = source or create_data_source(url, filename)
        self.view = MapView.from_config(self.config.map)
        self.overlay = PopupOverlay()
        self.basemap = basemap or TiledArchiveSource(
            self.config.basemap.url, layer_name="basemap"
        )
        self.selection = SelectionController(self.source.layer, self.view, self.overlay)
        self._disposed = False

        self.source.on(SourceEvent.LOAD_END, self._on_load_end)
        self.set_color_mode(color_mode)

        logger.info(f"🗺️ Map viewer opened {filename} ({self.source.source_type.value})")

    # ───────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ───────────────────────────────────────────────────────────────────────

    async def open(self) -> None:
        """Load the document, or the archive tiles covering the initial view."""
        if isinstance(self.source, DocumentSource):
            await self.source.load()
        else:
            await self.refresh()

    async def refresh(self) -> None:
        """Load the archive tiles covering the current view (after pan/zoom)."""
        if self._disposed or not isinstance(self.source, TiledArchiveSource):
            return
        await self.source.load_view(self.view)

    def _on_load_end(self, data: SourceEventData) -> None:
        if self._disposed or data.extent is None:
            return
        self.view.fit(data.extent)

    def dispose(self) -> None:
        """Tear the view down for good."""
        self._disposed = True
        self.selection.dispose()
        logger.info("Map viewer disposed")

    # ───────────────────────────────────────────────────────────────────────
    # Theme
    # ───────────────────────────────────────────────────────────────────────

    def set_color_mode(self, color_mode: Optional[str]) -> ThemePalette:
        self.color_mode = color_mode
        self.palette = resolve_palette(color_mode)
        self.basemap_style = basemap_style_function(self.view, color_mode)
        self.source.layer.set_style(data_layer_style(self.palette))
        return self.palette

    # ───────────────────────────────────────────────────────────────────────
    # Interaction
    # ───────────────────────────────────────────────────────────────────────

    def click(self, pixel: Pixel) -> Optional["asyncio.Task[bool]"]:
        if self._disposed:
            return None
        return self.selection.click(pixel, self.view.pixel_to_coordinate(pixel))

    def zoom_in(self) -> None:
        self.view.zoom_in()

    def zoom_out(self) -> None:
        self.view.zoom_out()

    # ───────────────────────────────────────────────────────────────────────
    # UI state
    # ───────────────────────────────────────────────────────────────────────

    @property
    def loading(self) -> bool:
        return self.source.loading

    @property
    def error(self) -> bool:
        return self.source.error

    @property
    def status_message(self) -> Optional[str]:
        """Overlay text: the error wins over the loading indicator."""
        if self.error:
            return ERROR_MESSAGE
        if self.loading:
            return LOADING_MESSAGE
        return None

    @property
    def selected(self) -> SelectionState:
        return self.selection.selection

    @property
    def popup_rows(self) -> List[str]:
        """Popup lines in "key:value" form, empty when nothing is selected."""
        if not self.selected:
            return []
        return [
            f"{key}:{'' if value is None else value}" for key, value in self.selected
        ]

    @property
    def attribution(self) -> str:
        return self.config.basemap.attribution

    # ───────────────────────────────────────────────────────────────────────
    # Basemap
    # ───────────────────────────────────────────────────────────────────────

    @property
    def basemap_error(self) -> bool:
        return self.basemap.error

    async def basemap_tile(self, z: int, x: int, y: int) -> List[StyledGeometry]:
        """
        Basemap features of one tile paired with their resolved styles.

        Features the current palette does not render (landuse, unknown
        layers) are left out. Read failures are logged and leave the
        basemap in its error state.
        """
        features = await self.basemap.read_tile_features(z, x, y)
        resolution = resolution_for_zoom(z)
        styled = []
        for geometry, attributes in features:
            style = self.basemap_style(attributes, resolution)
            if style is not None:
                styled.append((geometry, style))
        return styled
