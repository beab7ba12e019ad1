"""
Map Viewer

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: View a .pmtiles archive or a .geojson document over a themed
OpenStreetMap basemap and inspect clicked features in a popup.

Key Features:
- Pure basemap style resolution (layer, attributes, zoom, palette -> style)
- Light/dark palettes passed explicitly, no global theme state
- Tiled-archive and document sources with a load lifecycle
- Click selection with last-result-wins hit-testing

Usage:
    from map_viewer import MapViewer

    viewer = MapViewer(url, "countries.geojson", color_mode="light")
    await viewer.open()
    viewer.click((512, 256))
    await viewer.selection.settle()
    print(viewer.popup_rows)

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

from .basemap_style import basemap_style_function, style_feature
from .data_sources import (
    DataSourceType,
    DocumentSource,
    TiledArchiveSource,
    create_data_source,
    detect_source_type,
)
from .feature import Feature
from .map_view import MapView
from .selection import PopupOverlay, SelectionController, SelectionStatus
from .source_lifecycle import LoadState, SourceEvent, SourceLoadError
from .style_types import Fill, RenderStyle, Stroke, Text
from .theme import DARK, LIGHT, ThemePalette, data_layer_style, resolve_palette
from .viewer import VIEWER_METADATA, MapViewer, compatibility_check

__all__ = [
    "basemap_style_function",
    "style_feature",
    "DataSourceType",
    "DocumentSource",
    "TiledArchiveSource",
    "create_data_source",
    "detect_source_type",
    "Feature",
    "MapView",
    "PopupOverlay",
    "SelectionController",
    "SelectionStatus",
    "LoadState",
    "SourceEvent",
    "SourceLoadError",
    "Fill",
    "RenderStyle",
    "Stroke",
    "Text",
    "DARK",
    "LIGHT",
    "ThemePalette",
    "data_layer_style",
    "resolve_palette",
    "VIEWER_METADATA",
    "MapViewer",
    "compatibility_check",
]
