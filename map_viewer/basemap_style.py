"""
Basemap Cartographic Style Resolution

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Pure mapping from (layer name, feature attributes, zoom,
palette) to a RenderStyle, or None when the feature must not be drawn.

Layer rules:
- boundaries: dashed stroke, heavier for country-level borders
- earth / water: plain fills
- roads: stroke that thickens past zoom 14
- places / physical_point: monospace text labels with a halo
- landuse: deliberately not rendered
- anything else: not rendered

The resolver never computes zoom and never raises; missing attributes fall
back to the defaults of map_viewer.feature.Feature.

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

from typing import Any, Callable, Mapping, Optional, Union

from map_viewer.feature import Feature
from map_viewer.style_types import Fill, RenderStyle, Stroke, Text
from map_viewer.theme import ThemePalette, resolve_palette

# ═══════════════════════════════════════════════════════════════════════════════
# 🔧 CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════════

BOUNDARY_DASH = (2, 2)
COUNTRY_ADMIN_LEVEL = 2
COUNTRY_BOUNDARY_WIDTH = 1
REGION_BOUNDARY_WIDTH = 0.5

ROAD_WIDE_ZOOM = 14
ROAD_WIDE_WIDTH = 2
ROAD_NARROW_WIDTH = 1

LOCALITY_KIND = "locality"
COUNTRY_KIND = "country"
COUNTRY_FONT_WEIGHT = 800
DEFAULT_FONT_WEIGHT = 500
MAJOR_LOCALITY_MIN_ZOOM = 6
MAJOR_LOCALITY_FONT_SIZE = 12
MINOR_LOCALITY_FONT_SIZE = 9
DEFAULT_FONT_SIZE = 11
LABEL_HALO_WIDTH = 4

LABEL_LAYERS = ("places", "physical_point")
ITALIC_LABEL_LAYER = "physical_point"
DISABLED_LAYERS = ("landuse",)

FeatureLike = Union[Feature, Mapping[str, Any]]


def _as_feature(feature: FeatureLike) -> Feature:
    return feature if isinstance(feature, Feature) else Feature(feature)


# ═══════════════════════════════════════════════════════════════════════════════
# 🏷️ LABEL RULES
# ═══════════════════════════════════════════════════════════════════════════════


def label_text(feature: Feature) -> str:
    """Localities keep their English name as-is; everything else is upper-cased."""
    name = feature.name_en or ""
    if feature.kind == LOCALITY_KIND:
        return name
    return name.upper()


def label_weight(feature: Feature) -> int:
    return COUNTRY_FONT_WEIGHT if feature.kind == COUNTRY_KIND else DEFAULT_FONT_WEIGHT


def label_font_size(feature: Feature) -> int:
    """
    Font size in pixels.

    Localities that appear before zoom 6 are the larger cities and get the
    bigger size; a locality without pmap:min_zoom is treated as minor.
    """
    if feature.kind == LOCALITY_KIND:
        min_zoom = feature.min_zoom
        if min_zoom is not None and min_zoom < MAJOR_LOCALITY_MIN_ZOOM:
            return MAJOR_LOCALITY_FONT_SIZE
        return MINOR_LOCALITY_FONT_SIZE
    return DEFAULT_FONT_SIZE


# ═══════════════════════════════════════════════════════════════════════════════
# 🎨 STYLE RESOLVER
# ═══════════════════════════════════════════════════════════════════════════════


def style_feature(
    layer_name: str,
    feature: FeatureLike,
    zoom: float,
    palette: ThemePalette,
) -> Optional[RenderStyle]:
    """
    Resolve the basemap style for one feature.

    Args:
        layer_name: Basemap layer the feature belongs to
        feature: Feature or raw attribute mapping
        zoom: Current (fractional) zoom level
        palette: Active ThemePalette

    Returns:
        RenderStyle, or None if the feature must not be rendered.
    """
    feature = _as_feature(feature)

    if layer_name == "boundaries":
        admin_level = feature.min_admin_level
        is_country = admin_level is not None and admin_level <= COUNTRY_ADMIN_LEVEL
        return RenderStyle(
            stroke=Stroke(
                color=palette.boundaries,
                width=COUNTRY_BOUNDARY_WIDTH if is_country else REGION_BOUNDARY_WIDTH,
                line_dash=BOUNDARY_DASH,
            )
        )

    if layer_name == "earth":
        return RenderStyle(fill=Fill(color=palette.earth))

    if layer_name == "water":
        return RenderStyle(fill=Fill(color=palette.water))

    if layer_name == "roads":
        return RenderStyle(
            stroke=Stroke(
                color=palette.roads,
                width=ROAD_WIDE_WIDTH if zoom > ROAD_WIDE_ZOOM else ROAD_NARROW_WIDTH,
            )
        )

    if layer_name in DISABLED_LAYERS:
        # Landuse fills are switched off for the basemap.
        return None

    if layer_name in LABEL_LAYERS:
        return RenderStyle(
            text=Text(
                text=label_text(feature),
                font_weight=label_weight(feature),
                font_size=label_font_size(feature),
                italic=layer_name == ITALIC_LABEL_LAYER,
                fill_color=palette.label,
                halo_color=palette.label_halo,
                halo_width=LABEL_HALO_WIDTH,
            )
        )

    return None


def basemap_style_function(
    view: Any, color_mode: Optional[str]
) -> Callable[[FeatureLike, float], Optional[RenderStyle]]:
    """
    Build the engine-facing style callback for the basemap layer.

    The rendering engine calls the returned function with a feature and the
    current map resolution; zoom is derived through the view and the layer
    name is read from the feature's "layer" attribute.

    Args:
        view: Object exposing zoom_for_resolution(resolution)
        color_mode: "light" or any other value (dark)
    """
    palette = resolve_palette(color_mode)

    def style(feature: FeatureLike, resolution: float) -> Optional[RenderStyle]:
        feature = _as_feature(feature)
        zoom = view.zoom_for_resolution(resolution)
        return style_feature(feature.layer, feature, zoom, palette)

    return style
