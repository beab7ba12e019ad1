"""
Basemap color themes.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Fixed light/dark palettes for the basemap and the fixed
overlay style of the user's data layer.

Key Features:
- Exactly two frozen ThemePalette instances (LIGHT, DARK)
- resolve_palette(): color mode -> palette, unknown modes fall back to DARK
- data_layer_style(): stroke + fill applied to every feature of the data layer

The palette is always passed explicitly; there is no module-level "current
theme".

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

from dataclasses import dataclass, asdict
from typing import Dict, Optional

from map_viewer.style_types import Fill, RenderStyle, Stroke

# ═══════════════════════════════════════════════════════════════════════════════
# 🎨 PALETTES
# ═══════════════════════════════════════════════════════════════════════════════

LIGHT_MODE = "light"


@dataclass(frozen=True)
class ThemePalette:
    """Named basemap colors for one color mode.

    Attributes:
        name: "light" or "dark"
        boundaries: Administrative boundary stroke
        earth: Land fill
        water: Water fill
        roads: Road stroke
        landuse: Landuse fill (kept for completeness, landuse is not rendered)
        label: Place label text fill
        label_halo: Place label halo stroke
    """

    name: str
    boundaries: str
    earth: str
    water: str
    roads: str
    landuse: str
    label: str
    label_halo: str

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


LIGHT = ThemePalette(
    name="light",
    boundaries="#adadad",
    earth="white",
    water="#dcdcdc",
    roads="#ebebeb",
    landuse="#fcfcfc",
    label="#555555",
    label_halo="white",
)

DARK = ThemePalette(
    name="dark",
    boundaries="#707070",
    earth="#141414",
    water="#333333",
    roads="#292929",
    landuse="#181818",
    label="#eeeeee",
    label_halo="black",
)


def resolve_palette(color_mode: Optional[str]) -> ThemePalette:
    """Return LIGHT for the "light" color mode and DARK for anything else."""
    return LIGHT if color_mode == LIGHT_MODE else DARK


# ═══════════════════════════════════════════════════════════════════════════════
# 🟦 DATA LAYER STYLE
# ═══════════════════════════════════════════════════════════════════════════════

_DATA_LAYER_COLORS: Dict[str, Dict[str, str]] = {
    "light": {"stroke": "rgba(0,0,0,1.0)", "fill": "rgba(0,0,0,0.7)"},
    "dark": {"stroke": "rgba(255,255,255,1.0)", "fill": "rgba(255,255,255,0.5)"},
}


def data_layer_style(palette: ThemePalette) -> RenderStyle:
    """
    Fixed style of the user's data layer for a palette.

    Unlike the basemap, every data feature gets the same stroke and fill;
    only the colors follow the theme.
    """
    colors = _DATA_LAYER_COLORS[palette.name]
    return RenderStyle(
        stroke=Stroke(color=colors["stroke"], width=1),
        fill=Fill(color=colors["fill"]),
    )
