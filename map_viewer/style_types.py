"""
Render style value types.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Frozen, value-comparable style objects consumed by the
rendering engine's paint step.

A basemap RenderStyle carries exactly one of stroke, fill or text. The data
layer overlay carries stroke and fill together. "Do not render" is expressed
as None by the resolver, never as an empty RenderStyle.

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

LABEL_FONT_FAMILY = "monospace"


# ═══════════════════════════════════════════════════════════════════════════════
# ✏️ STYLE PRIMITIVES
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Stroke:
    """Line styling.

    Attributes:
        color: CSS color string
        width: Line width in pixels
        line_dash: Dash pattern in pixels, None for a solid line
    """

    color: str
    width: float
    line_dash: Optional[Tuple[float, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "color": self.color,
            "width": self.width,
            "line_dash": list(self.line_dash) if self.line_dash else None,
        }


@dataclass(frozen=True)
class Fill:
    """Polygon fill styling."""

    color: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"color": self.color}


@dataclass(frozen=True)
class Text:
    """Point label styling.

    Attributes:
        text: Label content
        font_weight: CSS numeric font weight
        font_size: Font size in pixels
        italic: Whether the label is italicized
        fill_color: Text color
        halo_color: Color of the outline drawn behind the text
        halo_width: Width of the halo in pixels
        font_family: CSS font family
    """

    text: str
    font_weight: int
    font_size: int
    italic: bool
    fill_color: str
    halo_color: str
    halo_width: float
    font_family: str = LABEL_FONT_FAMILY

    @property
    def font_style(self) -> str:
        return "italic" if self.italic else "normal"

    @property
    def font(self) -> str:
        """CSS font shorthand, e.g. "italic 500 11px monospace"."""
        prefix = "italic " if self.italic else ""
        return f"{prefix}{self.font_weight} {self.font_size}px {self.font_family}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "text": self.text,
            "font": self.font,
            "font_weight": self.font_weight,
            "font_size": self.font_size,
            "font_style": self.font_style,
            "font_family": self.font_family,
            "fill_color": self.fill_color,
            "halo_color": self.halo_color,
            "halo_width": self.halo_width,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# 🎨 RENDER STYLE
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class RenderStyle:
    """Complete style for one rendered feature."""

    stroke: Optional[Stroke] = None
    fill: Optional[Fill] = None
    text: Optional[Text] = None

    @property
    def kind(self) -> str:
        """Which members are set: "stroke", "fill", "text" or "stroke+fill"."""
        parts = [
            name
            for name, member in (
                ("stroke", self.stroke),
                ("fill", self.fill),
                ("text", self.text),
            )
            if member is not None
        ]
        return "+".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind,
            "stroke": self.stroke.to_dict() if self.stroke else None,
            "fill": self.fill.to_dict() if self.fill else None,
            "text": self.text.to_dict() if self.text else None,
        }
