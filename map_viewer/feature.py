"""
Typed, read-only access to a rendered feature's attribute bag.

Every attribute read by the style resolver has an explicit default, so a
missing or NaN value never raises. Attributes that are not used for styling
stay opaque and are only surfaced for display (popup rows).
"""

from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Tuple, Union

import pandas as pd

AttributeValue = Union[str, int, float, None]

# ═══════════════════════════════════════════════════════════════════════════════
# 🔑 ATTRIBUTE KEYS
# ═══════════════════════════════════════════════════════════════════════════════

LAYER_KEY = "layer"
KIND_KEY = "pmap:kind"
MIN_ADMIN_LEVEL_KEY = "pmap:min_admin_level"
MIN_ZOOM_KEY = "pmap:min_zoom"
NAME_EN_KEY = "name:en"


def _clean(value: Any) -> Any:
    """Map pandas/NumPy missing markers (NaN, NaT, pd.NA) to None."""
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return None
    return value


def _as_number(value: Any) -> Optional[float]:
    value = _clean(value)
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_text(value: Any) -> Optional[str]:
    value = _clean(value)
    if value is None:
        return None
    return str(value)


class Feature:
    """Immutable attribute bag with typed accessors for styling attributes."""

    __slots__ = ("_attributes",)

    def __init__(self, attributes: Mapping[str, Any]) -> None:
        self._attributes = MappingProxyType(
            {str(key): _clean(value) for key, value in attributes.items()}
        )

    def get(self, key: str, default: AttributeValue = None) -> AttributeValue:
        value = self._attributes.get(key)
        return default if value is None else value

    def items(self) -> Tuple[Tuple[str, AttributeValue], ...]:
        """All attributes as ordered (key, value) pairs."""
        return tuple(self._attributes.items())

    @property
    def attributes(self) -> Mapping[str, AttributeValue]:
        return self._attributes

    @property
    def layer(self) -> str:
        return _as_text(self._attributes.get(LAYER_KEY)) or ""

    @property
    def kind(self) -> Optional[str]:
        return _as_text(self._attributes.get(KIND_KEY))

    @property
    def min_admin_level(self) -> Optional[float]:
        return _as_number(self._attributes.get(MIN_ADMIN_LEVEL_KEY))

    @property
    def min_zoom(self) -> Optional[float]:
        return _as_number(self._attributes.get(MIN_ZOOM_KEY))

    @property
    def name_en(self) -> Optional[str]:
        return _as_text(self._attributes.get(NAME_EN_KEY))

    def __iter__(self) -> Iterator[str]:
        return iter(self._attributes)

    def __len__(self) -> int:
        return len(self._attributes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Feature):
            return NotImplemented
        return dict(self._attributes) == dict(other._attributes)

    def __hash__(self) -> int:
        return hash(tuple(sorted((k, repr(v)) for k, v in self._attributes.items())))

    def __repr__(self) -> str:
        return f"Feature({dict(self._attributes)!r})"
