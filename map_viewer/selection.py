#!/usr/bin/env python3
"""
Map Viewer - Interactive Selection

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Turn pointer clicks into a feature selection and drive the
popup overlay.

State machine:
    IDLE / SELECTED --click--> HIT_TESTING
    HIT_TESTING --hit-test resolves with features--> SELECTED (popup anchored)
    HIT_TESTING --hit-test resolves empty----------> IDLE     (popup hidden)

Every click is tagged with a sequence number. A hit-test result is applied
only if its tag is still the latest and the controller has not been
disposed, so a slow result for an older click can never overwrite a newer
selection.

Navigation Guide:
- PopupOverlay: anchor position of the popup element
- SelectionController: click handling and hit-test resolution

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from enum import Enum
from typing import Any, Callable, List, Optional, Protocol, Sequence, Tuple
import asyncio
import logging

from map_viewer.feature import AttributeValue, Feature
from map_viewer.map_view import Coordinate, MapView, Pixel

logger = logging.getLogger(__name__)

SelectionState = Optional[Tuple[Tuple[str, AttributeValue], ...]]


class SelectionStatus(str, Enum):
    IDLE = "idle"
    HIT_TESTING = "hit-testing"
    SELECTED = "selected"


class HitTestLayer(Protocol):
    async def get_features(self, pixel: Pixel, view: MapView) -> Sequence[Feature]:
        ...


# ═══════════════════════════════════════════════════════════════════════════
# 💬 POPUP OVERLAY
# ═══════════════════════════════════════════════════════════════════════════


class PopupOverlay:
    """Anchor of the popup element; None hides it."""

    def __init__(self) -> None:
        self.position: Optional[Coordinate] = None

    @property
    def visible(self) -> bool:
        return self.position is not None

    def set_position(self, position: Optional[Coordinate]) -> None:
        self.position = position


# ═══════════════════════════════════════════════════════════════════════════
# 🖱️ SELECTION CONTROLLER
# ═══════════════════════════════════════════════════════════════════════════


class SelectionController:
    """
    Click -> hit-test -> selection state machine for one map view.

    Args:
        layer: Layer to hit-test (anything with async get_features)
        view: MapView used for pixel conversions
        overlay: Popup overlay to anchor or hide
    """

    def __init__(
        self,
        layer: HitTestLayer,
        view: MapView,
        overlay: Optional[PopupOverlay] = None,
    ) -> None:
        self.layer = layer
        self.view = view
        self.overlay = overlay or PopupOverlay()
        self._status = SelectionStatus.IDLE
        self._selection: SelectionState = None
        self._latest_tag = 0
        self._disposed = False
        self._pending: Optional[asyncio.Task] = None
        self._listeners: List[Callable[["SelectionController"], Any]] = []

    @property
    def status(self) -> SelectionStatus:
        return self._status

    @property
    def selection(self) -> SelectionState:
        return self._selection

    @property
    def disposed(self) -> bool:
        return self._disposed

    def on_change(self, listener: Callable[["SelectionController"], Any]) -> None:
        """Register a listener fired after every applied hit-test result."""
        self._listeners.append(listener)

    def click(
        self, pixel: Pixel, coordinate: Optional[Coordinate] = None
    ) -> Optional["asyncio.Task[bool]"]:
        """
        Start a hit-test for a click.

        Must be called from a running event loop. Any hit-test still in
        flight is superseded (its result will be discarded).

        Args:
            pixel: Click position in viewport pixels
            coordinate: Click position as (lon, lat); derived from the view if omitted

        Returns:
            The hit-test task, or None if the controller is disposed.
        """
        if self._disposed:
            logger.warning("Click ignored: selection controller is disposed")
            return None

        if coordinate is None:
            coordinate = self.view.pixel_to_coordinate(pixel)

        self._latest_tag += 1
        tag = self._latest_tag
        self._status = SelectionStatus.HIT_TESTING

        loop = asyncio.get_running_loop()
        self._pending = loop.create_task(self._hit_test(tag, pixel, coordinate))
        return self._pending

    async def settle(self) -> None:
        """Wait for the latest hit-test to finish."""
        while self._pending is not None and not self._pending.done():
            await self._pending

    async def _hit_test(self, tag: int, pixel: Pixel, coordinate: Coordinate) -> bool:
        try:
            features = await self.layer.get_features(pixel, self.view)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # A failed hit-test is a miss, not an error state.
            logger.warning(f"Hit-test at {pixel} failed: {e}")
            features = []
        return self._apply(tag, features, coordinate)

    def _apply(
        self, tag: int, features: Sequence[Feature], coordinate: Coordinate
    ) -> bool:
        if self._disposed:
            logger.debug(f"Dropping hit-test #{tag}: controller disposed")
            return False
        if tag != self._latest_tag:
            logger.debug(f"Dropping stale hit-test #{tag} (latest #{self._latest_tag})")
            return False

        if features:
            self._selection = features[0].items()
            self._status = SelectionStatus.SELECTED
            self.overlay.set_position(coordinate)
        else:
            self._selection = None
            self._status = SelectionStatus.IDLE
            self.overlay.set_position(None)

        for listener in list(self._listeners):
            listener(self)
        return True

    def dispose(self) -> None:
        """Tear down permanently; in-flight results are ignored from now on."""
        self._disposed = True
        self._listeners.clear()
