"""
Data source load lifecycle.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: LoadState machine and lifecycle event stream shared by both
data source variants.

Transitions (one adapter instance per file, never reused):
    IDLE    --load-start-->  LOADING
    LOADING --load-end---->  LOADED
    IDLE | LOADING --load-error--> ERROR

LOADED and ERROR are terminal; later events are logged and dropped. Errors
are never retried and surface as a sticky boolean.

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

Extent = Tuple[float, float, float, float]


# ═══════════════════════════════════════════════════════════════════════════════
# 📦 STATES, EVENTS, ERRORS
# ═══════════════════════════════════════════════════════════════════════════════


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class SourceEvent(str, Enum):
    LOAD_START = "load-start"
    LOAD_END = "load-end"
    LOAD_ERROR = "load-error"


class SourceLoadError(Exception):
    """A data source could not be fetched or parsed."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{message} ({url})")
        self.url = url
        self.message = message


@dataclass(frozen=True)
class SourceEventData:
    """Payload passed to lifecycle listeners.

    Attributes:
        event: Which lifecycle event fired
        state: LoadState after the transition
        extent: Loaded data extent (load-end of documents only)
        error: The failure (load-error only)
    """

    event: SourceEvent
    state: LoadState
    extent: Optional[Extent] = None
    error: Optional[SourceLoadError] = None


SourceListener = Callable[[SourceEventData], Any]

_TRANSITIONS: Dict[Tuple[LoadState, SourceEvent], LoadState] = {
    (LoadState.IDLE, SourceEvent.LOAD_START): LoadState.LOADING,
    (LoadState.LOADING, SourceEvent.LOAD_END): LoadState.LOADED,
    (LoadState.IDLE, SourceEvent.LOAD_ERROR): LoadState.ERROR,
    (LoadState.LOADING, SourceEvent.LOAD_ERROR): LoadState.ERROR,
}


# ═══════════════════════════════════════════════════════════════════════════════
# 🔄 LIFECYCLE
# ═══════════════════════════════════════════════════════════════════════════════


class SourceLifecycle:
    """LoadState owner with an event listener registry."""

    def __init__(self, url: str) -> None:
        self.url = url
        self._state = LoadState.IDLE
        self._listeners: Dict[SourceEvent, List[SourceListener]] = {
            event: [] for event in SourceEvent
        }

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def loading(self) -> bool:
        return self._state is LoadState.LOADING

    @property
    def error(self) -> bool:
        return self._state is LoadState.ERROR

    def on(self, event: SourceEvent, listener: SourceListener) -> None:
        """Register a listener for one lifecycle event."""
        self._listeners[SourceEvent(event)].append(listener)

    def emit(
        self,
        event: SourceEvent,
        extent: Optional[Extent] = None,
        error: Optional[SourceLoadError] = None,
    ) -> bool:
        """
        Apply a lifecycle event and notify its listeners.

        Returns:
            True if the event caused a transition, False if it was dropped.
        """
        next_state = _TRANSITIONS.get((self._state, event))
        if next_state is None:
            logger.warning(
                f"Ignoring {event.value} for {self.url}: source is {self._state.value}"
            )
            return False

        self._state = next_state
        if event is SourceEvent.LOAD_ERROR:
            logger.error(f"❌ Failed to load {self.url}: {error}")
        else:
            logger.info(f"📂 {self.url}: {event.value} -> {next_state.value}")

        data = SourceEventData(event=event, state=next_state, extent=extent, error=error)
        for listener in list(self._listeners[event]):
            listener(data)
        return True
