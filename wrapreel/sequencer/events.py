"""Sequencer event system for broadcasting presentation state changes.

Provides event types, event data structures, and an event emitter for
decoupled communication between the SequencerController and rendering,
logging or CLI consumers.

Usage:
    emitter = SequencerEventEmitter()
    emitter.subscribe(SequencerEventType.SLIDE_CHANGE, lambda evt: print(evt.data))
    emitter.emit(SequencerEvent(SequencerEventType.SLIDE_CHANGE, data={"index": 1}))
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Any, Optional
import logging
import time


class SequencerEventType(Enum):
    """Types of events emitted by the sequencer."""

    # Cycle lifecycle
    SEQUENCE_START = auto()    # Items arrived, intro armed
    SEQUENCE_RESET = auto()    # Explicit reset back to the intro
    ALTERNATE_ENTER = auto()   # Terminal switch into the alternate experience
    DISPOSED = auto()          # Controller torn down

    # Position changes
    SLIDE_CHANGE = auto()      # Current index moved
    PHASE_CHANGE = auto()      # Product slide flipped headline -> detail

    # Degradation
    DATA_UNAVAILABLE = auto()  # Loading / error / empty item supply
    ANOMALY = auto()           # Recovered from an invalid index


@dataclass
class SequencerEvent:
    """Represents a sequencer event with optional payload data.

    Attributes:
        event_type: Type of event that occurred
        data: Optional dictionary with event-specific data
        timestamp: Optional timestamp (set by emitter when missing)
    """
    event_type: SequencerEventType
    data: Optional[dict[str, Any]] = None
    timestamp: Optional[float] = None

    def __str__(self) -> str:
        if self.data:
            data_str = ", ".join(f"{k}={v}" for k, v in self.data.items())
            return f"SequencerEvent({self.event_type.name}, {data_str})"
        return f"SequencerEvent({self.event_type.name})"


Subscriber = Callable[[SequencerEvent], None]


class SequencerEventEmitter:
    """Event bus for sequencer state changes.

    Supports multiple subscribers per event type. A subscriber that raises
    is logged and skipped; the exception never reaches the controller.
    """

    def __init__(self):
        self._subscribers: dict[SequencerEventType, list[Subscriber]] = {}
        self.logger = logging.getLogger(__name__)

    def subscribe(self, event_type: SequencerEventType, callback: Subscriber) -> None:
        """Subscribe *callback* to *event_type* (duplicates are ignored)."""
        callbacks = self._subscribers.setdefault(event_type, [])
        if callback not in callbacks:
            callbacks.append(callback)
            self.logger.debug(f"[events] Subscribed to {event_type.name} (total={len(callbacks)})")

    def subscribe_all(self, callback: Subscriber) -> None:
        """Subscribe *callback* to every event type."""
        for event_type in SequencerEventType:
            self.subscribe(event_type, callback)

    def unsubscribe(self, event_type: SequencerEventType, callback: Subscriber) -> None:
        """Remove *callback* from *event_type*, if present."""
        callbacks = self._subscribers.get(event_type)
        if callbacks and callback in callbacks:
            callbacks.remove(callback)
            self.logger.debug(f"[events] Unsubscribed from {event_type.name} (total={len(callbacks)})")

    def emit(self, event: SequencerEvent) -> None:
        """Emit *event* to all subscribed callbacks."""
        if event.timestamp is None:
            event.timestamp = time.time()

        self.logger.debug(f"[events] Emitting: {event}")

        # Copy so callbacks may unsubscribe while being notified
        for callback in list(self._subscribers.get(event.event_type, ())):
            try:
                callback(event)
            except Exception as e:
                self.logger.error(f"[events] Callback error for {event.event_type.name}: {e}", exc_info=True)

    def clear_all(self) -> None:
        """Remove all event subscribers (useful for testing/cleanup)."""
        self._subscribers.clear()
        self.logger.debug("[events] Cleared all subscribers")
