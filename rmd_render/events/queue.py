"""In-memory bounded event queue drained by HTTP clients."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Any

from rmd_render.domain import RenderEvent

from .interfaces import RenderEventSinkPort


@dataclass(frozen=True)
class QueuedRenderEvent:
    """Render event tagged with its delivery sequence id.

    Attributes:
        event_id: Monotonically increasing id, starting at 1.
        event: Published render event.
    """

    event_id: int
    event: RenderEvent

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.event_id,
            "type": self.event.event_type,
            "data": self.event.to_payload(),
        }


class InMemoryRenderEventQueue(RenderEventSinkPort):
    """Thread-safe bounded event queue; oldest events are dropped first."""

    def __init__(self, max_events: int = 1000):
        """Initialize event queue.

        Args:
            max_events: Retained event count.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when max_events is not positive.
        """

        if max_events < 1:
            raise ValueError("max_events must be >= 1")
        self._events: deque[QueuedRenderEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()
        self._last_event_id = 0

    def events_publish(self, event: RenderEvent) -> None:
        """Append one event with the next sequence id."""

        with self._lock:
            self._last_event_id += 1
            self._events.append(QueuedRenderEvent(event_id=self._last_event_id, event=event))

    def events_list_after(self, after_event_id: int, limit: int) -> list[QueuedRenderEvent]:
        """Return retained events with ids greater than `after_event_id`.

        Args:
            after_event_id: Last id already seen by the caller.
            limit: Max events to return.

        Returns:
            list[QueuedRenderEvent]: Events in publication order.

        Raises:
            ValueError: Raised when limit is not positive.
        """

        if limit < 1:
            raise ValueError("limit must be >= 1")
        with self._lock:
            selected_events = [queued for queued in self._events if queued.event_id > after_event_id]
        return selected_events[:limit]

    def events_last_id(self) -> int:
        """Return the id of the most recently published event (0 when none)."""

        with self._lock:
            return self._last_event_id
