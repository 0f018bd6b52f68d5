"""Event queue implementation for discrete event simulation."""

import heapq
import itertools
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, List, Optional

from .exceptions import TimeRegressionError


class EventKind(Enum):
    """Kinds of events in the simulation."""
    # Process lifecycle
    START = "start"
    TIMEOUT = "timeout"
    WAKE = "wake"

    # Resource access
    GRANT = "grant"
    REJECT = "reject"

    # Store hand-offs
    STORE = "store"

    # User-defined named events
    NAMED = "named"


@dataclass(frozen=True, order=True)
class Event:
    """Event in the discrete event simulation.

    Events compare by ``(time, sequence)`` only, so simultaneous events
    fire in the order they were inserted.

    Attributes:
        time: Event timestamp
        sequence: Insertion counter, stamped by the queue
        event_id: Unique identifier; assigned by the queue if left negative
        kind: Kind of event
        process_id: Process resumed by the event (None for named events)
        name: Name of a named event
        resource_id: Resource or store involved, if any
        value: Value handed to the resumed process
    """
    time: float
    sequence: int = field(default=-1)
    event_id: int = field(default=-1, compare=False)
    kind: EventKind = field(default=EventKind.TIMEOUT, compare=False)
    process_id: Optional[int] = field(default=None, compare=False)
    name: Optional[str] = field(default=None, compare=False)
    resource_id: Optional[int] = field(default=None, compare=False)
    value: Any = field(default=None, compare=False)

    def __post_init__(self):
        """Validate event after initialization."""
        if math.isnan(self.time):
            raise ValueError("Event time cannot be NaN")
        if self.time < 0:
            raise ValueError("Event time cannot be negative")


class EventQueue:
    """Priority queue for managing simulation events.

    Events are ordered by time, with earlier events processed first.
    For events at the same time, the insertion sequence determines order.
    """

    def __init__(self):
        """Initialize empty event queue."""
        self._queue: List[Event] = []
        self._sequence = itertools.count()
        self._ids = itertools.count()
        self._last_popped_time = 0.0

    def insert(self, event: Event) -> int:
        """Add event to the queue.

        Args:
            event: Event to add; its sequence number is assigned here, and
                so is its id when ``event_id`` is negative

        Returns:
            The id of the inserted event

        Raises:
            TimeRegressionError: If the event lies before the last popped event
        """
        if event.time < self._last_popped_time:
            raise TimeRegressionError(event.time, self._last_popped_time)

        event_id = event.event_id if event.event_id >= 0 else next(self._ids)
        heapq.heappush(
            self._queue,
            replace(event, sequence=next(self._sequence), event_id=event_id),
        )
        return event_id

    def pop_earliest(self) -> Optional[Event]:
        """Remove and return the next event.

        Returns:
            Next event to process, or None if queue is empty
        """
        if not self._queue:
            return None
        event = heapq.heappop(self._queue)
        self._last_popped_time = event.time
        return event

    def peek(self) -> Optional[Event]:
        """Return the next event without removing it.

        Returns:
            Next event, or None if queue is empty
        """
        return self._queue[0] if self._queue else None

    def peek_time(self) -> Optional[float]:
        """Return the time of the next event, or None if queue is empty."""
        return self._queue[0].time if self._queue else None

    def is_empty(self) -> bool:
        """Check if queue is empty.

        Returns:
            True if queue is empty
        """
        return len(self._queue) == 0

    def __len__(self) -> int:
        """Get number of events in queue."""
        return len(self._queue)

    def __repr__(self) -> str:
        """String representation of event queue."""
        return f"EventQueue(size={len(self._queue)}, next={self.peek()})"
