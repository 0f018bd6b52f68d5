"""Bounded producer/consumer stores."""

from collections import deque
from typing import Any, Dict, List, Tuple

Handoff = Tuple[int, Any]


class SimpleStore:
    """FIFO store holding at most ``capacity`` items.

    ``put`` blocks while the store is full and ``get`` blocks while it is
    empty. Both return the list of ``(process_id, value)`` hand-offs that
    became possible; the simulation resumes each listed process with the
    value (the item for a getter, None for a putter).
    """

    def __init__(self, capacity: int):
        """Initialize store.

        Args:
            capacity: Maximum number of stored items
        """
        if capacity < 1:
            raise ValueError(f"Store capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self.items = deque()
        self._getters = deque()
        self._putters = deque()

    def put(self, process_id: int, item: Any) -> List[Handoff]:
        if self._getters:
            getter = self._getters.popleft()
            return [(getter, item), (process_id, None)]
        if len(self.items) < self.capacity:
            self.items.append(item)
            return [(process_id, None)]
        self._putters.append((process_id, item))
        return []

    def get(self, process_id: int) -> List[Handoff]:
        if not self.items:
            self._getters.append(process_id)
            return []

        handoffs = [(process_id, self.items.popleft())]
        if self._putters:
            putter, item = self._putters.popleft()
            self.items.append(item)
            handoffs.append((putter, None))
        return handoffs

    def describe(self) -> Dict[str, Any]:
        return {
            "capacity": self.capacity,
            "items": len(self.items),
            "waiting_getters": len(self._getters),
            "waiting_putters": len(self._putters),
        }

    def __repr__(self) -> str:
        return f"SimpleStore(capacity={self.capacity}, items={len(self.items)})"
