"""Built-in resource policies."""

import heapq
import itertools
import math
import numbers
from collections import deque
from typing import List, Tuple

from .base import AcquireResult, Request, ResourcePolicy
from ..core.exceptions import ResourceError


class SimpleResource(ResourcePolicy):
    """Counting semaphore: N interchangeable units served in FIFO order."""

    def __init__(self, capacity: int):
        super().__init__(capacity)
        self._queue = deque()

    @property
    def pending(self) -> List[Request]:
        return list(self._queue)

    def attempt_acquire(self, request: Request) -> AcquireResult:
        if self.available > 0:
            self._grant(request)
            return AcquireResult.GRANTED
        self._queue.append(request)
        return AcquireResult.QUEUED

    def release(self, requester: int) -> List[Request]:
        self._take_back(requester)
        if not self._queue:
            return []
        nxt = self._queue.popleft()
        self._grant(nxt)
        return [nxt]


class BoundedQueueResource(SimpleResource):
    """FIFO resource whose waiting line holds at most ``max_queue`` requests.

    Requests arriving while the line is full are rejected instead of
    queued; the requester is resumed right away and can react to it.
    """

    def __init__(self, capacity: int, max_queue: int):
        super().__init__(capacity)
        if max_queue < 0:
            raise ValueError("max_queue cannot be negative")
        self.max_queue = max_queue
        self.rejected = 0

    def attempt_acquire(self, request: Request) -> AcquireResult:
        if self.available == 0 and len(self._queue) >= self.max_queue:
            self.rejected += 1
            return AcquireResult.REJECTED
        return super().attempt_acquire(request)

    def describe(self):
        info = super().describe()
        info["max_queue"] = self.max_queue
        info["rejected"] = self.rejected
        return info


class PriorityResource(ResourcePolicy):
    """Grants waiters by ``metadata['priority']`` (lower first).

    Requests with equal priority are served in arrival order. Waiters with
    poor priority can starve while better ones keep arriving.
    """

    def __init__(self, capacity: int, default_priority: int = 0):
        super().__init__(capacity)
        self.default_priority = default_priority
        self._heap: List[Tuple[int, int, Request]] = []
        self._arrivals = itertools.count()

    @property
    def pending(self) -> List[Request]:
        return [request for _, _, request in sorted(self._heap)]

    def attempt_acquire(self, request: Request) -> AcquireResult:
        priority = request.metadata.get("priority", self.default_priority)
        if isinstance(priority, bool) or not isinstance(priority, numbers.Real) \
                or math.isnan(priority):
            raise ResourceError(f"Priority must be a number, got {priority!r}")
        if self.available > 0:
            self._grant(request)
            return AcquireResult.GRANTED
        heapq.heappush(self._heap, (priority, next(self._arrivals), request))
        return AcquireResult.QUEUED

    def release(self, requester: int) -> List[Request]:
        self._take_back(requester)
        if not self._heap:
            return []
        _, _, nxt = heapq.heappop(self._heap)
        self._grant(nxt)
        return [nxt]
