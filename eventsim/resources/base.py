"""Base class for resource grant policies."""

from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from ..core.exceptions import ResourceError


class AcquireResult(Enum):
    """Outcome of an acquisition attempt."""
    GRANTED = "granted"
    QUEUED = "queued"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Request:
    """A pending or granted request for one unit of a resource.

    Attributes:
        requester: Id of the requesting process
        resource_id: Id of the resource
        arrival_time: Simulation time the request was made
        metadata: Policy-specific data (e.g. priority)
    """
    requester: int
    resource_id: int
    arrival_time: float
    metadata: Dict[str, Any] = field(default_factory=dict)


class ResourcePolicy(ABC):
    """Finite-capacity resource with a pluggable grant policy.

    Subclasses decide who is granted and in which order waiters are
    served. The base class keeps holder bookkeeping so that the number of
    granted units never exceeds ``capacity`` and a release by a non-holder
    is refused before anything is mutated.
    """

    def __init__(self, capacity: int):
        """Initialize resource policy.

        Args:
            capacity: Number of interchangeable units
        """
        if capacity < 1:
            raise ValueError(f"Resource capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self.holders: Counter = Counter()

    @property
    def in_use(self) -> int:
        """Number of currently granted units."""
        return sum(self.holders.values())

    @property
    def available(self) -> int:
        """Number of free units."""
        return self.capacity - self.in_use

    @property
    @abstractmethod
    def pending(self) -> List[Request]:
        """Refused requests, in the order they will be served."""

    @abstractmethod
    def attempt_acquire(self, request: Request) -> AcquireResult:
        """Grant the request or queue it.

        Args:
            request: Incoming request

        Returns:
            GRANTED, QUEUED or REJECTED
        """

    @abstractmethod
    def release(self, requester: int) -> List[Request]:
        """Return one unit held by ``requester`` and promote waiters.

        Args:
            requester: Id of the releasing process

        Returns:
            Requests granted as a consequence of the release

        Raises:
            ResourceError: If ``requester`` holds no unit
        """

    def describe(self) -> Dict[str, Any]:
        """Describe current availability."""
        return {
            "policy": self.__class__.__name__,
            "capacity": self.capacity,
            "in_use": self.in_use,
            "available": self.available,
            "queue_length": len(self.pending),
        }

    def holds(self, requester: int) -> bool:
        """Check whether ``requester`` holds at least one unit."""
        return self.holders[requester] > 0

    def _grant(self, request: Request) -> None:
        self.holders[request.requester] += 1

    def _take_back(self, requester: int) -> None:
        if not self.holds(requester):
            raise ResourceError(
                f"Process {requester} released a resource unit it does not hold"
            )
        self.holders[requester] -= 1
        if self.holders[requester] == 0:
            del self.holders[requester]

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(capacity={self.capacity}, "
                f"in_use={self.in_use}, queued={len(self.pending)})")
