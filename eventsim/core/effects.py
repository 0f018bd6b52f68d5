"""Effects a process may yield to interact with the simulation.

A process suspends by yielding exactly one effect. The simulation
interprets it and decides when, and with which ``Context``, the process
runs again. Blocking effects resume the process through an event;
non-blocking effects resume it immediately within the same step.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class Effect:
    """Base class of every effect."""


@dataclass(frozen=True)
class Wait(Effect):
    """Resume after ``delay`` units of simulated time."""
    delay: float


@dataclass(frozen=True)
class WaitForEvent(Effect):
    """Suspend until the named event fires."""
    name: str


@dataclass(frozen=True)
class Request(Effect):
    """Ask for one unit of a resource.

    ``metadata`` is interpreted by the resource policy (e.g. ``priority``).
    """
    resource_id: int
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Release(Effect):
    """Give back one previously granted unit of a resource."""
    resource_id: int


@dataclass(frozen=True)
class Spawn(Effect):
    """Register a new process; the child id is returned in ``Context.value``."""
    process: Any
    name: Optional[str] = None


@dataclass(frozen=True)
class Trace(Effect):
    """Record observational data without affecting control flow."""
    data: Any = None


@dataclass(frozen=True)
class Fire(Effect):
    """Fire a named event after ``delay``."""
    name: str
    delay: float = 0.0
    value: Any = None


@dataclass(frozen=True)
class Passivate(Effect):
    """Suspend until another process (or the caller) activates this one."""


@dataclass(frozen=True)
class Activate(Effect):
    """Wake a passive process after ``delay``."""
    process_id: int
    delay: float = 0.0


@dataclass(frozen=True)
class Put(Effect):
    """Store an item, blocking while the store is full."""
    store_id: int
    item: Any = None


@dataclass(frozen=True)
class Get(Effect):
    """Take the oldest item from a store, blocking while it is empty."""
    store_id: int
