"""Processes: cooperative, resumable units of computation."""

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generator, Optional

from .event_queue import Event


class ProcessState(Enum):
    """States of a process."""
    READY = "ready"
    RUNNING = "running"
    SUSPENDED = "suspended"
    COMPLETED = "completed"
    FAILED = "failed"


class WaitKind(Enum):
    """What a suspended process is waiting for."""
    EVENT = "event"
    NAMED = "named"
    RESOURCE = "resource"
    STORE = "store"
    PASSIVE = "passive"


@dataclass(frozen=True)
class WaitCondition:
    """Condition a suspended process waits on.

    Attributes:
        kind: Kind of wait
        event_id: Id of the event that will resume the process, once known
        name: Named event waited on
        resource_id: Resource or store the process is queued at
    """
    kind: WaitKind
    event_id: Optional[int] = None
    name: Optional[str] = None
    resource_id: Optional[int] = None


@dataclass(frozen=True)
class Context:
    """Read-only snapshot handed to a process on resumption.

    Attributes:
        now: Current simulation time
        cause: Event that caused this resumption
        value: Result of the effect that suspended the process, if any
    """
    now: float
    cause: Event
    value: Any = None


@dataclass(frozen=True)
class FailureRecord:
    """Why and when a process failed."""
    process_id: int
    name: str
    time: float
    reason: str
    exception: Optional[BaseException] = None


@dataclass(frozen=True)
class TraceRecord:
    """Observational data emitted by a process."""
    time: float
    process_id: int
    data: Any


class Process:
    """A logical actor driven by the simulation.

    Wraps either a generator object or a generator function. A generator
    function is called with the first Context to obtain the generator.
    The simulation never looks inside the generator; it only resumes it.
    """

    def __init__(self, process_id: int, body: Any, name: Optional[str] = None):
        """Initialize process.

        Args:
            process_id: Unique process identifier
            body: Generator, or generator function taking a Context
            name: Human-readable name

        Raises:
            TypeError: If body is neither a generator nor a callable
        """
        if not (inspect.isgenerator(body) or callable(body)):
            raise TypeError(f"Process body must be a generator or callable, got {body!r}")

        self.process_id = process_id
        self.name = name or getattr(body, "__name__", None) or f"process-{process_id}"
        self._body = body
        self._generator: Optional[Generator] = body if inspect.isgenerator(body) else None

        self.state = ProcessState.READY
        self.awaiting: Optional[WaitCondition] = None
        self.result: Any = None
        self.failure: Optional[FailureRecord] = None
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None

    @property
    def is_terminal(self) -> bool:
        """True once the process has completed or failed."""
        return self.state in (ProcessState.COMPLETED, ProcessState.FAILED)

    def resume(self, context: Context) -> Any:
        """Run the process until its next yield.

        Args:
            context: Snapshot delivered to the process

        Returns:
            The yielded effect

        Raises:
            StopIteration: When the process runs to completion
            RuntimeError: If the process is already terminal
            Exception: Whatever the process body raises
        """
        if self.is_terminal:
            raise RuntimeError(f"Process {self.process_id} is terminal and cannot be resumed")

        self.state = ProcessState.RUNNING
        self.awaiting = None

        first_run = self.start_time is None
        if first_run:
            self.start_time = context.now

        if self._generator is None:
            self._generator = self._body(context)
            if not inspect.isgenerator(self._generator):
                raise TypeError(
                    f"Process {self.name} did not return a generator "
                    f"(got {type(self._generator).__name__})"
                )

        # A fresh generator only accepts None on its first resumption
        if first_run:
            return next(self._generator)
        return self._generator.send(context)

    def suspend(self, condition: WaitCondition) -> None:
        """Mark the process as suspended on a condition."""
        self.state = ProcessState.SUSPENDED
        self.awaiting = condition

    def complete(self, result: Any, now: float) -> None:
        """Mark the process as completed."""
        self.state = ProcessState.COMPLETED
        self.result = result
        self.end_time = now

    def fail(self, record: FailureRecord) -> None:
        """Mark the process as failed and close its generator."""
        self.state = ProcessState.FAILED
        self.failure = record
        self.end_time = record.time
        self.awaiting = None
        if self._generator is not None:
            self._generator.close()

    def __repr__(self) -> str:
        return f"Process(id={self.process_id}, name={self.name!r}, state={self.state.value})"
