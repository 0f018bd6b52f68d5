"""Main simulation class driving processes through the event queue."""

import itertools
import math
import numbers
import time
from collections import defaultdict
from collections.abc import Mapping
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .conditions import StopPredicate, any_of, n_steps, until_time
from .effects import (
    Activate, Effect, Fire, Get, Passivate, Put, Release, Request, Spawn,
    Trace, Wait, WaitForEvent,
)
from .event_queue import Event, EventKind, EventQueue
from .exceptions import (
    EffectError, ProcessFailedError, ResourceError, ResourceInvariantError,
    SimulationError, TimeRegressionError, UnknownProcessError,
)
from .metrics_collector import MetricsCollector
from .process import (
    Context, FailureRecord, Process, ProcessState, TraceRecord, WaitCondition,
    WaitKind,
)
from ..config import resolve_config
from ..resources.base import AcquireResult
from ..resources.manager import ResourceManager
from ..utils.logger import ROOT_LOGGER_NAME, setup_logger

# Returned by effect handlers when the process stays suspended
_SUSPENDED = object()


class SimulationState(Enum):
    """States of a simulation run."""
    IDLE = "idle"
    RUNNING = "running"
    EXHAUSTED = "exhausted"
    STOPPED = "stopped"


class Simulation:
    """Discrete event simulator.

    This class owns and orchestrates:
    - The time-ordered event queue
    - The table of live processes
    - The resource manager
    - Metrics collection

    Everything runs on a single thread: exactly one process executes at a
    time and all state changes caused by one event are applied before the
    next event is popped.
    """

    def __init__(self, config: Optional[Dict] = None):
        """Initialize simulator.

        Args:
            config: Simulation configuration dictionary; missing keys are
                filled in from ``DEFAULT_CONFIG``
        """
        self.config = resolve_config(config)
        setup_logger(ROOT_LOGGER_NAME, self.config['logging'].get('level'))
        self.logger = setup_logger(self.__class__.__name__)

        sim_config = self.config['simulation']
        self.record_history = sim_config.get('record_history', True)
        self.raise_on_failure = sim_config.get('raise_on_failure', False)

        # Random generator for process code; the engine itself draws nothing
        self.rng = np.random.default_rng(sim_config.get('random_seed'))

        # Simulation state
        self.state = SimulationState.IDLE
        self._now = 0.0
        self.steps_taken = 0
        self.event_queue = EventQueue()
        self.resources = ResourceManager()
        self.metrics = (
            MetricsCollector(self.config)
            if self.config['metrics'].get('enabled', True) else None
        )

        # Processes
        self._processes: Dict[int, Process] = {}
        self._finished: Dict[int, Process] = {}
        self._named_waiters: Dict[str, List[int]] = defaultdict(list)

        # Outputs
        self._processed: List[Event] = []
        self._traces: List[TraceRecord] = []
        self._failures: List[FailureRecord] = []

        self._process_ids = itertools.count()
        self._driving = False
        self._pending_failure: Optional[FailureRecord] = None

        self._effect_handlers = {
            Wait: self._handle_wait,
            WaitForEvent: self._handle_wait_for_event,
            Request: self._handle_request,
            Release: self._handle_release,
            Spawn: self._handle_spawn,
            Trace: self._handle_trace,
            Fire: self._handle_fire,
            Passivate: self._handle_passivate,
            Activate: self._handle_activate,
            Put: self._handle_put,
            Get: self._handle_get,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def now(self) -> float:
        """Current simulation time."""
        return self._now

    def spawn(self, process: Any, name: Optional[str] = None, delay: float = 0.0) -> int:
        """Register a new process.

        The process starts through a START event at ``now + delay``, so
        processes spawned at the same instant start in spawn order.

        Args:
            process: Generator, or generator function taking a Context
            name: Human-readable name
            delay: Delay before the first resumption

        Returns:
            Id of the new process
        """
        process_id = next(self._process_ids)
        proc = Process(process_id, process, name)
        event_id = self._schedule(self._now + delay, EventKind.START, process_id=process_id)
        proc.awaiting = WaitCondition(WaitKind.EVENT, event_id=event_id)
        self._processes[process_id] = proc

        self.logger.debug(f"t={self._now}: spawned {proc!r} starting at t={self._now + delay}")
        return process_id

    def create_resource(self, policy) -> int:
        """Create a resource.

        Args:
            policy: ResourcePolicy instance, or a capacity for a SimpleResource

        Returns:
            Id of the new resource
        """
        return self.resources.create(policy)

    def create_store(self, store) -> int:
        """Create a store.

        Args:
            store: SimpleStore instance, or its capacity

        Returns:
            Id of the new store
        """
        return self.resources.create_store(store)

    def schedule_event(self, name: str, delay: float = 0.0, value: Any = None) -> int:
        """Fire a named event after ``delay``.

        Every process waiting on ``name`` when the event fires is resumed.

        Returns:
            Id of the scheduled event

        Raises:
            TimeRegressionError: If ``delay`` is negative
            ValueError: If ``delay`` is NaN
        """
        return self._schedule(self._now + delay, EventKind.NAMED, name=name, value=value)

    def activate(self, process_id: int, delay: float = 0.0) -> int:
        """Wake a passive process after ``delay``.

        Returns:
            Id of the scheduled event
        """
        if process_id not in self._processes:
            raise UnknownProcessError(f"No live process with id {process_id}")
        return self._schedule(self._now + delay, EventKind.WAKE, process_id=process_id)

    def peek_time(self) -> Optional[float]:
        """Time of the next pending event, or None."""
        return self.event_queue.peek_time()

    def step(self) -> Optional[Event]:
        """Process exactly one event.

        Returns:
            The processed event, or None if the queue was empty

        Raises:
            TimeRegressionError: If the popped event lies before ``now``
            ProcessFailedError: If a process failed and ``raise_on_failure`` is set
        """
        if self._driving:
            raise SimulationError("step() cannot be called from inside a process")

        event = self.event_queue.pop_earliest()
        if event is None:
            self.state = SimulationState.EXHAUSTED
            return None

        if event.time < self._now:
            raise TimeRegressionError(event.time, self._now)

        self.state = SimulationState.RUNNING
        self._now = event.time
        self.steps_taken += 1
        self.logger.debug(f"t={self._now}: processing {event.kind.value} event {event.event_id}")

        self._driving = True
        try:
            for process_id, value in self._resolve(event):
                self._drive(process_id, event, value)
        finally:
            self._driving = False

        if self.record_history:
            self._processed.append(event)
        if self.metrics is not None:
            self.metrics.record_event(event)

        if self._pending_failure is not None:
            record, self._pending_failure = self._pending_failure, None
            raise ProcessFailedError(record)

        return event

    def run_until(self, predicate: StopPredicate) -> SimulationState:
        """Process events until ``predicate`` holds or the queue is empty.

        The predicate is checked before each event is popped, so a
        predicate that already holds processes nothing.

        Args:
            predicate: Callable taking the simulation

        Returns:
            STOPPED or EXHAUSTED
        """
        while True:
            if predicate(self):
                self.state = SimulationState.STOPPED
                break
            if self.step() is None:
                break
        return self.state

    def run(self, until: Optional[StopPredicate] = None) -> Dict:
        """Run the simulation.

        Without ``until``, the stop condition comes from the
        ``simulation.until_time`` / ``simulation.max_steps`` settings, and
        the run goes on until the queue is exhausted if neither is set.

        Returns:
            Dictionary containing simulation results and metrics
        """
        start_time = time.time()
        self.logger.info("Starting simulation...")

        if until is None:
            until = self._configured_stop()
        final_state = self.run_until(until)

        elapsed_time = time.time() - start_time
        self.logger.info(
            f"Simulation {final_state.value} at t={self._now} after "
            f"{self.steps_taken} events ({elapsed_time:.2f}s wall time)"
        )
        return self.results()

    def processed_events(self) -> Tuple[Event, ...]:
        """Processed events, in processing order."""
        return tuple(self._processed)

    def traces(self) -> Tuple[TraceRecord, ...]:
        """Records emitted through the Trace effect."""
        return tuple(self._traces)

    def failures(self) -> Tuple[FailureRecord, ...]:
        """Failure records of every failed process."""
        return tuple(self._failures)

    def process(self, process_id: int) -> Process:
        """Look up a live or finished process."""
        proc = self._processes.get(process_id) or self._finished.get(process_id)
        if proc is None:
            raise UnknownProcessError(f"No process with id {process_id}")
        return proc

    def process_state(self, process_id: int) -> ProcessState:
        return self.process(process_id).state

    def live_processes(self) -> List[int]:
        """Ids of processes that have not terminated."""
        return list(self._processes)

    def suspended_processes(self) -> List[int]:
        """Ids of processes currently suspended."""
        return [
            pid for pid, proc in self._processes.items()
            if proc.state == ProcessState.SUSPENDED
        ]

    def is_deadlocked(self) -> bool:
        """True if processes remain suspended with no event left to wake them."""
        return self.event_queue.is_empty() and bool(self.suspended_processes())

    def results(self) -> Dict:
        """Summarize the run.

        Returns:
            Dictionary containing run state and computed metrics
        """
        results = {
            'final_time': self._now,
            'state': self.state.value,
            'steps': self.steps_taken,
            'live_processes': len(self._processes),
            'suspended_processes': len(self.suspended_processes()),
            'failures': [
                {'process_id': f.process_id, 'name': f.name, 'time': f.time, 'reason': f.reason}
                for f in self._failures
            ],
        }
        if self.metrics is not None:
            results.update(self.metrics.compute_metrics())
        return results

    # ------------------------------------------------------------------
    # Event processing
    # ------------------------------------------------------------------

    def _configured_stop(self) -> StopPredicate:
        sim_config = self.config['simulation']
        predicates = []
        if sim_config.get('until_time') is not None:
            predicates.append(until_time(sim_config['until_time']))
        if sim_config.get('max_steps') is not None:
            predicates.append(n_steps(sim_config['max_steps']))
        if not predicates:
            return lambda sim: False
        return any_of(*predicates)

    def _schedule(self, at: float, kind: EventKind, process_id: Optional[int] = None,
                  name: Optional[str] = None, resource_id: Optional[int] = None,
                  value: Any = None) -> int:
        if math.isnan(at):
            raise ValueError("Cannot schedule an event at time NaN")
        if at < self._now:
            raise TimeRegressionError(at, self._now)
        event = Event(
            time=at,
            kind=kind,
            process_id=process_id,
            name=name,
            resource_id=resource_id,
            value=value,
        )
        return self.event_queue.insert(event)

    def _resolve(self, event: Event) -> List[Tuple[int, Any]]:
        """Find the processes an event resumes, with the value each receives."""
        if event.kind == EventKind.NAMED:
            waiters = self._named_waiters.pop(event.name, [])
            return [
                (pid, event.value) for pid in waiters
                if self._is_awaiting(pid, WaitKind.NAMED, name=event.name)
            ]

        if event.kind == EventKind.WAKE:
            if self._is_awaiting(event.process_id, WaitKind.PASSIVE):
                return [(event.process_id, None)]
            self.logger.debug(
                f"t={self._now}: wake for process {event.process_id} ignored, not passive"
            )
            return []

        proc = self._processes.get(event.process_id)
        if proc is not None and proc.awaiting is not None \
                and proc.awaiting.event_id == event.event_id:
            return [(event.process_id, event.value)]

        self.logger.debug(
            f"t={self._now}: {event.kind.value} event {event.event_id} "
            f"for process {event.process_id} is stale"
        )
        return []

    def _is_awaiting(self, process_id: int, kind: WaitKind, name: Optional[str] = None) -> bool:
        proc = self._processes.get(process_id)
        if proc is None or proc.awaiting is None or proc.state != ProcessState.SUSPENDED:
            return False
        return proc.awaiting.kind == kind and (name is None or proc.awaiting.name == name)

    def _drive(self, process_id: int, cause: Event, value: Any) -> None:
        """Resume a process and interpret what it yields.

        Non-blocking effects resume the process again right away; the loop
        ends when the process suspends or terminates.
        """
        proc = self._processes.get(process_id)
        if proc is None:
            return
        context = Context(now=self._now, cause=cause, value=value)

        while True:
            try:
                effect = proc.resume(context)
            except StopIteration as stop:
                self._complete(proc, stop.value)
                return
            except (TimeRegressionError, ResourceInvariantError):
                raise
            except Exception as exc:
                self._fail(proc, f"{type(exc).__name__}: {exc}", exc)
                return

            try:
                outcome = self._apply(proc, effect)
            except (TimeRegressionError, ResourceInvariantError):
                raise
            except (EffectError, ResourceError) as exc:
                self._fail(proc, str(exc), exc)
                return
            except Exception as exc:
                self._fail(proc, f"Bad effect {effect!r}: {type(exc).__name__}: {exc}", exc)
                return

            if outcome is _SUSPENDED:
                return
            context = Context(now=self._now, cause=cause, value=outcome)

    def _apply(self, proc: Process, effect: Any) -> Any:
        if not isinstance(effect, Effect):
            raise EffectError(f"Process {proc.name} yielded {effect!r}, which is not an Effect")

        for effect_type in type(effect).__mro__:
            handler = self._effect_handlers.get(effect_type)
            if handler is not None:
                return handler(proc, effect)

        raise EffectError(f"Unsupported effect {type(effect).__name__}")

    def _complete(self, proc: Process, result: Any) -> None:
        proc.complete(result, self._now)
        self._retire(proc)
        self.logger.debug(f"t={self._now}: {proc!r} completed")

    def _fail(self, proc: Process, reason: str, exc: Optional[BaseException] = None) -> None:
        record = FailureRecord(proc.process_id, proc.name, self._now, reason, exc)
        proc.fail(record)
        self._retire(proc)
        self._failures.append(record)
        self.logger.warning(f"t={self._now}: process {proc.process_id} ({proc.name}) failed: {reason}")

        if self.raise_on_failure and self._pending_failure is None:
            self._pending_failure = record

    def _retire(self, proc: Process) -> None:
        del self._processes[proc.process_id]
        self._finished[proc.process_id] = proc
        if self.metrics is not None:
            self.metrics.record_process_end(proc)

    # ------------------------------------------------------------------
    # Effect handlers
    # ------------------------------------------------------------------

    def _check_delay(self, delay: Any) -> float:
        if isinstance(delay, bool) or not isinstance(delay, numbers.Real) or math.isnan(delay):
            raise EffectError(f"Delay must be a number, got {delay!r}")
        if delay < 0:
            raise EffectError(f"Delay cannot be negative, got {delay}")
        return float(delay)

    def _handle_wait(self, proc: Process, effect: Wait) -> Any:
        delay = self._check_delay(effect.delay)
        event_id = self._schedule(self._now + delay, EventKind.TIMEOUT, process_id=proc.process_id)
        proc.suspend(WaitCondition(WaitKind.EVENT, event_id=event_id))
        return _SUSPENDED

    def _handle_wait_for_event(self, proc: Process, effect: WaitForEvent) -> Any:
        if not isinstance(effect.name, str) or not effect.name:
            raise EffectError(f"Event name must be a non-empty string, got {effect.name!r}")
        self._named_waiters[effect.name].append(proc.process_id)
        proc.suspend(WaitCondition(WaitKind.NAMED, name=effect.name))
        return _SUSPENDED

    def _handle_request(self, proc: Process, effect: Request) -> Any:
        resource_id = effect.resource_id
        if effect.metadata is not None and not isinstance(effect.metadata, Mapping):
            raise EffectError(f"Request metadata must be a mapping, got {effect.metadata!r}")
        result = self.resources.request(
            resource_id, proc.process_id, self._now, effect.metadata
        )

        if self.metrics is not None:
            self.metrics.record_request(resource_id, proc.process_id, self._now)

        if result == AcquireResult.QUEUED:
            proc.suspend(WaitCondition(WaitKind.RESOURCE, resource_id=resource_id))
        else:
            kind = EventKind.GRANT if result == AcquireResult.GRANTED else EventKind.REJECT
            event_id = self._schedule(
                self._now, kind, process_id=proc.process_id,
                resource_id=resource_id, value=resource_id,
            )
            proc.suspend(WaitCondition(WaitKind.EVENT, event_id=event_id, resource_id=resource_id))
            if self.metrics is not None:
                if kind == EventKind.GRANT:
                    self.metrics.record_grant(resource_id, proc.process_id, self._now)
                else:
                    self.metrics.record_rejection(resource_id, proc.process_id)

        self._record_resource_state(resource_id)
        return _SUSPENDED

    def _handle_release(self, proc: Process, effect: Release) -> Any:
        resource_id = effect.resource_id
        granted = self.resources.release(resource_id, proc.process_id)

        for request in granted:
            waiter = self._processes.get(request.requester)
            event_id = self._schedule(
                self._now, EventKind.GRANT, process_id=request.requester,
                resource_id=resource_id, value=resource_id,
            )
            if waiter is not None:
                waiter.suspend(WaitCondition(WaitKind.EVENT, event_id=event_id, resource_id=resource_id))
            if self.metrics is not None:
                self.metrics.record_grant(resource_id, request.requester, self._now)
            self.logger.debug(
                f"t={self._now}: resource {resource_id} handed from process "
                f"{proc.process_id} to process {request.requester}"
            )

        self._record_resource_state(resource_id)
        return None

    def _handle_spawn(self, proc: Process, effect: Spawn) -> Any:
        try:
            return self.spawn(effect.process, effect.name)
        except TypeError as exc:
            raise EffectError(str(exc)) from exc

    def _handle_trace(self, proc: Process, effect: Trace) -> Any:
        self._traces.append(TraceRecord(self._now, proc.process_id, effect.data))
        self.logger.debug(f"t={self._now}: trace from process {proc.process_id}: {effect.data!r}")
        return None

    def _handle_fire(self, proc: Process, effect: Fire) -> Any:
        delay = self._check_delay(effect.delay)
        if not isinstance(effect.name, str) or not effect.name:
            raise EffectError(f"Event name must be a non-empty string, got {effect.name!r}")
        return self.schedule_event(effect.name, delay, effect.value)

    def _handle_passivate(self, proc: Process, effect: Passivate) -> Any:
        proc.suspend(WaitCondition(WaitKind.PASSIVE))
        return _SUSPENDED

    def _handle_activate(self, proc: Process, effect: Activate) -> Any:
        delay = self._check_delay(effect.delay)
        if effect.process_id not in self._processes:
            raise EffectError(f"Cannot activate process {effect.process_id!r}: not a live process")
        return self.activate(effect.process_id, delay)

    def _handle_put(self, proc: Process, effect: Put) -> Any:
        handoffs = self.resources.put(effect.store_id, proc.process_id, effect.item)
        return self._apply_handoffs(proc, effect.store_id, handoffs)

    def _handle_get(self, proc: Process, effect: Get) -> Any:
        handoffs = self.resources.take(effect.store_id, proc.process_id)
        return self._apply_handoffs(proc, effect.store_id, handoffs)

    def _apply_handoffs(self, proc: Process, store_id: int, handoffs) -> Any:
        """Schedule a STORE event for each process a store operation unblocked."""
        proc.suspend(WaitCondition(WaitKind.STORE, resource_id=store_id))
        for process_id, value in handoffs:
            event_id = self._schedule(
                self._now, EventKind.STORE, process_id=process_id,
                resource_id=store_id, value=value,
            )
            target = self._processes.get(process_id)
            if target is not None:
                target.suspend(WaitCondition(WaitKind.EVENT, event_id=event_id, resource_id=store_id))
        return _SUSPENDED

    def _record_resource_state(self, resource_id: int) -> None:
        if self.metrics is not None:
            self.metrics.record_resource_state(
                self._now, resource_id, self.resources.get(resource_id).describe()
            )
