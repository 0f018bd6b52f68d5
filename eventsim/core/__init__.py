"""Core simulation components."""

from .simulator import Simulation, SimulationState
from .event_queue import Event, EventKind, EventQueue
from .process import Context, FailureRecord, Process, ProcessState, TraceRecord
from .metrics_collector import MetricsCollector

__all__ = [
    "Simulation",
    "SimulationState",
    "Event",
    "EventKind",
    "EventQueue",
    "Context",
    "FailureRecord",
    "Process",
    "ProcessState",
    "TraceRecord",
    "MetricsCollector",
]
