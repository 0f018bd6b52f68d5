"""eventsim: discrete event simulation with generator-based processes."""

from .core.simulator import Simulation, SimulationState
from .core.event_queue import Event, EventKind, EventQueue
from .core.process import Context, ProcessState
from .core.effects import (
    Activate, Effect, Fire, Get, Passivate, Put, Release, Request, Spawn,
    Trace, Wait, WaitForEvent,
)
from .core.conditions import any_of, n_steps, no_events, until_time
from .core.exceptions import (
    EffectError, ProcessFailedError, ResourceError, ResourceInvariantError,
    SimulationError, TimeRegressionError,
)
from .core.metrics_collector import MetricsCollector
from .resources import (
    BoundedQueueResource, PriorityResource, ResourcePolicy, SimpleResource,
    SimpleStore,
)
from .config import load_config, merge_configs
from .utils.logger import setup_logger

__version__ = "0.1.0"
__all__ = [
    "Simulation",
    "SimulationState",
    "Event",
    "EventKind",
    "EventQueue",
    "Context",
    "ProcessState",
    "Effect",
    "Wait",
    "WaitForEvent",
    "Request",
    "Release",
    "Spawn",
    "Trace",
    "Fire",
    "Passivate",
    "Activate",
    "Put",
    "Get",
    "until_time",
    "no_events",
    "n_steps",
    "any_of",
    "SimulationError",
    "TimeRegressionError",
    "EffectError",
    "ResourceError",
    "ResourceInvariantError",
    "ProcessFailedError",
    "MetricsCollector",
    "ResourcePolicy",
    "SimpleResource",
    "PriorityResource",
    "BoundedQueueResource",
    "SimpleStore",
    "load_config",
    "merge_configs",
    "setup_logger",
]
