"""Exceptions raised by the simulation engine."""


class SimulationError(Exception):
    """Base class for all engine errors."""


class TimeRegressionError(SimulationError):
    """An event was scheduled before the current simulation time.

    This breaks the monotonic-time invariant and halts the run.
    """

    def __init__(self, requested_time: float, now: float):
        super().__init__(
            f"Cannot schedule event at t={requested_time} before current time t={now}"
        )
        self.requested_time = requested_time
        self.now = now


class EffectError(SimulationError):
    """A process yielded a malformed effect."""


class ResourceError(SimulationError):
    """A resource was used incorrectly (unknown id, release by non-holder)."""


class ResourceInvariantError(SimulationError):
    """A resource policy granted more units than its capacity."""


class UnknownProcessError(SimulationError, KeyError):
    """No process is registered under the given id."""


class ProcessFailedError(SimulationError):
    """Raised when a process fails and the run is configured to abort on failure."""

    def __init__(self, record):
        super().__init__(
            f"Process {record.process_id} ({record.name}) failed at "
            f"t={record.time}: {record.reason}"
        )
        self.record = record
