"""Stop predicates for ``Simulation.run_until``.

A predicate is any callable taking the simulation and returning True
when the driving loop should stop. It is checked once per iteration,
before the next event is popped.
"""

from typing import Callable

StopPredicate = Callable[["Simulation"], bool]


def until_time(limit: float) -> StopPredicate:
    """Stop once the next pending event lies after ``limit``.

    Events scheduled exactly at ``limit`` are still processed.
    """
    def predicate(sim) -> bool:
        next_time = sim.peek_time()
        return next_time is not None and next_time > limit

    return predicate


def no_events() -> StopPredicate:
    """Stop when no events are pending."""
    def predicate(sim) -> bool:
        return sim.peek_time() is None

    return predicate


class n_steps:
    """Stop after ``n`` events have been processed by this run.

    The count starts from the first time the predicate is evaluated, so
    events processed by earlier ``step()`` calls are not included.
    """

    def __init__(self, n: int):
        if n < 0:
            raise ValueError("Step count cannot be negative")
        self.n = n
        self._baseline = None

    def __call__(self, sim) -> bool:
        if self._baseline is None:
            self._baseline = sim.steps_taken
        return sim.steps_taken - self._baseline >= self.n


def any_of(*predicates: StopPredicate) -> StopPredicate:
    """Stop as soon as any of the given predicates holds."""
    def predicate(sim) -> bool:
        return any(p(sim) for p in predicates)

    return predicate
