"""Two processes sharing one CPU."""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from eventsim import Simulation, Request, Release, Wait, until_time
from eventsim.utils.logger import setup_logger


def fixed_job(cpu):
    """Use the CPU ten times for 5 time units each."""
    for _ in range(10):
        yield Request(cpu)
        yield Wait(5.0)
        yield Release(cpu)


def random_job(cpu, rng):
    """Use the CPU forever for random bursts."""
    while True:
        yield Request(cpu)
        yield Wait(float(rng.integers(0, 10)))
        yield Release(cpu)


def main():
    """Run the one-CPU example."""
    logger = setup_logger("OneCPU")

    sim = Simulation({'simulation': {'random_seed': 7}})
    cpu = sim.create_resource(1)

    sim.spawn(fixed_job(cpu), name="fixed")
    sim.spawn(random_job(cpu, sim.rng), name="random", delay=17.0)

    results = sim.run(until_time(100.0))

    for event in sim.processed_events():
        logger.info(f"{event.time:8.2f}  {event.kind.value:<8} process={event.process_id}")
    if sim.metrics is not None:
        logger.info(sim.metrics.get_summary())
    logger.info(f"Final time: {results['final_time']}")


if __name__ == "__main__":
    main()
