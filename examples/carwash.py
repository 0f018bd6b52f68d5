"""Cars arriving at a carwash with a few washing machines."""

import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from eventsim import Simulation, Request, Release, Trace, Wait
from eventsim.config import load_config
from eventsim.utils.io import save_history
from eventsim.utils.logger import setup_logger

NUM_MACHINES = 4
NUM_CARS = 400
SIM_TIME = 1000.0
MEAN_DRIVE = 5.0
MEAN_WASH = 2.0


def car(carwash, drive_time, wash_time):
    """Drive to the carwash, wait for a machine, wash, leave."""
    yield Wait(drive_time)
    ctx = yield Request(carwash)
    yield Trace({"event": "wash_start", "time": ctx.now})
    yield Wait(wash_time)
    yield Release(carwash)


def main():
    """Run the carwash example."""
    parser = argparse.ArgumentParser(description="Carwash simulation")
    parser.add_argument("--config", help="Optional YAML configuration")
    parser.add_argument("--history", help="Write the event history to this JSON file")
    args = parser.parse_args()

    logger = setup_logger("Carwash")
    config = load_config(args.config) if args.config else {}

    sim = Simulation(config)
    carwash = sim.create_resource(NUM_MACHINES)

    arrivals = sim.rng.uniform(0.0, SIM_TIME, NUM_CARS)
    for i, arrival in enumerate(sorted(arrivals)):
        drive_time = float(sim.rng.exponential(MEAN_DRIVE))
        wash_time = float(sim.rng.exponential(MEAN_WASH))
        sim.spawn(car(carwash, drive_time, wash_time), name=f"car-{i}", delay=float(arrival))

    results = sim.run()

    if sim.metrics is not None:
        logger.info(sim.metrics.get_summary())
    logger.info(f"Washes started: {len(sim.traces())}, finished at t={results['final_time']:.2f}")

    if args.history:
        save_history(sim.processed_events(), args.history, sim.traces(), sim.failures())
        logger.info(f"History written to {args.history}")


if __name__ == "__main__":
    main()
