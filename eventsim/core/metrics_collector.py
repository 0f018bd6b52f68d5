"""Metrics collection and aggregation."""

import numpy as np
import pandas as pd
from typing import Dict, List, Sequence
from collections import Counter, defaultdict, deque

from .event_queue import Event
from .process import Process, ProcessState
from ..utils.logger import setup_logger


class MetricsCollector:
    """Collect and aggregate simulation metrics.

    Tracks resource-level metrics (waiting times, queue lengths, holder
    counts over time) and run-level counts (events, process outcomes).
    """

    def __init__(self, config: Dict):
        """Initialize metrics collector.

        Args:
            config: Configuration dictionary
        """
        self.config = config
        self.logger = setup_logger(self.__class__.__name__)

        # Resource-level metrics
        self._arrivals = defaultdict(deque)
        self.wait_times = defaultdict(list)
        self.rejections = Counter()

        # Resource state (time-series)
        self.resource_samples = defaultdict(list)
        self.capacities: Dict[int, int] = {}

        # Run-level counts
        self.events_by_kind = Counter()
        self.process_outcomes = Counter()
        self.last_time = 0.0

        # Percentiles to compute
        self.percentiles = config['metrics'].get('percentiles', [50, 90, 95, 99])

    def record_event(self, event: Event) -> None:
        """Record a processed event."""
        self.events_by_kind[event.kind.value] += 1
        self.last_time = event.time

    def record_request(self, resource_id: int, process_id: int, time: float) -> None:
        """Record the arrival of a resource request."""
        self._arrivals[(resource_id, process_id)].append(time)

    def record_grant(self, resource_id: int, process_id: int, time: float) -> None:
        """Record a grant and the time the requester waited for it."""
        arrivals = self._arrivals[(resource_id, process_id)]
        if arrivals:
            self.wait_times[resource_id].append(time - arrivals.popleft())

    def record_rejection(self, resource_id: int, process_id: int) -> None:
        """Record a refused request."""
        arrivals = self._arrivals[(resource_id, process_id)]
        if arrivals:
            arrivals.pop()
        self.rejections[resource_id] += 1

    def record_resource_state(self, time: float, resource_id: int, describe: Dict) -> None:
        """Record the state of a resource after a grant or release.

        Args:
            time: Current simulation time
            resource_id: Resource id
            describe: Output of the policy's ``describe()``
        """
        self.capacities[resource_id] = describe['capacity']
        self.resource_samples[resource_id].append(
            (time, describe['in_use'], describe['queue_length'])
        )

    def record_process_end(self, process: Process) -> None:
        """Record a process reaching a terminal state."""
        self.process_outcomes[process.state.value] += 1

    def compute_metrics(self) -> Dict:
        """Compute aggregate metrics from collected data.

        Returns:
            Dictionary of computed metrics
        """
        results = {
            'events_processed': sum(self.events_by_kind.values()),
            'events_by_kind': dict(self.events_by_kind),
            'completed_processes': self.process_outcomes[ProcessState.COMPLETED.value],
            'failed_processes': self.process_outcomes[ProcessState.FAILED.value],
            'resources': {},
        }

        resource_ids = set(self.wait_times) | set(self.resource_samples) | set(self.rejections)
        for resource_id in sorted(resource_ids):
            stats = {
                'grants': len(self.wait_times[resource_id]),
                'rejections': self.rejections[resource_id],
            }
            stats.update(self._compute_distribution_metrics(
                'wait', self.wait_times[resource_id]
            ))
            stats.update(self._compute_occupancy_metrics(resource_id))
            results['resources'][resource_id] = stats

        return results

    def _compute_distribution_metrics(self, name: str, values: List[float]) -> Dict:
        """Compute distribution statistics for a metric.

        Args:
            name: Metric name
            values: List of values

        Returns:
            Dictionary with mean, median, and percentiles
        """
        if not values:
            return {}

        results = {
            f'mean_{name}': float(np.mean(values)),
            f'median_{name}': float(np.median(values)),
            f'std_{name}': float(np.std(values)),
            f'max_{name}': float(np.max(values)),
        }

        for p in self.percentiles:
            results[f'p{p}_{name}'] = float(np.percentile(values, p))

        return results

    def _compute_occupancy_metrics(self, resource_id: int) -> Dict:
        """Compute time-weighted occupancy of a resource."""
        samples = self.resource_samples.get(resource_id)
        if not samples:
            return {}

        data = np.array(samples, dtype=float)
        times, in_use, queue = data[:, 0], data[:, 1], data[:, 2]
        end_time = max(self.last_time, times[-1])
        durations = np.diff(np.append(times, end_time))
        span = end_time - times[0]

        results = {
            'max_in_use': int(in_use.max()),
            'max_queue_length': int(queue.max()),
        }
        if span > 0:
            results['mean_in_use'] = float(np.sum(in_use * durations) / span)
            results['utilization'] = results['mean_in_use'] / self.capacities[resource_id]
            results['mean_queue_length'] = float(np.sum(queue * durations) / span)
        return results

    def history_frame(self, events: Sequence[Event]) -> pd.DataFrame:
        """Tabulate a processed-event history.

        Args:
            events: Events in processing order

        Returns:
            DataFrame with one row per event
        """
        columns = ['time', 'sequence', 'event_id', 'kind', 'process_id', 'name', 'resource_id']
        rows = [
            {
                'time': e.time,
                'sequence': e.sequence,
                'event_id': e.event_id,
                'kind': e.kind.value,
                'process_id': e.process_id,
                'name': e.name,
                'resource_id': e.resource_id,
            }
            for e in events
        ]
        return pd.DataFrame(rows, columns=columns)

    def get_summary(self) -> str:
        """Get human-readable summary of metrics.

        Returns:
            Formatted string with key metrics
        """
        metrics = self.compute_metrics()
        if not metrics['events_processed']:
            return "No metrics collected"

        summary = [
            "=== Metrics Summary ===",
            f"Events: {metrics['events_processed']}",
            f"Completed processes: {metrics['completed_processes']}",
            f"Failed processes: {metrics['failed_processes']}",
        ]
        for resource_id, stats in metrics['resources'].items():
            line = f"Resource {resource_id}: grants={stats['grants']}"
            if 'mean_wait' in stats:
                line += f", mean wait={stats['mean_wait']:.2f}"
            if 'utilization' in stats:
                line += f", utilization={stats['utilization']:.1%}"
            summary.append(line)

        return "\n".join(summary)
