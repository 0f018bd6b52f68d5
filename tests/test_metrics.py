"""Tests for metrics collection and history export."""

import os
import tempfile
import unittest

from eventsim import Release, Request, Simulation, Trace, Wait
from eventsim.utils.io import load_history, load_json, save_history


def use_resource(resource_id, hold):
    yield Request(resource_id)
    yield Trace("holding")
    yield Wait(hold)
    yield Release(resource_id)


class TestMetricsCollector(unittest.TestCase):
    """Test cases for MetricsCollector."""

    def setUp(self):
        """Run a small contended simulation."""
        self.sim = Simulation({'logging': {'level': 'ERROR'}})
        self.resource = self.sim.create_resource(1)
        self.sim.spawn(use_resource(self.resource, 5.0))
        self.sim.spawn(use_resource(self.resource, 5.0))
        self.results = self.sim.run()

    def test_process_counts(self):
        """Test process outcomes are counted."""
        self.assertEqual(self.results['completed_processes'], 2)
        self.assertEqual(self.results['failed_processes'], 0)
        self.assertEqual(self.results['events_processed'], len(self.sim.processed_events()))

    def test_wait_statistics(self):
        """Test waiting times per resource."""
        stats = self.results['resources'][self.resource]

        self.assertEqual(stats['grants'], 2)
        self.assertAlmostEqual(stats['mean_wait'], 2.5)
        self.assertAlmostEqual(stats['max_wait'], 5.0)
        self.assertIn('p95_wait', stats)
        self.assertEqual(stats['max_queue_length'], 1)
        self.assertEqual(stats['max_in_use'], 1)

    def test_utilization(self):
        """Test time-weighted utilization of a fully busy resource."""
        stats = self.results['resources'][self.resource]

        self.assertAlmostEqual(stats['utilization'], 1.0)

    def test_events_by_kind(self):
        """Test events are counted by kind."""
        counts = self.results['events_by_kind']

        self.assertEqual(counts['start'], 2)
        self.assertEqual(counts['grant'], 2)
        self.assertEqual(counts['timeout'], 2)

    def test_history_frame(self):
        """Test the history is tabulated one row per event."""
        frame = self.sim.metrics.history_frame(self.sim.processed_events())

        self.assertEqual(len(frame), len(self.sim.processed_events()))
        self.assertEqual(list(frame['time']), sorted(frame['time']))
        self.assertIn('kind', frame.columns)

    def test_summary(self):
        """Test the human-readable summary."""
        summary = self.sim.metrics.get_summary()

        self.assertIn("Completed processes: 2", summary)
        self.assertIn(f"Resource {self.resource}", summary)

    def test_save_history(self):
        """Test history export to JSON."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'out', 'history.json')
            save_history(self.sim.processed_events(), path, self.sim.traces(), self.sim.failures())

            records = load_history(path)
            data = load_json(path)

        self.assertEqual(len(records), len(self.sim.processed_events()))
        self.assertEqual(records[0]['kind'], 'start')
        self.assertEqual([t['data'] for t in data['traces']], ["holding", "holding"])
        self.assertEqual(data['failures'], [])


if __name__ == '__main__':
    unittest.main()
