"""Tests for the event queue."""

import random
import unittest

from eventsim.core.event_queue import Event, EventKind, EventQueue
from eventsim.core.exceptions import TimeRegressionError


class TestEventQueue(unittest.TestCase):
    """Test cases for EventQueue."""

    def test_empty_queue(self):
        """Test empty queue behavior."""
        queue = EventQueue()

        self.assertTrue(queue.is_empty())
        self.assertEqual(len(queue), 0)
        self.assertIsNone(queue.peek())
        self.assertIsNone(queue.peek_time())
        self.assertIsNone(queue.pop_earliest())

    def test_insert_pop(self):
        """Test insert and pop operations."""
        queue = EventQueue()

        event_id = queue.insert(Event(time=1.0, event_id=7, kind=EventKind.TIMEOUT))

        self.assertEqual(event_id, 7)
        self.assertFalse(queue.is_empty())
        self.assertEqual(queue.peek_time(), 1.0)

        popped = queue.pop_earliest()
        self.assertEqual(popped.time, 1.0)
        self.assertEqual(popped.event_id, 7)
        self.assertTrue(queue.is_empty())

    def test_assigns_ids_when_missing(self):
        """Test events inserted without an id receive distinct ones."""
        queue = EventQueue()

        ids = [queue.insert(Event(time=float(t))) for t in range(3)]

        self.assertEqual(len(set(ids)), 3)
        self.assertTrue(all(event_id >= 0 for event_id in ids))
        self.assertEqual([queue.pop_earliest().event_id for _ in range(3)], ids)

    def test_nan_time_rejected(self):
        """Test an event cannot be created at time NaN."""
        with self.assertRaises(ValueError):
            Event(time=float("nan"))

    def test_time_ordering(self):
        """Test queue returns events by ascending time."""
        queue = EventQueue()

        queue.insert(Event(time=3.0, event_id=0))
        queue.insert(Event(time=1.0, event_id=1))
        queue.insert(Event(time=2.0, event_id=2))

        times = [queue.pop_earliest().time for _ in range(3)]
        self.assertEqual(times, [1.0, 2.0, 3.0])

    def test_simultaneous_events_are_fifo(self):
        """Test events with the same time leave in insertion order."""
        queue = EventQueue()

        for event_id in range(5):
            queue.insert(Event(time=4.0, event_id=event_id))

        order = [queue.pop_earliest().event_id for _ in range(5)]
        self.assertEqual(order, [0, 1, 2, 3, 4])

    def test_sequence_is_stamped(self):
        """Test the queue assigns increasing sequence numbers."""
        queue = EventQueue()
        queue.insert(Event(time=1.0, event_id=0))
        queue.insert(Event(time=0.5, event_id=1))

        first = queue.pop_earliest()
        second = queue.pop_earliest()
        self.assertEqual(first.event_id, 1)
        self.assertGreater(first.sequence, second.sequence)

    def test_insert_before_last_popped_raises(self):
        """Test time regression is refused."""
        queue = EventQueue()
        queue.insert(Event(time=5.0, event_id=0))
        queue.pop_earliest()

        with self.assertRaises(TimeRegressionError):
            queue.insert(Event(time=4.0, event_id=1))

        # Same time is still allowed
        queue.insert(Event(time=5.0, event_id=2))
        self.assertEqual(queue.pop_earliest().event_id, 2)

    def test_negative_time_rejected(self):
        """Test events cannot be created at negative time."""
        with self.assertRaises(ValueError):
            Event(time=-1.0)

    def test_randomized_interleaving(self):
        """Test ordering holds for random interleavings of inserts and pops."""
        rng = random.Random(1234)

        for _ in range(20):
            queue = EventQueue()
            last_time = 0.0
            last_key = None
            next_id = 0

            for _ in range(300):
                if rng.random() < 0.6 or queue.is_empty():
                    t = last_time + rng.choice([0.0, 0.0, 1.0, 2.5])
                    queue.insert(Event(time=t, event_id=next_id))
                    next_id += 1
                else:
                    event = queue.pop_earliest()
                    self.assertGreaterEqual(event.time, last_time)
                    key = (event.time, event.event_id)
                    if last_key is not None and event.time == last_key[0]:
                        self.assertGreater(key[1], last_key[1])
                    last_key = key
                    last_time = event.time

            remaining = []
            while not queue.is_empty():
                remaining.append(queue.pop_earliest())
            keys = [(e.time, e.event_id) for e in remaining]
            self.assertEqual(keys, sorted(keys))


if __name__ == '__main__':
    unittest.main()
