"""Tests for resource policies and the resource manager."""

import unittest

from eventsim.core.exceptions import ResourceError, ResourceInvariantError
from eventsim.resources import (
    AcquireResult, BoundedQueueResource, PriorityResource, Request,
    ResourceManager, ResourcePolicy, SimpleResource, SimpleStore,
)


def make_request(requester, resource_id=0, time=0.0, **metadata):
    return Request(requester, resource_id, time, metadata)


class TestSimpleResource(unittest.TestCase):
    """Test cases for SimpleResource."""

    def test_grants_up_to_capacity(self):
        """Test units are granted until capacity is reached."""
        resource = SimpleResource(2)

        self.assertEqual(resource.attempt_acquire(make_request(1)), AcquireResult.GRANTED)
        self.assertEqual(resource.attempt_acquire(make_request(2)), AcquireResult.GRANTED)
        self.assertEqual(resource.attempt_acquire(make_request(3)), AcquireResult.QUEUED)

        self.assertEqual(resource.in_use, 2)
        self.assertEqual(resource.available, 0)
        self.assertEqual([r.requester for r in resource.pending], [3])

    def test_release_grants_in_fifo_order(self):
        """Test waiters are served in arrival order."""
        resource = SimpleResource(1)
        resource.attempt_acquire(make_request(1))
        for requester in (2, 3, 4):
            resource.attempt_acquire(make_request(requester))

        served = []
        holder = 1
        for _ in range(3):
            granted = resource.release(holder)
            self.assertEqual(len(granted), 1)
            holder = granted[0].requester
            served.append(holder)

        self.assertEqual(served, [2, 3, 4])
        self.assertEqual(resource.release(4), [])
        self.assertEqual(resource.available, 1)

    def test_release_by_non_holder(self):
        """Test a release by a non-holder leaves the resource unchanged."""
        resource = SimpleResource(1)
        resource.attempt_acquire(make_request(1))
        resource.attempt_acquire(make_request(2))

        with self.assertRaises(ResourceError):
            resource.release(2)

        self.assertTrue(resource.holds(1))
        self.assertEqual([r.requester for r in resource.pending], [2])

    def test_double_release(self):
        """Test a second release of the same unit is refused."""
        resource = SimpleResource(1)
        resource.attempt_acquire(make_request(1))
        resource.release(1)

        with self.assertRaises(ResourceError):
            resource.release(1)
        self.assertEqual(resource.available, 1)

    def test_invalid_capacity(self):
        """Test capacity must be positive."""
        with self.assertRaises(ValueError):
            SimpleResource(0)

    def test_describe(self):
        """Test availability description."""
        resource = SimpleResource(3)
        resource.attempt_acquire(make_request(1))

        info = resource.describe()
        self.assertEqual(info['policy'], 'SimpleResource')
        self.assertEqual(info['capacity'], 3)
        self.assertEqual(info['in_use'], 1)
        self.assertEqual(info['available'], 2)
        self.assertEqual(info['queue_length'], 0)


class TestPriorityResource(unittest.TestCase):
    """Test cases for PriorityResource."""

    def test_lower_priority_value_served_first(self):
        """Test waiters are granted by priority, FIFO among equals."""
        resource = PriorityResource(1)
        resource.attempt_acquire(make_request(0))
        resource.attempt_acquire(make_request(1, priority=5))
        resource.attempt_acquire(make_request(2, priority=1))
        resource.attempt_acquire(make_request(3, priority=5))
        resource.attempt_acquire(make_request(4, priority=1))

        self.assertEqual([r.requester for r in resource.pending], [2, 4, 1, 3])

        served = []
        holder = 0
        for _ in range(4):
            holder = resource.release(holder)[0].requester
            served.append(holder)
        self.assertEqual(served, [2, 4, 1, 3])

    def test_default_priority(self):
        """Test requests without metadata use the default priority."""
        resource = PriorityResource(1, default_priority=3)
        resource.attempt_acquire(make_request(0))
        resource.attempt_acquire(make_request(1))
        resource.attempt_acquire(make_request(2, priority=2))

        self.assertEqual(resource.release(0)[0].requester, 2)

    def test_invalid_priority_leaves_resource_unchanged(self):
        """Test a non-numeric priority is refused before anything changes."""
        resource = PriorityResource(1)
        resource.attempt_acquire(make_request(0))
        resource.attempt_acquire(make_request(1, priority=2))

        with self.assertRaises(ResourceError):
            resource.attempt_acquire(make_request(2, priority=None))

        self.assertEqual([r.requester for r in resource.pending], [1])
        self.assertEqual(resource.in_use, 1)


class TestBoundedQueueResource(unittest.TestCase):
    """Test cases for BoundedQueueResource."""

    def test_rejects_when_queue_full(self):
        """Test requests beyond the queue bound are rejected."""
        resource = BoundedQueueResource(1, max_queue=1)

        self.assertEqual(resource.attempt_acquire(make_request(1)), AcquireResult.GRANTED)
        self.assertEqual(resource.attempt_acquire(make_request(2)), AcquireResult.QUEUED)
        self.assertEqual(resource.attempt_acquire(make_request(3)), AcquireResult.REJECTED)

        self.assertEqual(resource.rejected, 1)
        self.assertEqual(resource.describe()['rejected'], 1)
        self.assertEqual(resource.release(1)[0].requester, 2)


class OvergrantingPolicy(ResourcePolicy):
    """Broken policy that ignores its capacity."""

    @property
    def pending(self):
        return []

    def attempt_acquire(self, request):
        self._grant(request)
        return AcquireResult.GRANTED

    def release(self, requester):
        self._take_back(requester)
        return []


class TestResourceManager(unittest.TestCase):
    """Test cases for ResourceManager."""

    def setUp(self):
        """Set up test fixtures."""
        self.manager = ResourceManager()

    def test_create_from_capacity(self):
        """Test an int creates a SimpleResource."""
        resource_id = self.manager.create(2)

        self.assertIsInstance(self.manager.get(resource_id), SimpleResource)
        self.assertEqual(self.manager.get(resource_id).capacity, 2)

    def test_ids_are_unique(self):
        """Test resources and stores never share an id."""
        ids = [self.manager.create(1), self.manager.create_store(1), self.manager.create(1)]
        self.assertEqual(len(set(ids)), 3)
        self.assertEqual(len(self.manager), 3)

    def test_unknown_resource(self):
        """Test unknown ids raise ResourceError."""
        with self.assertRaises(ResourceError):
            self.manager.request(99, requester=1, now=0.0)
        with self.assertRaises(ResourceError):
            self.manager.release(99, requester=1)

    def test_unhashable_id(self):
        """Test an unhashable id is reported as an unknown resource."""
        with self.assertRaises(ResourceError):
            self.manager.get([0])
        with self.assertRaises(ResourceError):
            self.manager.get_store({})

    def test_request_and_release(self):
        """Test request/release round trip through the manager."""
        resource_id = self.manager.create(1)

        self.assertEqual(self.manager.request(resource_id, 1, 0.0), AcquireResult.GRANTED)
        self.assertEqual(self.manager.request(resource_id, 2, 1.0), AcquireResult.QUEUED)

        granted = self.manager.release(resource_id, 1)
        self.assertEqual(len(granted), 1)
        self.assertEqual(granted[0].requester, 2)
        self.assertEqual(granted[0].arrival_time, 1.0)

    def test_capacity_invariant_enforced(self):
        """Test a policy exceeding its capacity is detected."""
        resource_id = self.manager.create(OvergrantingPolicy(1))
        self.manager.request(resource_id, 1, 0.0)

        with self.assertRaises(ResourceInvariantError):
            self.manager.request(resource_id, 2, 0.0)

    def test_rejects_non_policy(self):
        """Test only policies or capacities are accepted."""
        with self.assertRaises(TypeError):
            self.manager.create("big")


class TestSimpleStore(unittest.TestCase):
    """Test cases for SimpleStore."""

    def test_put_then_get(self):
        """Test items come out in FIFO order."""
        store = SimpleStore(2)

        self.assertEqual(store.put(1, "a"), [(1, None)])
        self.assertEqual(store.put(1, "b"), [(1, None)])
        self.assertEqual(store.get(2), [(2, "a")])
        self.assertEqual(store.get(2), [(2, "b")])

    def test_get_blocks_until_put(self):
        """Test a getter waiting on an empty store receives the next item."""
        store = SimpleStore(1)

        self.assertEqual(store.get(2), [])
        self.assertEqual(store.put(1, "x"), [(2, "x"), (1, None)])
        self.assertEqual(len(store.items), 0)

    def test_put_blocks_when_full(self):
        """Test a putter waits until an item is taken."""
        store = SimpleStore(1)
        store.put(1, "a")

        self.assertEqual(store.put(3, "b"), [])
        self.assertEqual(store.get(2), [(2, "a"), (3, None)])
        self.assertEqual(list(store.items), ["b"])


if __name__ == '__main__':
    unittest.main()
