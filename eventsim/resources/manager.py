"""Ownership and arbitration of all resources in a simulation."""

import itertools
from typing import Any, Dict, List, Optional, Union

from .base import AcquireResult, Request, ResourcePolicy
from .simple import SimpleResource
from .store import Handoff, SimpleStore
from ..core.exceptions import ResourceError, ResourceInvariantError
from ..utils.logger import setup_logger


class ResourceManager:
    """Owns the set of created resources and stores.

    Every call runs to completion before returning; policies are only
    ever driven from here. Resources and stores share one id space.
    """

    def __init__(self):
        """Initialize empty resource manager."""
        self.logger = setup_logger(self.__class__.__name__)
        self._ids = itertools.count()
        self._resources: Dict[int, ResourcePolicy] = {}
        self._stores: Dict[int, SimpleStore] = {}

    def create(self, policy: Union[ResourcePolicy, int]) -> int:
        """Register a resource.

        Args:
            policy: Policy instance, or a capacity for a SimpleResource

        Returns:
            Id of the new resource
        """
        if isinstance(policy, int):
            policy = SimpleResource(policy)
        if not isinstance(policy, ResourcePolicy):
            raise TypeError(f"Expected a ResourcePolicy, got {type(policy).__name__}")

        resource_id = next(self._ids)
        self._resources[resource_id] = policy
        self.logger.debug(f"Created resource {resource_id}: {policy!r}")
        return resource_id

    def create_store(self, store: Union[SimpleStore, int]) -> int:
        """Register a store.

        Args:
            store: Store instance, or a capacity for a SimpleStore

        Returns:
            Id of the new store
        """
        if isinstance(store, int):
            store = SimpleStore(store)
        store_id = next(self._ids)
        self._stores[store_id] = store
        self.logger.debug(f"Created store {store_id}: {store!r}")
        return store_id

    def get(self, resource_id: int) -> ResourcePolicy:
        """Look up a resource policy.

        Raises:
            ResourceError: If no such resource exists
        """
        try:
            return self._resources[resource_id]
        except (KeyError, TypeError):
            raise ResourceError(f"Unknown resource id {resource_id!r}") from None

    def get_store(self, store_id: int) -> SimpleStore:
        """Look up a store.

        Raises:
            ResourceError: If no such store exists
        """
        try:
            return self._stores[store_id]
        except (KeyError, TypeError):
            raise ResourceError(f"Unknown store id {store_id!r}") from None

    def request(self, resource_id: int, requester: int, now: float,
                metadata: Optional[Dict[str, Any]] = None) -> AcquireResult:
        """Ask a resource for one unit on behalf of a process.

        Args:
            resource_id: Resource to acquire
            requester: Requesting process id
            now: Current simulation time
            metadata: Policy-specific request data

        Returns:
            Outcome reported by the policy
        """
        policy = self.get(resource_id)
        request = Request(requester, resource_id, now, dict(metadata or {}))
        result = policy.attempt_acquire(request)
        self._check_capacity(resource_id, policy)
        self.logger.debug(
            f"t={now}: process {requester} request on resource {resource_id} -> {result.value}"
        )
        return result

    def release(self, resource_id: int, requester: int) -> List[Request]:
        """Return one unit and let the policy promote waiters.

        Args:
            resource_id: Resource to release
            requester: Releasing process id

        Returns:
            Requests newly granted by the release
        """
        policy = self.get(resource_id)
        granted = policy.release(requester)
        self._check_capacity(resource_id, policy)
        return granted

    def put(self, store_id: int, process_id: int, item: Any) -> List[Handoff]:
        """Put an item into a store."""
        return self.get_store(store_id).put(process_id, item)

    def take(self, store_id: int, process_id: int) -> List[Handoff]:
        """Take an item from a store."""
        return self.get_store(store_id).get(process_id)

    def describe(self) -> Dict[int, Dict[str, Any]]:
        """Describe every resource and store."""
        info = {rid: policy.describe() for rid, policy in self._resources.items()}
        info.update({sid: store.describe() for sid, store in self._stores.items()})
        return info

    def resource_ids(self) -> List[int]:
        return list(self._resources)

    def _check_capacity(self, resource_id: int, policy: ResourcePolicy) -> None:
        if policy.in_use > policy.capacity:
            raise ResourceInvariantError(
                f"Resource {resource_id} has {policy.in_use} holders "
                f"but capacity {policy.capacity}"
            )

    def __len__(self) -> int:
        return len(self._resources) + len(self._stores)
