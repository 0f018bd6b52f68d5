"""Shared resources and their grant policies."""

from .base import AcquireResult, Request, ResourcePolicy
from .simple import SimpleResource, BoundedQueueResource, PriorityResource
from .store import SimpleStore
from .manager import ResourceManager

__all__ = [
    "AcquireResult",
    "Request",
    "ResourcePolicy",
    "SimpleResource",
    "BoundedQueueResource",
    "PriorityResource",
    "SimpleStore",
    "ResourceManager",
]
