"""Defines the in-memory event store adapter package.

This package contains in-memory implementations of the three aggregate
persistence strategies. They are suitable for testing, prototyping, and
scenarios where durability is not a concern; all data is lost when the
instance is discarded.
"""

from .aggregate_state import InMemoryAggregateStateStore
from .eventstore import InMemoryEventStore, InMemorySnapshotEventStore

__all__ = [
    "InMemoryAggregateStateStore",
    "InMemoryEventStore",
    "InMemorySnapshotEventStore",
]
