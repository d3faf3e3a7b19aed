"""Defines the SQLAlchemy event store adapter package.

This package contains SQLAlchemy Core implementations of the three aggregate
persistence strategies:

- `SqlAlchemyEventStore`: append-only event log.
- `SqlAlchemySnapshotEventStore`: event log plus an overwritable snapshot.
- `SqlAlchemyAggregateStateStore`: current state only, version-guarded.
"""

from .aggregate_state import SqlAlchemyAggregateStateStore
from .eventstore import SqlAlchemyEventStore
from .snapshot import SqlAlchemySnapshotEventStore

__all__ = [
    "SqlAlchemyAggregateStateStore",
    "SqlAlchemyEventStore",
    "SqlAlchemySnapshotEventStore",
]
