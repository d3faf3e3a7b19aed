"""Pytest fixtures for event store contract tests.

Every fixture is parametrized over the in-memory adapter and the SQLAlchemy
adapter on an in-memory SQLite engine, so each test runs once per backend.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from ledgerstore.adapters.eventstore.in_memory_adapters import (
    InMemoryAggregateStateStore,
    InMemoryEventStore,
    InMemorySnapshotEventStore,
)
from ledgerstore.adapters.eventstore.sqlalchemy_adapters import (
    SqlAlchemyAggregateStateStore,
    SqlAlchemyEventStore,
    SqlAlchemySnapshotEventStore,
)
from ledgerstore.interfaces.eventstore import (
    AggregateStateStore,
    EventStore,
    SnapshotEventStore,
)

BACKENDS = ["memory", "sqlite"]
SNAPSHOT_SIZE = 10


@pytest.fixture(params=BACKENDS)
def eventstore(request: pytest.FixtureRequest) -> Iterator[EventStore]:
    """Return a fresh event-log store for the requested backend.

    Current params:
      - `"memory"` → `InMemoryEventStore`
      - `"sqlite"` → `SqlAlchemyEventStore` (SQLite in-memory via SQLAlchemy)
    """
    match request.param:
        case "memory":
            yield InMemoryEventStore()
        case "sqlite":
            yield SqlAlchemyEventStore(request.getfixturevalue("sqlite_engine_memory"))
        case _:
            raise ValueError(f"unknown store type: {request.param}")


@pytest.fixture(params=BACKENDS)
def snapshot_store(request: pytest.FixtureRequest) -> Iterator[SnapshotEventStore]:
    """Return a fresh snapshot store (snapshot every 10 events)."""
    match request.param:
        case "memory":
            yield InMemorySnapshotEventStore(snapshot_size=SNAPSHOT_SIZE)
        case "sqlite":
            yield SqlAlchemySnapshotEventStore(
                request.getfixturevalue("sqlite_engine_memory"),
                snapshot_size=SNAPSHOT_SIZE,
            )
        case _:
            raise ValueError(f"unknown store type: {request.param}")


@pytest.fixture(params=BACKENDS)
def aggregate_store(request: pytest.FixtureRequest) -> Iterator[AggregateStateStore]:
    """Return a fresh aggregate-state store for the requested backend."""
    match request.param:
        case "memory":
            yield InMemoryAggregateStateStore()
        case "sqlite":
            yield SqlAlchemyAggregateStateStore(
                request.getfixturevalue("sqlite_engine_memory")
            )
        case _:
            raise ValueError(f"unknown store type: {request.param}")
