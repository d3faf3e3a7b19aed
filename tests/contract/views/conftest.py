"""Pytest fixtures for ViewRepository contract tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from ledgerstore.adapters.db.schema import create_view_tables
from ledgerstore.adapters.views import InMemoryViewRepository, SqlAlchemyViewRepository
from ledgerstore.interfaces.view_repository import ViewRepository

VIEW_NAME = "order_summary"


@pytest.fixture(params=["memory", "sqlite"])
def view_repository(request: pytest.FixtureRequest) -> Iterator[ViewRepository]:
    """Return a fresh view repository for the ``order_summary`` view.

    Current params:
      - `"memory"` → `InMemoryViewRepository`
      - `"sqlite"` → `SqlAlchemyViewRepository` (SQLite in-memory via SQLAlchemy)
    """
    match request.param:
        case "memory":
            yield InMemoryViewRepository(VIEW_NAME)
        case "sqlite":
            engine = request.getfixturevalue("sqlite_engine_memory")
            create_view_tables(engine, VIEW_NAME)
            yield SqlAlchemyViewRepository(VIEW_NAME, engine)
        case _:
            raise ValueError(f"unknown store type: {request.param}")
