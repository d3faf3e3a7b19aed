"""sqlite-specific fixtures"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from alembic import command
from sqlalchemy.engine import URL

from ledgerstore import config
from ledgerstore.adapters.db.engine import make_engine
from ledgerstore.adapters.db.metadata import metadata

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


@pytest.fixture
def sqlite_url_file(tmp_path: Path) -> str:
    """URL of a not-yet-created SQLite database file in the test's temp dir."""
    return str(URL.create("sqlite+pysqlite", database=str(tmp_path / "test.db")))


@pytest.fixture
def sqlite_engine_memory() -> Iterator[Engine]:
    """In-memory SQLite engine for unit-style tests.

    Uses `make_engine()` so SQLite PRAGMAs are applied.
    Creates/drops tables with `metadata.create_all()` / `drop_all()`.

    Note: No Alembic migrations are run here, so the append-only triggers on
    ``events`` are NOT present. The engine is only safe for single-threaded
    use: in-memory SQLite keeps one database per thread.

    Yields:
        Engine: SQLAlchemy engine bound to an in-memory DB.
    """
    test_engine = make_engine("sqlite+pysqlite:///:memory:")
    metadata.create_all(test_engine)
    yield test_engine
    metadata.drop_all(test_engine)
    test_engine.dispose()


@pytest.fixture
def sqlite_engine_file(sqlite_url_file: str) -> Iterator[Engine]:
    """File-backed SQLite engine migrated via Alembic (per test).

    A temp *file* (not :memory:) lets the migration, and every thread of a
    concurrency test, see the same database. This fixture:
      - runs `alembic upgrade head` for a URL under the test's temp dir,
      - returns an Engine from `make_engine()` (so PRAGMAs apply),
      - disposes the engine at teardown.

    Yields:
        Engine: SQLAlchemy engine pointing at a temp file DB.
    """
    command.upgrade(config.build_alembic_config(sqlite_url_file), "head")
    test_engine = make_engine(sqlite_url_file)
    try:
        yield test_engine
    finally:
        test_engine.dispose()
