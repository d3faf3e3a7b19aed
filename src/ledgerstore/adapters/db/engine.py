"""Database engine factory and helpers.

This module centralizes creation of SQLAlchemy Engines (the connection pool
every repository borrows connections from) and applies backend-specific tuning:

- **SQLite**: adds connection PRAGMAs to enforce foreign keys, enable WAL,
  balance durability, keep temporary storage in memory and wait on locks
  instead of failing immediately.
- **Other backends**: pool sizing only.

Repositories never create engines themselves; callers build one here (or
bring their own) and hand it over.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, make_url

if TYPE_CHECKING:
    from sqlite3 import Connection as SQLiteConnection

    from sqlalchemy.engine import Engine

SQLITE_NAMES = {"sqlite", "sqlite+pysqlite"}
SQLITE_MEMORY_DATABASES = {None, "", ":memory:"}

DEFAULT_POOL_SIZE = 10
SQLITE_BUSY_TIMEOUT_MS = 5000


def is_sqlite(url: str | URL) -> bool:
    """Return True if the given SQLAlchemy URL or string corresponds to SQLite.

    Args:
        url: A database URL string or SQLAlchemy :class:`URL`.

    Returns:
        bool: True if the backend is SQLite, otherwise False.
    """
    u = make_url(str(url))
    return u.get_backend_name() in SQLITE_NAMES


def is_sqlite_memory(url: str | URL) -> bool:
    """Return True for an in-memory SQLite URL."""
    return is_sqlite(url) and make_url(str(url)).database in SQLITE_MEMORY_DATABASES


def make_engine(
    url: str | URL, *, echo: bool = False, pool_size: int = DEFAULT_POOL_SIZE
) -> Engine:
    """Create a SQLAlchemy Engine for the given URL.

    If the backend is SQLite, applies a set of PRAGMAs on every new connection:
        - ``foreign_keys=ON`` (enforce referential integrity)
        - ``journal_mode=WAL`` (write-ahead logging for concurrency)
        - ``synchronous=NORMAL`` (balanced durability)
        - ``temp_store=MEMORY`` (reduce temp file I/O)
        - ``busy_timeout`` (concurrent writers queue instead of erroring)

    In-memory SQLite keeps SQLAlchemy's per-thread pool, so ``pool_size`` is
    ignored there.

    Args:
        url: Database connection URL (str or :class:`URL`).
        echo: If True, log SQL statements.
        pool_size: Number of pooled connections.

    Returns:
        Engine: Configured SQLAlchemy Engine.
    """
    if pool_size < 1:
        raise ValueError("pool_size must be >= 1")

    kwargs: dict[str, Any] = {}
    if not is_sqlite_memory(url):
        kwargs["pool_size"] = pool_size

    engine = create_engine(url, echo=echo, **kwargs)

    if is_sqlite(url):

        @event.listens_for(engine, "connect")
        def _sqlite_pragmas(dbapi_conn: SQLiteConnection, conn_record):  # type: ignore #pylint: disable=W0613
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON;")
            cur.execute("PRAGMA journal_mode=WAL;")
            cur.execute("PRAGMA synchronous=NORMAL;")
            cur.execute("PRAGMA temp_store=MEMORY;")
            cur.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS};")
            cur.close()

    return engine
