"""Translation of SQLAlchemy/driver failures into the persistence taxonomy.

`classify_database_error` is the only place in ledgerstore that interprets
backend-specific error signals. Supporting a new backend means teaching this
function its unique-violation and connection-failure codes; the repositories
are not touched.

Signals recognized:

| Signal                                               | Kind                       |
|------------------------------------------------------|----------------------------|
| SQLSTATE 23505 (PostgreSQL unique_violation)         | `OptimisticLockError`      |
| SQLite extended code 1555 / 2067 (PK / UNIQUE)       | `OptimisticLockError`      |
| "unique constraint" / "duplicate key" in the message | `OptimisticLockError`      |
| other `IntegrityError`                               | `UnknownPersistenceError`  |
| SQLSTATE class 08, invalidated connection            | `DatabaseConnectionError`  |
| SQLite busy/locked/I/O/cannot-open result codes      | `DatabaseConnectionError`  |
| Operational/Interface/Disconnection/pool timeout     | `DatabaseConnectionError`  |
| anything else                                        | `UnknownPersistenceError`  |
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from ledgerstore.interfaces.errors import (
    DatabaseConnectionError,
    DeserializationError,
    OptimisticLockError,
    PersistenceError,
    UnknownPersistenceError,
)

logger = logging.getLogger(__name__)

PG_UNIQUE_VIOLATION = "23505"  # pragma: no mutate
PG_CONNECTION_EXCEPTION_CLASS = "08"  # pragma: no mutate
SQLITE_CONSTRAINT_PRIMARYKEY = 1555  # pragma: no mutate
SQLITE_CONSTRAINT_UNIQUE = 2067  # pragma: no mutate
SQLITE_UNIQUE_CODES = {SQLITE_CONSTRAINT_PRIMARYKEY, SQLITE_CONSTRAINT_UNIQUE}
# primary result codes: BUSY, LOCKED, IOERR, FULL, CANTOPEN, PROTOCOL, NOTADB
SQLITE_CONNECTION_CODES = {5, 6, 10, 13, 14, 15, 26}
SQLITE_PRIMARY_CODE_MASK = 0xFF

# any of these in the lowercased driver message marks a unique violation
UNIQUE_VIOLATION_KEYWORDS = ("unique constraint", "duplicate key")  # pragma: no mutate

EMPTY_STRING = ""  # pragma: no mutate


def _driver_message(error: SQLAlchemyError) -> str:
    orig = getattr(error, "orig", None)
    return str(orig) if orig not in (None, EMPTY_STRING) else str(error)


def _sqlstate(error: SQLAlchemyError) -> str | None:
    """SQLSTATE of the driver error (psycopg 3 ``sqlstate``, psycopg2 ``pgcode``)."""
    orig = getattr(error, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _sqlite_code(error: SQLAlchemyError) -> int | None:
    return getattr(getattr(error, "orig", None), "sqlite_errorcode", None)


def is_unique_violation(error: IntegrityError) -> bool:
    """Return True if the integrity error is a unique/primary-key violation."""
    if (sqlstate := _sqlstate(error)) is not None:
        return sqlstate == PG_UNIQUE_VIOLATION
    if (code := _sqlite_code(error)) is not None:
        return code in SQLITE_UNIQUE_CODES
    msg = _driver_message(error).lower()
    return any(kw in msg for kw in UNIQUE_VIOLATION_KEYWORDS)


def is_connection_failure(error: SQLAlchemyError) -> bool:
    """Return True if the error means the backend could not be reached or used."""
    if isinstance(error, DBAPIError) and error.connection_invalidated:
        return True
    if (sqlstate := _sqlstate(error)) is not None and sqlstate.startswith(
        PG_CONNECTION_EXCEPTION_CLASS
    ):
        return True
    if (code := _sqlite_code(error)) is not None:
        return (code & SQLITE_PRIMARY_CODE_MASK) in SQLITE_CONNECTION_CODES
    return isinstance(
        error, OperationalError | InterfaceError | DisconnectionError | PoolTimeoutError
    )


def classify_database_error(error: SQLAlchemyError) -> PersistenceError:
    """Map a SQLAlchemy error to exactly one persistence error kind.

    The returned exception is not raised; callers raise it ``from error``.

    Args:
        error: The error raised by SQLAlchemy (possibly wrapping a DBAPI error).

    Returns:
        PersistenceError: `OptimisticLockError`, `DatabaseConnectionError` or
            `UnknownPersistenceError`.
    """
    msg = _driver_message(error)
    if isinstance(error, IntegrityError):
        if is_unique_violation(error):
            return OptimisticLockError(msg)
        return UnknownPersistenceError(msg)
    if is_connection_failure(error):
        return DatabaseConnectionError(msg)
    return UnknownPersistenceError(msg)


@contextmanager
def translate_database_errors(
    operation: str, *, resource: str | None = None, expected: int | None = None
) -> Iterator[None]:
    """Re-raise failures inside the block as persistence errors.

    - `PersistenceError` passes through untouched.
    - `SQLAlchemyError` is classified by `classify_database_error`.
    - `ValueError` (raised by the JSON result processor on corrupt stored
      text) becomes `DeserializationError`.

    Args:
        operation: Short description used in log messages, e.g. ``"append"``.
        resource: Contended row, attached to an `OptimisticLockError`.
        expected: Expected sequence/version, attached to an `OptimisticLockError`.
    """
    try:
        yield
    except PersistenceError:
        raise
    except SQLAlchemyError as e:
        translated = classify_database_error(e)
        if isinstance(translated, OptimisticLockError):
            translated.resource = resource
            translated.expected = expected
            logger.debug("%s %s lost the race (expected %s)", operation, resource, expected)
        else:
            logger.warning(
                "%s %s failed: %s (%s)",
                operation,
                resource or EMPTY_STRING,
                type(translated).__name__,
                translated,
            )
        raise translated from e
    except ValueError as e:
        logger.warning(
            "%s %s failed: stored payload is not valid JSON",
            operation,
            resource or EMPTY_STRING,
        )
        raise DeserializationError(f"{operation} {resource or EMPTY_STRING}: {e}") from e
