"""Version-guarded compare-and-swap shared by views and aggregate state.

Both the view tables and the aggregate-state table hold one row per key with
an integer ``version``. A write from ``expected_version``:

- ``0`` → INSERT with ``version = 1``; the primary key rejects a second insert
  (unique violation → `OptimisticLockError` via error translation).
- ``n > 0`` → ``UPDATE ... SET version = n + 1 WHERE <key> AND version = n``;
  zero rows affected means the stored version moved on (`OptimisticLockError`).

The insert-vs-update branch on ``expected_version`` avoids a separate
existence check, so every write is a single statement.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, insert, update

from ledgerstore.interfaces.errors import OptimisticLockError
from ledgerstore.interfaces.eventstore import validate_expected

if TYPE_CHECKING:
    from sqlalchemy import Table
    from sqlalchemy.engine import Connection

logger = logging.getLogger(__name__)


def compare_and_swap(
    connection: Connection,
    table: Table,
    key: Mapping[str, Any],
    payload: Any,
    expected_version: int,
    *,
    resource: str,
) -> int:
    """Write ``payload`` under ``key`` if the stored version is ``expected_version``.

    Must run inside a transaction owned by the caller; the caller is also
    responsible for translating database errors.

    Args:
        connection: Connection with an open transaction.
        table: Table with the key columns plus ``version`` and ``payload``.
        key: Column name → value identifying the row.
        payload: JSON-compatible value to store.
        expected_version: Version observed by the caller (0 = absent).
        resource: Row description for errors and logs.

    Raises:
        OptimisticLockError: if the guarded update matched no row.
        ValueError: if ``expected_version`` is negative.

    Returns:
        The new version.
    """
    validate_expected(expected_version, "expected_version")
    new_version = expected_version + 1

    if expected_version == 0:
        connection.execute(
            insert(table).values(**key, version=new_version, payload=payload)
        )
    else:
        key_clause = and_(*(table.c[name] == value for name, value in key.items()))
        result = connection.execute(
            update(table)
            .where(key_clause, table.c.version == expected_version)
            .values(version=new_version, payload=payload)
        )
        if result.rowcount < 1:
            logger.debug(
                "CAS on %s lost: stored version is not %d", resource, expected_version
            )
            raise OptimisticLockError(
                f"{resource}: stored version is not {expected_version}",
                resource=resource,
                expected=expected_version,
            )

    logger.debug("CAS on %s: version %d -> %d", resource, expected_version, new_version)
    return new_version
