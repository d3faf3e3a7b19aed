"""SQLAlchemy-backed EventStore adapter for ledgerstore.

This module provides the plain event-log persistence strategy. Events are
inserted as a contiguous block in one transaction; the events table's primary
key ``(aggregate_type, aggregate_id, sequence)`` decides concurrent appends.
Whoever commits a sequence first wins, the other insert fails with a unique
violation, which `translate_database_errors` turns into `OptimisticLockError`.

Usage:
    Instantiate SqlAlchemyEventStore with a SQLAlchemy Engine (the pool) and,
    optionally, a custom events table built with
    `ledgerstore.adapters.db.schema.build_events_table`.

Classes:
    SqlAlchemyEventStore -- Implements EventStore using SQLAlchemy Core.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, insert, select

from ledgerstore.adapters.db.errors import translate_database_errors
from ledgerstore.adapters.db.schema import events as default_events_table
from ledgerstore.interfaces.errors import OptimisticLockError
from ledgerstore.interfaces.eventstore import (
    AggregateIdentity,
    EventRecord,
    EventStore,
    PendingEvent,
    validate_expected,
)

if TYPE_CHECKING:
    from sqlalchemy import RowMapping, Select, Table
    from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)

DEFAULT_STREAM_BATCH_SIZE = 200


class SqlAlchemyEventStore(EventStore):
    """SQLAlchemy-backed EventStore.

    - Uses the `events` table unless another one is given.
    - Borrows one pooled connection per operation and always releases it.
    - Holds no locks of its own: conflicts are detected by the database at write time.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        events_table: Table = default_events_table,
        stream_batch_size: int = DEFAULT_STREAM_BATCH_SIZE,
    ):
        if stream_batch_size < 1:
            raise ValueError("stream_batch_size must be >= 1")
        self.engine = engine
        self.events_table = events_table
        self.stream_batch_size = stream_batch_size

    # --------------------------------------------------------------------- #
    # Interface implementation
    # --------------------------------------------------------------------- #

    def append(
        self,
        identity: AggregateIdentity,
        expected_current_sequence: int,
        events: Sequence[PendingEvent],
    ) -> int:
        validate_expected(expected_current_sequence)
        if not events:
            return expected_current_sequence

        records = [
            EventRecord.from_pending(identity, sequence, event)
            for sequence, event in enumerate(events, start=expected_current_sequence + 1)
        ]

        with translate_database_errors(
            "append", resource=str(identity), expected=expected_current_sequence
        ), self.engine.begin() as connection:
            self._check_predecessor(connection, identity, expected_current_sequence)
            connection.execute(
                insert(self.events_table),
                [record.as_insertable_row() for record in records],
            )

        new_sequence = records[-1].sequence
        logger.debug(
            "appended %d event(s) to %s: sequence %d -> %d",
            len(records),
            identity,
            expected_current_sequence,
            new_sequence,
        )
        return new_sequence

    def load(self, identity: AggregateIdentity) -> list[EventRecord]:
        return self.load_after(identity, 0)

    def load_after(
        self, identity: AggregateIdentity, last_sequence: int
    ) -> list[EventRecord]:
        validate_expected(last_sequence, "last_sequence")
        with translate_database_errors(
            "load", resource=str(identity)
        ), self.engine.connect() as connection:
            return self._select_after(connection, identity, last_sequence)

    def iter_events(self, aggregate_type: str) -> Iterator[EventRecord]:
        """Stream one aggregate type in batches of `stream_batch_size` rows.

        The generator keeps its pooled connection checked out until it is
        exhausted or closed, e.g.::

            with contextlib.closing(store.iter_events("Order")) as stream:
                first = next(stream)
        """
        table = self.events_table
        stmt = (
            select(table)
            .where(table.c.aggregate_type == aggregate_type)
            .order_by(table.c.aggregate_id.asc(), table.c.sequence.asc())
            .execution_options(yield_per=self.stream_batch_size)
        )
        with translate_database_errors(
            "iter_events", resource=aggregate_type
        ), self.engine.connect() as connection:
            for row in connection.execute(stmt).mappings():
                yield self._to_record(row)

    def current_sequence(self, identity: AggregateIdentity) -> int:
        table = self.events_table
        stmt = select(func.max(table.c.sequence)).where(*self._key_clauses(identity))
        with translate_database_errors(
            "current_sequence", resource=str(identity)
        ), self.engine.connect() as connection:
            return connection.execute(stmt).scalar_one_or_none() or 0

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    def _key_clauses(self, identity: AggregateIdentity) -> tuple[Any, Any]:
        table = self.events_table
        return (
            table.c.aggregate_type == identity.aggregate_type,
            table.c.aggregate_id == identity.aggregate_id,
        )

    def _check_predecessor(
        self, connection: Connection, identity: AggregateIdentity, expected: int
    ) -> None:
        """Reject appends whose expected sequence is ahead of the stream.

        Events are never deleted, so once the predecessor exists it keeps
        existing; the race for the next sequence is still decided by the
        primary key on insert.

        Raises:
            OptimisticLockError: if the event at ``expected`` does not exist.
        """
        if expected == 0:
            return
        table = self.events_table
        stmt = select(table.c.sequence).where(
            *self._key_clauses(identity), table.c.sequence == expected
        )
        if connection.execute(stmt).first() is None:
            raise OptimisticLockError(
                f"{identity}: no event at expected sequence {expected}",
                resource=str(identity),
                expected=expected,
            )

    def _select_after(
        self, connection: Connection, identity: AggregateIdentity, last_sequence: int
    ) -> list[EventRecord]:
        table = self.events_table
        stmt: Select = (
            select(table)
            .where(*self._key_clauses(identity), table.c.sequence > last_sequence)
            .order_by(table.c.sequence.asc())
        )
        rows = connection.execute(stmt).mappings().all()
        return [self._to_record(row) for row in rows]

    @staticmethod
    def _to_record(row: RowMapping) -> EventRecord:
        return EventRecord(
            aggregate_type=row["aggregate_type"],
            aggregate_id=row["aggregate_id"],
            sequence=row["sequence"],
            event_type=row["event_type"],
            event_version=row["event_version"],
            payload=row["payload"],
            metadata=row["metadata"] or {},
        )
