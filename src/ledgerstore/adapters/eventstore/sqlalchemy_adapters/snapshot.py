"""SQLAlchemy snapshot strategy: event log plus one overwritable snapshot.

Events go through the same append protocol as `SqlAlchemyEventStore`. The
snapshot is a derived cache, so `save_snapshot` is a plain upsert that never
takes part in optimistic locking.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from ledgerstore.adapters.db.dialects import DialectName, UnsupportedDialect
from ledgerstore.adapters.db.errors import translate_database_errors
from ledgerstore.adapters.db.schema import events as default_events_table
from ledgerstore.adapters.db.schema import snapshots as default_snapshots_table
from ledgerstore.interfaces.codec import (
    Codec,
    JsonCodec,
    decode_payload,
    encode_payload,
)
from ledgerstore.interfaces.eventstore import (
    AggregateIdentity,
    Snapshot,
    SnapshotEventStore,
    SnapshotReplay,
)

from .eventstore import DEFAULT_STREAM_BATCH_SIZE, SqlAlchemyEventStore

if TYPE_CHECKING:
    from sqlalchemy import Table
    from sqlalchemy.engine import Connection, Engine
    from sqlalchemy.sql.dml import Insert

logger = logging.getLogger(__name__)

S = TypeVar("S")

DEFAULT_SNAPSHOT_SIZE = 10


class SqlAlchemySnapshotEventStore(SqlAlchemyEventStore, SnapshotEventStore[S]):
    """Event store keeping a snapshot every `snapshot_size` events."""

    def __init__(  # pylint: disable=too-many-arguments
        self,
        engine: Engine,
        *,
        snapshot_size: int = DEFAULT_SNAPSHOT_SIZE,
        codec: Codec[S] | None = None,
        events_table: Table = default_events_table,
        snapshots_table: Table = default_snapshots_table,
        stream_batch_size: int = DEFAULT_STREAM_BATCH_SIZE,
    ):
        if snapshot_size < 1:
            raise ValueError("snapshot_size must be >= 1")
        super().__init__(
            engine, events_table=events_table, stream_batch_size=stream_batch_size
        )
        self.snapshot_size = snapshot_size
        self.codec: Codec[S] = codec if codec is not None else JsonCodec()
        self.snapshots_table = snapshots_table
        self.dialect = DialectName.from_sqlalchemy(engine)

    # --------------------------------------------------------------------- #
    # Interface implementation
    # --------------------------------------------------------------------- #

    def load_since_snapshot(self, identity: AggregateIdentity) -> SnapshotReplay[S]:
        # one connection for both reads
        with translate_database_errors(
            "load_since_snapshot", resource=str(identity)
        ), self.engine.connect() as connection:
            snapshot = self._select_snapshot(connection, identity)
            last_sequence = snapshot.last_sequence if snapshot else 0
            events = self._select_after(connection, identity, last_sequence)
        return SnapshotReplay(snapshot, events)

    def load_snapshot(self, identity: AggregateIdentity) -> Snapshot[S] | None:
        with translate_database_errors(
            "load_snapshot", resource=str(identity)
        ), self.engine.connect() as connection:
            return self._select_snapshot(connection, identity)

    def save_snapshot(
        self, identity: AggregateIdentity, state: S, last_sequence: int
    ) -> None:
        if last_sequence < 1:
            raise ValueError("last_sequence must be >= 1")
        payload = encode_payload(self.codec, state, what=f"snapshot of {identity}")
        with translate_database_errors(
            "save_snapshot", resource=str(identity)
        ), self.engine.begin() as connection:
            connection.execute(self._build_upsert(identity, last_sequence, payload))
        logger.debug("snapshot of %s saved at sequence %d", identity, last_sequence)

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    def _select_snapshot(
        self, connection: Connection, identity: AggregateIdentity
    ) -> Snapshot[S] | None:
        table = self.snapshots_table
        stmt = select(table.c.last_sequence, table.c.payload).where(
            table.c.aggregate_type == identity.aggregate_type,
            table.c.aggregate_id == identity.aggregate_id,
        )
        if not (row := connection.execute(stmt).fetchone()):
            return None
        state = decode_payload(self.codec, row.payload, what=f"snapshot of {identity}")
        return Snapshot(
            aggregate_type=identity.aggregate_type,
            aggregate_id=identity.aggregate_id,
            last_sequence=int(row.last_sequence),
            state=state,
        )

    def _build_upsert(
        self,
        identity: AggregateIdentity,
        last_sequence: int,
        payload: Any,
    ) -> Insert:
        values = {
            "aggregate_type": identity.aggregate_type,
            "aggregate_id": identity.aggregate_id,
            "last_sequence": last_sequence,
            "payload": payload,
        }
        if self.dialect is DialectName.POSTGRES:
            stmt = pg_insert(self.snapshots_table).values(**values)
        elif self.dialect is DialectName.SQLITE:
            stmt = sqlite_insert(self.snapshots_table).values(**values)
        else:  # pragma: no cover
            raise UnsupportedDialect(f"Unsupported dialect: {self.dialect}")

        return stmt.on_conflict_do_update(
            index_elements=["aggregate_type", "aggregate_id"],
            set_={
                "last_sequence": stmt.excluded.last_sequence,
                "payload": stmt.excluded.payload,
            },
        )
