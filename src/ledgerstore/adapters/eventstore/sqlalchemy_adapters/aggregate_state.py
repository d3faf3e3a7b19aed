"""SQLAlchemy aggregate-state strategy: current state only, no history.

The aggregates table holds one row per aggregate with a version counter and
is written with the same compare-and-swap as materialized views.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar

from sqlalchemy import select

from ledgerstore.adapters.db.cas import compare_and_swap
from ledgerstore.adapters.db.errors import translate_database_errors
from ledgerstore.adapters.db.schema import aggregates as default_aggregates_table
from ledgerstore.interfaces.codec import (
    Codec,
    JsonCodec,
    decode_payload,
    encode_payload,
)
from ledgerstore.interfaces.eventstore import (
    AggregateIdentity,
    AggregateStateStore,
    LoadedAggregate,
    validate_expected,
)

if TYPE_CHECKING:
    from sqlalchemy import Table
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

S = TypeVar("S")


class SqlAlchemyAggregateStateStore(AggregateStateStore[S]):
    """Aggregate-state store backed by a SQLAlchemy table."""

    def __init__(
        self,
        engine: Engine,
        *,
        codec: Codec[S] | None = None,
        aggregates_table: Table = default_aggregates_table,
    ):
        self.engine = engine
        self.codec: Codec[S] = codec if codec is not None else JsonCodec()
        self.aggregates_table = aggregates_table

    def load_aggregate(self, identity: AggregateIdentity) -> LoadedAggregate[S] | None:
        table = self.aggregates_table
        stmt = select(table.c.version, table.c.payload).where(
            table.c.aggregate_type == identity.aggregate_type,
            table.c.aggregate_id == identity.aggregate_id,
        )
        with translate_database_errors(
            "load_aggregate", resource=str(identity)
        ), self.engine.connect() as connection:
            if not (row := connection.execute(stmt).fetchone()):
                return None
            state = decode_payload(self.codec, row.payload, what=f"state of {identity}")
            return LoadedAggregate(state, int(row.version))

    def update_aggregate(
        self, identity: AggregateIdentity, state: S, expected_version: int
    ) -> int:
        validate_expected(expected_version, "expected_version")
        payload = encode_payload(self.codec, state, what=f"state of {identity}")
        with translate_database_errors(
            "update_aggregate", resource=str(identity), expected=expected_version
        ), self.engine.begin() as connection:
            return compare_and_swap(
                connection,
                self.aggregates_table,
                {
                    "aggregate_type": identity.aggregate_type,
                    "aggregate_id": identity.aggregate_id,
                },
                payload,
                expected_version,
                resource=str(identity),
            )
