"""SQLAlchemy-backed view repository.

Each view name maps to its own table (see
`ledgerstore.adapters.db.schema.build_view_table`). Writes use the shared
version-guarded compare-and-swap: insert at version 1 when the caller saw no
view, otherwise update only the row still at the expected version.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar

from sqlalchemy import select

from ledgerstore.adapters.db.cas import compare_and_swap
from ledgerstore.adapters.db.errors import translate_database_errors
from ledgerstore.adapters.db.schema import build_view_table
from ledgerstore.interfaces.codec import (
    Codec,
    JsonCodec,
    decode_payload,
    encode_payload,
)
from ledgerstore.interfaces.eventstore import validate_expected
from ledgerstore.interfaces.view_repository import (
    LoadedView,
    ViewContext,
    ViewRepository,
)

if TYPE_CHECKING:
    from sqlalchemy import MetaData, Table
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

V = TypeVar("V")


class SqlAlchemyViewRepository(ViewRepository[V]):
    """Stores serialized views in a table named after the view.

    The table must exist before use: run `create_view_tables(engine, view_name)`
    or create it in a migration.
    """

    def __init__(
        self,
        view_name: str,
        engine: Engine,
        *,
        codec: Codec[V] | None = None,
        metadata: MetaData | None = None,
    ):
        self.view_name = view_name
        self.engine = engine
        self.codec: Codec[V] = codec if codec is not None else JsonCodec()
        self.table: Table = build_view_table(view_name, metadata)

    def _resource(self, view_instance_id: str) -> str:
        return f"{self.view_name}/{view_instance_id}"

    def load(self, view_instance_id: str) -> LoadedView[V] | None:
        resource = self._resource(view_instance_id)
        stmt = select(self.table.c.version, self.table.c.payload).where(
            self.table.c.view_instance_id == view_instance_id
        )
        with translate_database_errors(
            "load_view", resource=resource
        ), self.engine.connect() as connection:
            if not (row := connection.execute(stmt).fetchone()):
                return None
            view = decode_payload(self.codec, row.payload, what=f"view {resource}")
            return LoadedView(view, ViewContext(view_instance_id, int(row.version)))

    def update(self, view_instance_id: str, view: V, expected_version: int) -> int:
        validate_expected(expected_version, "expected_version")
        resource = self._resource(view_instance_id)
        payload = encode_payload(self.codec, view, what=f"view {resource}")
        with translate_database_errors(
            "update_view", resource=resource, expected=expected_version
        ), self.engine.begin() as connection:
            return compare_and_swap(
                connection,
                self.table,
                {"view_instance_id": view_instance_id},
                payload,
                expected_version,
                resource=resource,
            )
