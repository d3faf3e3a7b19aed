"""Relational schema for events, snapshots, aggregate state and views.

Every table is produced by a builder taking a table name and a `MetaData`, so
callers may partition storage per aggregate type or per view. The default
``events``/``snapshots``/``aggregates`` tables live on the shared
`ledgerstore.adapters.db.metadata.metadata` and are created by the Alembic
migration; view tables are created on demand with `create_view_tables`.

Constraints (enforced here):

| Table       | Constraint                                          | Purpose                       |
|-------------|-----------------------------------------------------|-------------------------------|
| events      | PK(aggregate_type, aggregate_id, sequence)          | optimistic append conflicts   |
| events      | CHECK(sequence >= 1)                                | sequences start at 1          |
| snapshots   | PK(aggregate_type, aggregate_id)                    | one snapshot per aggregate    |
| aggregates  | PK(aggregate_type, aggregate_id)                    | one state row per aggregate   |
| aggregates  | CHECK(version >= 1)                                 | stored versions start at 1    |
| <view>      | PK(view_instance_id), CHECK(version >= 1)           | one row per view instance     |

Append-only enforcement for ``events`` is applied in the migration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
)
from sqlalchemy.dialects.postgresql import JSONB

from .metadata import metadata as default_metadata

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

__all__ = [
    "PORTABLE_JSON",
    "aggregates",
    "build_aggregates_table",
    "build_events_table",
    "build_snapshots_table",
    "build_view_table",
    "create_view_tables",
    "events",
    "snapshots",
]

# Python None is stored as the JSON value null, never as SQL NULL
PORTABLE_JSON = JSON().with_variant(JSONB(), "postgresql")

AGGREGATE_TYPE_LENGTH = 100
AGGREGATE_ID_LENGTH = 200
EVENT_TYPE_LENGTH = 120
EVENT_VERSION_LENGTH = 40
VIEW_INSTANCE_ID_LENGTH = 200
VIEW_KEY_COLUMN = "view_instance_id"


def _existing(name: str, metadata: MetaData) -> Table | None:
    return metadata.tables.get(name)


def _aggregate_key_columns() -> list[Column]:
    return [
        Column(
            "aggregate_type",
            String(AGGREGATE_TYPE_LENGTH),
            nullable=False,
            comment="Aggregate kind (e.g., aggregate class name).",
        ),
        Column(
            "aggregate_id",
            String(AGGREGATE_ID_LENGTH),
            nullable=False,
            comment="Identifier of the aggregate instance.",
        ),
    ]


def build_events_table(name: str = "events", metadata: MetaData | None = None) -> Table:
    """Build (or return the already registered) append-only events table."""
    metadata = default_metadata if metadata is None else metadata
    if (table := _existing(name, metadata)) is not None:
        return table
    return Table(
        name,
        metadata,
        *_aggregate_key_columns(),
        Column(
            "sequence",
            Integer,
            nullable=False,
            comment="Per-aggregate sequence (starts at 1); used for optimistic concurrency.",
        ),
        Column(
            "event_type",
            String(EVENT_TYPE_LENGTH),
            nullable=False,
            comment="Event name used to pick the deserializer.",
        ),
        Column(
            "event_version",
            String(EVENT_VERSION_LENGTH),
            nullable=False,
            comment="Schema version of the serialized event.",
        ),
        Column(
            "payload",
            PORTABLE_JSON,
            nullable=False,
            comment="Serialized domain event body.",
        ),
        Column(
            "metadata",
            PORTABLE_JSON,
            nullable=False,
            comment="Side-channel data (e.g., correlation_id, actor).",
        ),
        PrimaryKeyConstraint("aggregate_type", "aggregate_id", "sequence"),
        CheckConstraint("sequence >= 1", name="positive_sequence"),
        comment="Append-only event log. One row per domain event.",
    )


def build_snapshots_table(
    name: str = "snapshots", metadata: MetaData | None = None
) -> Table:
    """Build (or return the already registered) snapshots table."""
    metadata = default_metadata if metadata is None else metadata
    if (table := _existing(name, metadata)) is not None:
        return table
    return Table(
        name,
        metadata,
        *_aggregate_key_columns(),
        Column(
            "last_sequence",
            Integer,
            nullable=False,
            comment="Sequence of the last event folded into the snapshot.",
        ),
        Column(
            "payload",
            PORTABLE_JSON,
            nullable=False,
            comment="Serialized aggregate state.",
        ),
        PrimaryKeyConstraint("aggregate_type", "aggregate_id"),
        CheckConstraint("last_sequence >= 1", name="positive_last_sequence"),
        comment="Latest snapshot per aggregate; overwritten in place.",
    )


def build_aggregates_table(
    name: str = "aggregates", metadata: MetaData | None = None
) -> Table:
    """Build (or return the already registered) aggregate-state table."""
    metadata = default_metadata if metadata is None else metadata
    if (table := _existing(name, metadata)) is not None:
        return table
    return Table(
        name,
        metadata,
        *_aggregate_key_columns(),
        Column(
            "version",
            Integer,
            nullable=False,
            comment="Incremented by 1 on every successful update.",
        ),
        Column(
            "payload",
            PORTABLE_JSON,
            nullable=False,
            comment="Serialized current aggregate state.",
        ),
        PrimaryKeyConstraint("aggregate_type", "aggregate_id"),
        CheckConstraint("version >= 1", name="positive_version"),
        comment="Current state per aggregate; no event history.",
    )


def build_view_table(name: str, metadata: MetaData | None = None) -> Table:
    """Build (or return the already registered) table for one view.

    Raises:
        ValueError: If ``name`` is already registered on ``metadata`` by a
            table that is not a view table (e.g. ``events``).
    """
    metadata = default_metadata if metadata is None else metadata
    if (table := _existing(name, metadata)) is not None:
        if VIEW_KEY_COLUMN not in table.c:
            raise ValueError(f"table {name!r} exists and is not a view table")
        return table
    return Table(
        name,
        metadata,
        Column(
            VIEW_KEY_COLUMN,
            String(VIEW_INSTANCE_ID_LENGTH),
            nullable=False,
            comment="Key of the view instance.",
        ),
        Column(
            "version",
            Integer,
            nullable=False,
            comment="Incremented by 1 on every successful update.",
        ),
        Column(
            "payload",
            PORTABLE_JSON,
            nullable=False,
            comment="Serialized view body.",
        ),
        PrimaryKeyConstraint(VIEW_KEY_COLUMN),
        CheckConstraint("version >= 1", name="positive_version"),
        comment=f"Materialized view '{name}'.",
    )


def create_view_tables(
    engine: Engine, *view_names: str, metadata: MetaData | None = None
) -> list[Table]:
    """Create the tables for the given views if they do not exist yet."""
    tables = [build_view_table(name, metadata) for name in view_names]
    with engine.begin() as connection:
        for table in tables:
            table.create(connection, checkfirst=True)
    return tables


events = build_events_table()
snapshots = build_snapshots_table()
aggregates = build_aggregates_table()
