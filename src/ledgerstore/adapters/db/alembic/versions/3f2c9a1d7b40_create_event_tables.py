"""Create events, snapshots and aggregates tables

Revision ID: 3f2c9a1d7b40
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from ledgerstore.adapters.db.schema import (
    AGGREGATE_ID_LENGTH,
    AGGREGATE_TYPE_LENGTH,
    EVENT_TYPE_LENGTH,
    EVENT_VERSION_LENGTH,
    PORTABLE_JSON,
)

# pylint: disable=no-member

# revision identifiers, used by Alembic.
revision: str = "3f2c9a1d7b40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _aggregate_key_columns() -> list[sa.Column]:
    return [
        sa.Column(
            "aggregate_type",
            sa.String(length=AGGREGATE_TYPE_LENGTH),
            nullable=False,
            comment="Aggregate kind (e.g., aggregate class name).",
        ),
        sa.Column(
            "aggregate_id",
            sa.String(length=AGGREGATE_ID_LENGTH),
            nullable=False,
            comment="Identifier of the aggregate instance.",
        ),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    # works online and in offline (--sql) mode
    dialect = op.get_context().dialect.name

    op.create_table(
        "events",
        *_aggregate_key_columns(),
        sa.Column(
            "sequence",
            sa.Integer(),
            nullable=False,
            comment="Per-aggregate sequence (starts at 1); used for optimistic concurrency.",
        ),
        sa.Column(
            "event_type",
            sa.String(length=EVENT_TYPE_LENGTH),
            nullable=False,
            comment="Event name used to pick the deserializer.",
        ),
        sa.Column(
            "event_version",
            sa.String(length=EVENT_VERSION_LENGTH),
            nullable=False,
            comment="Schema version of the serialized event.",
        ),
        sa.Column(
            "payload",
            PORTABLE_JSON,
            nullable=False,
            comment="Serialized domain event body.",
        ),
        sa.Column(
            "metadata",
            PORTABLE_JSON,
            nullable=False,
            comment="Side-channel data (e.g., correlation_id, actor).",
        ),
        sa.CheckConstraint("sequence >= 1", name=op.f("ck_events_positive_sequence")),
        sa.PrimaryKeyConstraint(
            "aggregate_type", "aggregate_id", "sequence", name=op.f("pk_events")
        ),
        comment="Append-only event log. One row per domain event.",
    )

    op.create_table(
        "snapshots",
        *_aggregate_key_columns(),
        sa.Column(
            "last_sequence",
            sa.Integer(),
            nullable=False,
            comment="Sequence of the last event folded into the snapshot.",
        ),
        sa.Column(
            "payload",
            PORTABLE_JSON,
            nullable=False,
            comment="Serialized aggregate state.",
        ),
        sa.CheckConstraint(
            "last_sequence >= 1", name=op.f("ck_snapshots_positive_last_sequence")
        ),
        sa.PrimaryKeyConstraint(
            "aggregate_type", "aggregate_id", name=op.f("pk_snapshots")
        ),
        comment="Latest snapshot per aggregate; overwritten in place.",
    )

    op.create_table(
        "aggregates",
        *_aggregate_key_columns(),
        sa.Column(
            "version",
            sa.Integer(),
            nullable=False,
            comment="Incremented by 1 on every successful update.",
        ),
        sa.Column(
            "payload",
            PORTABLE_JSON,
            nullable=False,
            comment="Serialized current aggregate state.",
        ),
        sa.CheckConstraint("version >= 1", name=op.f("ck_aggregates_positive_version")),
        sa.PrimaryKeyConstraint(
            "aggregate_type", "aggregate_id", name=op.f("pk_aggregates")
        ),
        comment="Current state per aggregate; no event history.",
    )

    # ---- APPEND-ONLY ENFORCEMENT ----
    if dialect == "postgresql":  # pylint: disable=magic-value-comparison
        op.execute(
            """
            CREATE OR REPLACE FUNCTION events_forbid_mod() RETURNS trigger
            LANGUAGE plpgsql AS $$
            BEGIN
              RAISE EXCEPTION 'events is append-only; % not allowed', TG_OP
              USING ERRCODE = '0A000'; -- feature_not_supported
            END;
            $$;
            """
        )
        op.execute(
            """
            CREATE TRIGGER tr_events_append_only
            BEFORE UPDATE OR DELETE ON events
            FOR EACH ROW
            EXECUTE FUNCTION events_forbid_mod();
            """
        )
    else:
        op.execute(
            """
            CREATE TRIGGER tr_events_no_update
            BEFORE UPDATE ON events
            BEGIN
              SELECT RAISE(ABORT, 'events is append-only; UPDATE not allowed');
            END;
            """
        )
        op.execute(
            """
            CREATE TRIGGER tr_events_no_delete
            BEFORE DELETE ON events
            BEGIN
              SELECT RAISE(ABORT, 'events is append-only; DELETE not allowed');
            END;
            """
        )


def downgrade() -> None:
    """Downgrade schema."""
    dialect = op.get_context().dialect.name

    # triggers first
    if dialect == "postgresql":  # pylint: disable=magic-value-comparison
        op.execute("DROP TRIGGER IF EXISTS tr_events_append_only ON events;")
        op.execute("DROP FUNCTION IF EXISTS events_forbid_mod();")
    else:
        op.execute("DROP TRIGGER IF EXISTS tr_events_no_delete;")
        op.execute("DROP TRIGGER IF EXISTS tr_events_no_update;")

    op.drop_table("aggregates")
    op.drop_table("snapshots")
    op.drop_table("events")
