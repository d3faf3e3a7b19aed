"""Shared SQLAlchemy `MetaData` object with a naming convention.

The default ledgerstore tables attach to this metadata so that constraints
and indexes receive deterministic names, which keeps Alembic autogenerate
free of spurious drops/adds.

Naming convention:
    - Indexes:       ix_<table>_<col...>
    - Unique:        uq_<table>_<col...>
    - Check:         ck_<table>_<constraint_name>
    - Primary key:   pk_<table>
"""

from sqlalchemy import MetaData

#: Naming convention shared by every metadata object ledgerstore builds.
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_N_label)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "pk": "pk_%(table_name)s",
}

#: Global metadata holding the default events/snapshots/aggregates tables.
metadata = MetaData(naming_convention=NAMING_CONVENTION)


def new_metadata() -> MetaData:
    """Return a fresh MetaData with the ledgerstore naming convention.

    Useful for per-aggregate-type table sets that should not collide with the
    defaults in `metadata`.
    """
    return MetaData(naming_convention=NAMING_CONVENTION)
