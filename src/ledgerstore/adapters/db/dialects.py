"""Supported database dialects.

Only a few statements differ per backend (the snapshot upsert and the
append-only triggers); they branch on `DialectName` rather than on raw
strings such as ``"postgresql"`` scattered through the code.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine


class UnsupportedDialect(Exception):
    """Raised when a dialect-specific statement is needed for an unknown backend."""


class DialectName(str, Enum):
    """Enumeration of dialects with dialect-specific statements.

    Attributes:
        POSTGRES: PostgreSQL dialect (``"postgresql"``).
        SQLITE:   SQLite dialect (``"sqlite"``).
    """

    POSTGRES = "postgresql"
    SQLITE = "sqlite"

    @classmethod
    def from_string(cls, dialect_str: str | None) -> DialectName:
        """Normalize a raw dialect string, accepting aliases and driver suffixes.

        Examples: ``'postgres'``, ``'postgresql+psycopg'``, ``'sqlite+pysqlite'``.

        Raises:
            UnsupportedDialect: if the dialect is not recognized.
        """
        base = (dialect_str or "").strip().lower().split("+", 1)[0]

        if base in {"postgres", "postgresql", "pg"}:
            return cls.POSTGRES
        if base == cls.SQLITE.value:
            return cls.SQLITE

        raise UnsupportedDialect(f"Unsupported dialect: {dialect_str!r}")

    @classmethod
    def from_sqlalchemy(cls, obj: Engine | Connection) -> DialectName:
        """Extract the dialect from a SQLAlchemy Engine or Connection.

        Raises:
            UnsupportedDialect: if the object has no dialect or it is not supported.
        """
        try:
            name = obj.dialect.name
        except AttributeError as e:
            raise UnsupportedDialect(
                f"Object {type(obj).__name__} does not expose .dialect.name"
            ) from e
        return cls.from_string(name)
