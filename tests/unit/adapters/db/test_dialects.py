"""Unit tests for database dialect handling."""

import pytest

from ledgerstore.adapters.db.dialects import DialectName, UnsupportedDialect

# pylint: disable=too-few-public-methods


@pytest.mark.parametrize(
    "input_str,expected",
    [
        ("postgresql", DialectName.POSTGRES),
        ("postgres", DialectName.POSTGRES),
        ("pg", DialectName.POSTGRES),
        ("postgresql+psycopg", DialectName.POSTGRES),
        (" PostgreSQL ", DialectName.POSTGRES),
        ("sqlite", DialectName.SQLITE),
        ("sqlite+pysqlite", DialectName.SQLITE),
    ],
)
def test_from_string_aliases(input_str, expected):
    """Various dialect string aliases map to DialectName."""
    assert DialectName.from_string(input_str) is expected


@pytest.mark.parametrize("bad", [None, "", "  ", "mysql", "duckdb"])
def test_from_string_rejects_unsupported(bad):
    """Unsupported or empty dialect strings raise UnsupportedDialect."""
    with pytest.raises(UnsupportedDialect):
        DialectName.from_string(bad)


def test_from_sqlalchemy_reads_engine_dialect(sqlite_engine_memory):
    """A real SQLite engine resolves to SQLITE."""
    assert DialectName.from_sqlalchemy(sqlite_engine_memory) is DialectName.SQLITE


def test_from_sqlalchemy_raises_when_missing_attribute():
    """Objects without .dialect.name are rejected."""

    class NotAnEngine:  # no .dialect.name
        """A class that does not have a dialect attribute."""

    with pytest.raises(UnsupportedDialect):
        DialectName.from_sqlalchemy(NotAnEngine())  # type: ignore[arg-type]
