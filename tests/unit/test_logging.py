"""Unit tests for the logging helpers."""

import logging

import pytest
from rich.logging import RichHandler

from ledgerstore.logging import (
    ThirdPartyPrefixFilter,
    config_console_handler,
    log_startup,
)

# pylint: disable=magic-value-comparison


def make_record(name: str) -> logging.LogRecord:
    """A minimal INFO record from logger ``name``."""
    return logging.LogRecord(name, logging.INFO, __file__, 1, "msg", None, None)


@pytest.mark.parametrize(
    "name,prefix",
    [
        ("sqlalchemy.engine.Engine", "[sqlalchemy]"),
        ("alembic.runtime.migration", "[alembic]"),
        ("ledgerstore.adapters.db.errors", ""),
        ("ledgerstore", ""),
    ],
)
def test_third_party_prefix(name, prefix):
    """Third-party records get a bracketed prefix; ours get none."""
    record = make_record(name)
    assert ThirdPartyPrefixFilter().filter(record) is True
    assert record.prefix == prefix  # type: ignore[attr-defined]


def test_console_handler_defaults():
    """Normal mode: requested level, prefix filter, no source paths."""
    handler = config_console_handler(logging.WARNING)

    assert isinstance(handler, RichHandler)
    assert handler.level == logging.WARNING
    assert any(isinstance(f, ThirdPartyPrefixFilter) for f in handler.filters)
    assert "%(prefix)s" in handler.formatter._fmt  # pylint: disable=protected-access


def test_console_handler_debug_mode():
    """Debug mode: DEBUG level, timestamps and logger names, no prefix filter."""
    handler = config_console_handler(logging.ERROR, debug_mode=True, color=False)

    assert handler.level == logging.DEBUG
    assert not handler.filters
    assert "%(name)s" in handler.formatter._fmt  # pylint: disable=protected-access


def test_log_startup_summary_and_diagnostics(caplog, sqlite_engine_memory):
    """INFO one-liner plus DEBUG diagnostics about the backend."""
    logger = logging.getLogger("ledgerstore.test_startup")
    caplog.set_level(logging.DEBUG, logger="ledgerstore.test_startup")

    log_startup(
        logger,
        app_version="9.9.9",
        level=logging.INFO,
        handlers=[logging.NullHandler()],
        engine=sqlite_engine_memory,
        logger_levels={"sqlalchemy": logging.WARNING},
    )

    info = [r.getMessage() for r in caplog.records if r.levelno == logging.INFO]
    debug = " ".join(r.getMessage() for r in caplog.records if r.levelno == logging.DEBUG)
    assert info == ["LEDGERSTORE 9.9.9, console=INFO, backend=sqlite"]
    assert "SQLAlchemy:" in debug
    assert "NullHandler" in debug
    assert "'sqlalchemy': 'WARNING'" in debug


def test_log_startup_without_engine(caplog):
    """Startup logging works before an engine exists."""
    logger = logging.getLogger("ledgerstore.test_startup")
    caplog.set_level(logging.DEBUG, logger="ledgerstore.test_startup")

    log_startup(logger, app_version="1.0", level=logging.DEBUG, handlers=[])

    assert "backend=<none>" in caplog.records[0].getMessage()
    assert any("<none>" in r.getMessage() for r in caplog.records[1:])
