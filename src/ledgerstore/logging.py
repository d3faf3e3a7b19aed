"""Logging helpers for applications embedding ledgerstore.

ledgerstore itself only creates module loggers; nothing here runs on import.
`config_console_handler` builds a Rich console handler that marks records
from third-party loggers (SQLAlchemy, Alembic, drivers) with a short prefix,
and `log_startup` prints a summary plus DEBUG diagnostics about the backend.
"""

from __future__ import annotations

import logging
import os
import platform
import sys
from typing import TYPE_CHECKING, Literal, TypeAlias

import alembic
import sqlalchemy
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.engine import Engine

# pylint: disable=too-few-public-methods

PROJECT_PREFIX = "ledgerstore"


class ThirdPartyPrefixFilter(logging.Filter):
    """Annotate third-party log records with a short prefix.

    Records from loggers outside ``ledgerstore`` get ``record.prefix`` set to
    e.g. "[sqlalchemy]"; project records get an empty prefix. Never drops a
    record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not record.name.startswith(PROJECT_PREFIX):
            # e.g. "sqlalchemy.engine.Engine" -> "[sqlalchemy]"
            record.prefix = f"[{record.name.split('.')[0]}]"
        else:
            record.prefix = ""
        return True


def config_console_handler(
    level: int = logging.INFO, debug_mode: bool = False, color: bool = True
) -> RichHandler:
    """Configure and return a RichHandler writing to stderr.

    Args:
        level: Minimum level for console output (overridden to DEBUG in debug_mode).
        debug_mode: When True, show timestamps, logger names and source paths.
        color: Enable color output when True.

    Returns:
        RichHandler: Configured handler suitable to attach to the root logger.
    """
    ColorSystem: TypeAlias = Literal["auto", "standard", "256", "truecolor", "windows"]
    color_system: ColorSystem | None = "auto" if color else None
    console = Console(color_system=color_system, stderr=True)

    if debug_mode:
        level = logging.DEBUG

    handler = RichHandler(
        level=level,
        console=console,
        rich_tracebacks=True,
        show_time=False,
        show_path=debug_mode,
        enable_link_path=debug_mode,
    )

    fmt = (
        "%(prefix)s %(message)s"
        if not debug_mode
        else "%(asctime)s %(name)s: %(message)s"
    )
    handler.setFormatter(logging.Formatter(fmt=fmt))

    # debug format has no %(prefix)s
    if not debug_mode:
        handler.addFilter(ThirdPartyPrefixFilter())

    return handler


def log_startup(
    logger: Logger,
    *,
    app_version: str,
    level: int,
    handlers: list[logging.Handler],
    engine: Engine | None = None,
    logger_levels: dict[str, int] | None = None,
) -> None:
    """Log a one-line summary and detailed diagnostics.

    The summary goes out at INFO; Python/platform details, library versions,
    the backend and pool in use, handler types and per-logger overrides are
    logged at DEBUG.

    Args:
        logger: Logger used to emit startup messages.
        app_version: Version string to display.
        level: Effective console logging level (numeric).
        handlers: Active logging handlers attached to the root logger.
        engine: Engine the stores will use, if already created.
        logger_levels: Mapping of logger names to their configured numeric levels.
    """
    backend = engine.dialect.name if engine is not None else "<none>"
    logger.info(
        "LEDGERSTORE %s, console=%s, backend=%s",
        app_version,
        logging.getLevelName(level),
        backend,
    )

    logger.debug("Python: %s", sys.version.split()[0])
    logger.debug("Platform: %s %s", platform.system(), platform.release())
    logger.debug("PID: %s", os.getpid())
    logger.debug("Alembic: %s", alembic.__version__)
    logger.debug("SQLAlchemy: %s", sqlalchemy.__version__)
    if engine is not None:
        # repr() of a URL hides the password
        logger.debug("Database: %r", engine.url)
        logger.debug("Driver: %s, pool: %s", engine.driver, engine.pool.status())
    logger.debug("Handlers: %s", [type(h).__name__ for h in handlers])
    if logger_levels:
        logger.debug(
            "Per-logger overrides: %s",
            {name: logging.getLevelName(lvl) for name, lvl in logger_levels.items()},
        )
    else:
        logger.debug("Per-logger overrides: <none>")
