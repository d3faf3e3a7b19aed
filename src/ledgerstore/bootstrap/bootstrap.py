"""Wire engines, stores and logging from configuration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ledgerstore import __version__, config
from ledgerstore.adapters.db.engine import make_engine
from ledgerstore.adapters.eventstore.in_memory_adapters import (
    InMemoryAggregateStateStore,
    InMemoryEventStore,
    InMemorySnapshotEventStore,
)
from ledgerstore.adapters.eventstore.sqlalchemy_adapters import (
    SqlAlchemyAggregateStateStore,
    SqlAlchemyEventStore,
    SqlAlchemySnapshotEventStore,
)
from ledgerstore.adapters.views import InMemoryViewRepository, SqlAlchemyViewRepository
from ledgerstore.interfaces.eventstore import PersistenceStrategy
from ledgerstore.logging import config_console_handler, log_startup

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from ledgerstore.interfaces.codec import Codec
    from ledgerstore.interfaces.eventstore import (
        AggregateStateStore,
        EventStore,
        SnapshotEventStore,
    )
    from ledgerstore.interfaces.view_repository import ViewRepository

logger = logging.getLogger(__name__)

# third-party loggers that are noisy at INFO
QUIET_LOGGERS = ("sqlalchemy", "alembic")
CONSOLE_HANDLER_NAME = "ledgerstore-console"


def default_engine(url: str | None = None) -> Engine:
    """Create the shared engine (connection pool) from configuration.

    Args:
        url: Database URL; defaults to `LEDGERSTORE_DB_URL`.

    Raises:
        DatabaseUrlNotSetError: If no URL is given and the variable is unset.
    """
    return make_engine(url or config.get_db_url(), pool_size=config.get_pool_size())


def configure_logging(
    level: int = logging.INFO, debug_mode: bool = False, color: bool = True
) -> logging.Handler:
    """Install a Rich console handler on the root logger.

    SQLAlchemy and Alembic loggers are raised to WARNING unless in debug mode.
    Calling this again replaces the previously installed handler.

    Returns:
        The installed handler.
    """
    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == CONSOLE_HANDLER_NAME:
            root.removeHandler(existing)

    handler = config_console_handler(level=level, debug_mode=debug_mode, color=color)
    handler.set_name(CONSOLE_HANDLER_NAME)
    root.addHandler(handler)
    root.setLevel(handler.level)

    logger_levels = {}
    if not debug_mode:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
            logger_levels[name] = logging.WARNING

    log_startup(
        logger,
        app_version=__version__,
        level=handler.level,
        handlers=root.handlers,
        logger_levels=logger_levels,
    )
    return handler


def build_event_store(engine: Engine | None) -> EventStore:
    """Event-log store; ``engine=None`` selects the in-memory adapter."""
    if engine is None:
        return InMemoryEventStore()
    return SqlAlchemyEventStore(engine)


def build_snapshot_store(
    engine: Engine | None,
    *,
    codec: Codec[Any] | None = None,
    snapshot_size: int | None = None,
) -> SnapshotEventStore[Any]:
    """Snapshot store; ``snapshot_size`` defaults to `LEDGERSTORE_SNAPSHOT_SIZE`."""
    size = snapshot_size if snapshot_size is not None else config.get_snapshot_size()
    if engine is None:
        return InMemorySnapshotEventStore(snapshot_size=size, codec=codec)
    return SqlAlchemySnapshotEventStore(engine, snapshot_size=size, codec=codec)


def build_aggregate_store(
    engine: Engine | None, *, codec: Codec[Any] | None = None
) -> AggregateStateStore[Any]:
    """Aggregate-state store; ``engine=None`` selects the in-memory adapter."""
    if engine is None:
        return InMemoryAggregateStateStore(codec=codec)
    return SqlAlchemyAggregateStateStore(engine, codec=codec)


def build_view_repository(
    view_name: str, engine: Engine | None, *, codec: Codec[Any] | None = None
) -> ViewRepository[Any]:
    """View repository for ``view_name``.

    The SQLAlchemy repository expects its table to exist already (see
    `ledgerstore.adapters.db.schema.create_view_tables`).
    """
    if engine is None:
        return InMemoryViewRepository(view_name, codec=codec)
    return SqlAlchemyViewRepository(view_name, engine, codec=codec)


def build_persistence(
    engine: Engine | None,
    strategy: PersistenceStrategy | str = PersistenceStrategy.EVENT_LOG,
    *,
    codec: Codec[Any] | None = None,
    snapshot_size: int | None = None,
) -> EventStore | AggregateStateStore[Any]:
    """Build the store for an aggregate type's persistence strategy.

    Args:
        engine: Shared engine, or None for the in-memory adapters.
        strategy: One of `PersistenceStrategy` (or its string value).
        codec: Codec for snapshot or aggregate state payloads.
        snapshot_size: Snapshot interval for the snapshot strategy.

    Raises:
        ValueError: If ``strategy`` is not a known strategy.
    """
    strategy = PersistenceStrategy(strategy)
    backend = "sql" if engine is not None else "memory"
    logger.debug("building %s store (%s)", strategy.value, backend)
    match strategy:
        case PersistenceStrategy.EVENT_LOG:
            return build_event_store(engine)
        case PersistenceStrategy.SNAPSHOT:
            return build_snapshot_store(engine, codec=codec, snapshot_size=snapshot_size)
        case PersistenceStrategy.AGGREGATE_STATE:
            return build_aggregate_store(engine, codec=codec)
    raise ValueError(f"unsupported persistence strategy: {strategy}")  # pragma: no cover
