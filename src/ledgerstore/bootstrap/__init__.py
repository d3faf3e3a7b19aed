"""Bootstrap (composition root) for LEDGERSTORE.

Optional wiring for applications: builds the default engine from the
environment, selects a persistence strategy, and installs console logging.
The stores themselves never read configuration; everything here can be done
by hand with the adapters' constructors.

Import rules:
- This package may import: `ledgerstore.adapters`, `ledgerstore.interfaces`,
  `ledgerstore.config` and `ledgerstore.logging`.
- Inner layers must not import `ledgerstore.bootstrap`.
"""

from .bootstrap import (
    build_aggregate_store,
    build_event_store,
    build_persistence,
    build_snapshot_store,
    build_view_repository,
    configure_logging,
    default_engine,
)

__all__ = [
    "build_aggregate_store",
    "build_event_store",
    "build_persistence",
    "build_snapshot_store",
    "build_view_repository",
    "configure_logging",
    "default_engine",
]
