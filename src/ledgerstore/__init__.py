"""LEDGERSTORE

Relational persistence for event-sourced aggregates and their projections.
Events are appended per aggregate instance under optimistic concurrency,
and materialized views are stored with version-guarded compare-and-swap.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
