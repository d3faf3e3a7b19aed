"""Adapters (infrastructure) for LEDGERSTORE.

Provide concrete implementations of the storage ports: SQLAlchemy-backed
repositories, their in-memory counterparts, and the database plumbing they
share (engines, metadata, table builders, error translation, migrations).

Dependency rule: may import `ledgerstore.interfaces`; the interfaces must not
import this package.
"""
