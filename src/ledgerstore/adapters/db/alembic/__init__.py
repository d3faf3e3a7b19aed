"""Alembic migration environment and revisions for ledgerstore tables."""
