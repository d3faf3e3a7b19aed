"""Event store adapters: SQLAlchemy and in-memory implementations."""
