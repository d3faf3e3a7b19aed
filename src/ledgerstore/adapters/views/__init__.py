"""View repository adapters (SQLAlchemy and in-memory)."""

from .in_memory import InMemoryViewRepository
from .sqlalchemy_view_repository import SqlAlchemyViewRepository

__all__ = ["InMemoryViewRepository", "SqlAlchemyViewRepository"]
