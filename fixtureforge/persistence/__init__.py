"""Persistence stores.

This package re-exports the abstract :class:`Store` contract alongside the
SQLAlchemy-backed store and an in-memory store for plain objects.
"""

from .base import Store
from .memory import InMemoryStore
from .sqlalchemy_store import SQLAlchemyStore

__all__ = [
    "Store",
    "InMemoryStore",
    "SQLAlchemyStore",
]
