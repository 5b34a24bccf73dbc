"""Pytest fixtures wiring fixtureforge to an isolated SQLite database.

Each test gets its own in-memory database, a session over it, and an active
:class:`~fixtureforge.FixtureManager` persisting through that session.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from fixtureforge import FixtureManager, InMemoryStore, SQLAlchemyStore
from fixtureforge.core.config import TestingConfig
from fixtureforge.pytest_plugin import fixture_manager  # noqa: F401
from tests.models import Base


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    """Create a fresh in-memory database with the schema created.

    Yields
    ------
    sqlalchemy.engine.Engine
        Engine whose single pooled connection holds the database.
    """
    eng = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(eng)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture()
def session(engine: Engine) -> Generator[Session, None, None]:
    """Provide a session over the per-test database; closed on teardown."""
    sess = Session(engine)
    try:
        yield sess
    finally:
        sess.close()


@pytest.fixture()
def fixture_store(session: Session) -> SQLAlchemyStore:
    """Persist fixtures through the per-test session."""
    return SQLAlchemyStore(session, persistence="flush")


@pytest.fixture()
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def memory_manager(memory_store: InMemoryStore) -> FixtureManager:
    """Inactive manager over an in-memory store, for plain classes."""
    return FixtureManager(memory_store, config=TestingConfig)


# -- Make the manager active for every test --------------------------------
@pytest.fixture(autouse=True)
def _active_manager(fixture_manager: FixtureManager):  # noqa: F811
    """Activate the SQLAlchemy-backed manager for unbound factories."""
    yield fixture_manager
