"""Pytest fixtures wiring a :class:`FixtureManager` into each test.

Enabled automatically through the ``pytest11`` entry point. Override
``fixture_store`` in a ``conftest.py`` to persist through a real session::

    @pytest.fixture()
    def fixture_store(session):
        return SQLAlchemyStore(session)
"""

from __future__ import annotations

from collections.abc import Generator

import pytest

from fixtureforge.core.config import TestingConfig
from fixtureforge.manager import FixtureManager
from fixtureforge.persistence import InMemoryStore, Store


@pytest.fixture()
def fixture_store() -> Store:
    """Store used by :func:`fixture_manager`; in-memory unless overridden."""
    return InMemoryStore()


@pytest.fixture()
def fixture_manager(fixture_store: Store) -> Generator[FixtureManager, None, None]:
    """Provide the active manager for one test.

    Yields
    ------
    FixtureManager
        Manager over ``fixture_store`` using :class:`TestingConfig` (seeded
        Faker). Stories are reset and the manager deactivated on teardown.
    """
    manager = FixtureManager.activate(FixtureManager(fixture_store, config=TestingConfig))
    try:
        yield manager
    finally:
        manager.reset()
        FixtureManager.deactivate()
