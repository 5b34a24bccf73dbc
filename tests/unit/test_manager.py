"""Unit tests for ``FixtureManager``, ``ValueSource`` and the pytest fixtures."""

from __future__ import annotations

import pytest

from fixtureforge import FixtureManager, InMemoryStore, ValueSource, faker
from fixtureforge.core.config import TestingConfig


class TestFixtureManager:
    def test_fixture_activates_manager(self, fixture_manager):
        assert FixtureManager.current() is fixture_manager
        assert fixture_manager.config is TestingConfig
        assert faker() is fixture_manager.faker

    def test_current_without_active_manager(self):
        FixtureManager.deactivate()
        with pytest.raises(RuntimeError):
            FixtureManager.current()
        with pytest.raises(RuntimeError):
            faker()

    def test_settings_come_from_config(self):
        class Quiet(TestingConfig):
            AUTO_REFRESH = False
            PERSIST = False

        manager = FixtureManager(InMemoryStore(), config=Quiet)
        assert manager.auto_refresh is False
        assert manager.persist is False

    def test_reset_increments_epoch(self, memory_manager):
        assert memory_manager.epoch == 0
        memory_manager.reset()
        memory_manager.reset()
        assert memory_manager.epoch == 2
        assert "epoch=2" in repr(memory_manager)


class TestValueSource:
    def test_seed_makes_values_reproducible(self):
        first, second = ValueSource(seed=7), ValueSource(seed=7)
        assert [first.next("word") for _ in range(3)] == [second.next("word") for _ in range(3)]
        assert first.random.random() == second.random.random()

    def test_next_forwards_kwargs(self):
        assert ValueSource(seed=1).next("random_int", min=4, max=4) == 4

    def test_unknown_kind(self):
        with pytest.raises(AttributeError):
            ValueSource().next("definitely_not_a_provider")

    def test_managers_with_same_seed_agree(self):
        a = FixtureManager(InMemoryStore(), config=TestingConfig)
        b = FixtureManager(InMemoryStore(), config=TestingConfig)
        assert a.faker.name() == b.faker.name()
