"""Unit tests for environment-driven configuration."""

from __future__ import annotations

import pytest

from fixtureforge.core.config import (
    CONFIG_MAP,
    DevelopmentConfig,
    TestingConfig,
    env_bool,
    env_int,
    get_config,
)


@pytest.mark.parametrize(
    "value,expected",
    [(None, DevelopmentConfig), ("testing", TestingConfig), (" Testing ", TestingConfig), ("unknown", DevelopmentConfig)],
)
def test_get_config(monkeypatch, value, expected):
    """``get_config`` maps ``FIXTUREFORGE_ENV`` to a class, defaulting to development."""
    if value is None:
        monkeypatch.delenv("FIXTUREFORGE_ENV", raising=False)
    else:
        monkeypatch.setenv("FIXTUREFORGE_ENV", value)
    assert get_config() is expected


def test_config_map_names():
    assert set(CONFIG_MAP) == {"development", "testing"}


@pytest.mark.parametrize("raw,expected", [("1", True), ("YES", True), ("on", True), ("0", False), ("nope", False)])
def test_env_bool(monkeypatch, raw, expected):
    monkeypatch.setenv("FF_FLAG", raw)
    assert env_bool("FF_FLAG") is expected


def test_env_bool_default(monkeypatch):
    monkeypatch.delenv("FF_FLAG", raising=False)
    assert env_bool("FF_FLAG", True) is True


def test_env_int(monkeypatch):
    monkeypatch.setenv("FF_SEED", " 42 ")
    assert env_int("FF_SEED") == 42

    monkeypatch.setenv("FF_SEED", "")
    assert env_int("FF_SEED", 7) == 7

    monkeypatch.setenv("FF_SEED", "abc")
    with pytest.raises(ValueError):
        env_int("FF_SEED")


def test_testing_config_is_seeded():
    assert TestingConfig.FAKER_SEED is not None
    assert TestingConfig.SESSION_PERSISTENCE in ("flush", "commit")
