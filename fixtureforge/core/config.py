"""Fixture engine settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var
ENV_VAR: Final[str] = "FIXTUREFORGE_ENV"  # 'development' | 'testing'


# Load .env when present (no-op otherwise)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int | None = None) -> int | None:
    """Parse an optional integer from an environment variable.

    Blank values count as unset. Non-numeric values raise ``ValueError`` so a
    typo in ``.env`` is reported instead of silently ignored.
    """
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val.strip())


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    AUTO_REFRESH: bool
        Whether new proxies refresh from the store before each access.
    PERSIST: bool
        Whether factories persist what they create unless told otherwise.
    FAKER_LOCALE: str
        Locale handed to :class:`faker.Faker`.
    FAKER_SEED: int | None
        Seed applied to the value source. ``None`` keeps data random.
    SESSION_PERSISTENCE: str
        ``"flush"`` or ``"commit"``; how :class:`SQLAlchemyStore` finalizes a
        save when no explicit mode is given.
    LOG_LEVEL: str
        Verbosity passed to :func:`fixtureforge.core.logger.configure_logging`.
    """

    AUTO_REFRESH = env_bool("FIXTUREFORGE_AUTO_REFRESH", True)
    PERSIST = env_bool("FIXTUREFORGE_PERSIST", True)

    # Random data
    FAKER_LOCALE = os.getenv("FIXTUREFORGE_FAKER_LOCALE", "en_US")
    FAKER_SEED = env_int("FIXTUREFORGE_FAKER_SEED")

    # Store
    SESSION_PERSISTENCE = os.getenv("FIXTUREFORGE_SESSION_PERSISTENCE", "flush")

    # Logging
    LOG_LEVEL = os.getenv("FIXTUREFORGE_LOG_LEVEL", "INFO")


class DevelopmentConfig(BaseConfig):
    """Configuration used while writing factories and stories locally."""

    LOG_LEVEL = os.getenv("FIXTUREFORGE_LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    Seeds Faker (``1337`` unless ``FIXTUREFORGE_FAKER_SEED`` is set) so
    failing runs can be reproduced.
    """

    FAKER_SEED = env_int("FIXTUREFORGE_FAKER_SEED", 1337)
    LOG_LEVEL = os.getenv("FIXTUREFORGE_LOG_LEVEL", "WARNING")


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``FIXTUREFORGE_ENV``.

    Falls back to :class:`DevelopmentConfig` when the variable is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
