"""Context object tying a store, a value source and story state together."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

from fixtureforge.core.config import BaseConfig, get_config
from fixtureforge.persistence.base import Store
from fixtureforge.repository import RepositoryView
from fixtureforge.story import StoryRegistry
from fixtureforge.values import ValueSource

if TYPE_CHECKING:  # pragma: no cover
    from fixtureforge.story import Story

log = logging.getLogger(__name__)

T = TypeVar("T")
S = TypeVar("S", bound="Story")


class FixtureManager:
    """Everything a factory, proxy or story needs from the outside world.

    A manager is owned by the test lifecycle: it creates one per test (or per
    session), activates it, and calls :meth:`reset` at each boundary. The
    manager never resets itself.

    :param store: Persistence store.
    :param values: Random-value source; built from ``config`` when omitted.
    :param config: Configuration class; :func:`get_config` when omitted.
    """

    _active: ClassVar[FixtureManager | None] = None

    def __init__(
        self,
        store: Store,
        *,
        values: ValueSource | None = None,
        config: type[BaseConfig] | None = None,
    ) -> None:
        self.config = config or get_config()
        self.store = store
        self.values = values or ValueSource(self.config.FAKER_LOCALE, self.config.FAKER_SEED)
        self.auto_refresh: bool = self.config.AUTO_REFRESH
        self.persist: bool = self.config.PERSIST
        self.stories = StoryRegistry(self)
        self.epoch = 0

    def __repr__(self) -> str:
        return f"<FixtureManager store={type(self.store).__name__} epoch={self.epoch}>"

    # --------------------------- Active manager ------------------------------

    @classmethod
    def activate(cls, manager: FixtureManager) -> FixtureManager:
        """Make ``manager`` the one used by unbound factories and stories."""
        cls._active = manager
        return manager

    @classmethod
    def deactivate(cls) -> None:
        cls._active = None

    @classmethod
    def current(cls) -> FixtureManager:
        """Return the active manager.

        Raises
        ------
        RuntimeError
            If factories are used without an active manager.
        """
        if cls._active is None:
            raise RuntimeError(
                "No active FixtureManager. Did you use the 'fixture_manager' fixture "
                "or bind the factory with .using(manager)?"
            )
        return cls._active

    # -------------------------------- Access ---------------------------------

    @property
    def faker(self) -> Any:
        return self.values.faker

    def repository(self, model: type[T]) -> RepositoryView[T]:
        return RepositoryView(model, self)

    def load_story(self, story: type[S]) -> S:
        return self.stories.load(story)

    # ------------------------------- Lifecycle -------------------------------

    def reset(self) -> None:
        """Forget every loaded story and start a new epoch.

        The store is not touched: rolling back or truncating it belongs to
        whoever owns the transaction.
        """
        self.stories.reset()
        self.epoch += 1
        log.debug("Fixture manager reset", extra={"epoch": self.epoch})


def faker() -> Any:
    """Return the active manager's :class:`faker.Faker` (for default declarations)."""
    return FixtureManager.current().faker


__all__ = ["FixtureManager", "faker"]
