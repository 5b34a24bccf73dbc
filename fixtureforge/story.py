"""Stories: named sets of fixtures built at most once per reset epoch.

::

    class BlogStory(Story):
        def build(self):
            self.add_state("welcome", PostFactory().create(title="Welcome"))
            self.add_to_pool("drafts", PostFactory().draft().create_many(3))

    story = BlogStory.load()
    story.welcome.title        # "Welcome"
    story.get_random("drafts")
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, TypeVar

from fixtureforge.attributes import ValueKind, kind_of
from fixtureforge.errors import InsufficientPopulation, StoryStateNotFound

if TYPE_CHECKING:  # pragma: no cover
    from fixtureforge.manager import FixtureManager

log = logging.getLogger(__name__)

S = TypeVar("S", bound="Story")


class Story(ABC):
    """Base class for stories; subclasses implement :meth:`build`.

    :param manager: Manager whose factories and store the story uses.
    """

    def __init__(self, manager: FixtureManager) -> None:
        self.manager = manager
        self._state: dict[str, Any] = {}
        self._pools: dict[str, list[Any]] = {}

    def __repr__(self) -> str:
        return f"<{type(self).__qualname__} states={sorted(self._state)}>"

    @classmethod
    def load(cls: type[S], manager: FixtureManager | None = None) -> S:
        """Build the story once per epoch and return the cached instance."""
        if manager is None:
            from fixtureforge.manager import FixtureManager

            manager = FixtureManager.current()
        return manager.stories.load(cls)

    @abstractmethod
    def build(self) -> None:
        """Create the story's fixtures with add_state and add_to_pool."""

    # -------------------------------- State ----------------------------------

    def _materialize(self, value: Any) -> Any:
        # factories are created with the story's manager; proxies and objects are kept
        if kind_of(value) is ValueKind.FACTORY:
            return value.build(manager=self.manager)
        return value

    def add_state(self, name: str, value: Any) -> Any:
        """Register ``value`` under ``name`` and return what was stored."""
        stored = self._materialize(value)
        self._state[name] = stored
        return stored

    def get(self, name: str) -> Any:
        try:
            return self._state[name]
        except KeyError:
            raise StoryStateNotFound(type(self).__qualname__, name) from None

    def __getitem__(self, name: str) -> Any:
        return self.get(name)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._state[name]
        except KeyError:
            raise AttributeError(
                f"{type(self).__qualname__} has no state named '{name}'"
            ) from None

    @property
    def states(self) -> dict[str, Any]:
        return dict(self._state)

    # -------------------------------- Pools ----------------------------------

    def add_to_pool(self, pool: str, values: Any) -> list[Any]:
        """Append one value or an iterable of values to ``pool``."""
        items = list(values) if kind_of(values) is ValueKind.SEQUENCE else [values]
        stored = [self._materialize(item) for item in items]
        self._pools.setdefault(pool, []).extend(stored)
        return stored

    def get_pool(self, pool: str) -> list[Any]:
        try:
            return list(self._pools[pool])
        except KeyError:
            raise StoryStateNotFound(type(self).__qualname__, pool) from None

    def get_random(self, pool: str) -> Any:
        return self.manager.values.random.choice(self.get_pool(pool))

    def get_random_set(self, pool: str, size: int) -> list[Any]:
        """Return ``size`` distinct values of ``pool``.

        :raises InsufficientPopulation: If the pool holds fewer than ``size`` values.
        """
        items = self.get_pool(pool)
        if size > len(items):
            raise InsufficientPopulation(type(self), size, len(items))
        return self.manager.values.random.sample(items, size)


class StoryRegistry:
    """Loaded stories of one manager, keyed by story class.

    A story's :meth:`Story.build` runs at most once until :meth:`reset`. A
    build that raises is not cached, so the next load retries it.
    """

    def __init__(self, manager: FixtureManager) -> None:
        self._manager = manager
        self._loaded: dict[type[Story], Story] = {}

    def __contains__(self, story: type[Story]) -> bool:
        return story in self._loaded

    def __len__(self) -> int:
        return len(self._loaded)

    def load(self, story: type[S]) -> S:
        loaded = self._loaded.get(story)
        if loaded is not None:
            return loaded  # type: ignore[return-value]

        instance = story(self._manager)
        instance.build()
        self._loaded[story] = instance
        log.info(
            "Loaded story %s",
            story.__qualname__,
            extra={"story": story.__qualname__, "epoch": self._manager.epoch},
        )
        return instance

    def reset(self) -> None:
        self._loaded.clear()


__all__ = ["Story", "StoryRegistry"]
