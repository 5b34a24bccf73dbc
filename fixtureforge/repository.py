"""Query, assertion and sampling helpers over all stored objects of one class.

Criteria are keyword equality filters. Keys accept the same spellings as
factory attributes (``publishedAt`` == ``published_at``). Every object
returned is wrapped in a :class:`~fixtureforge.proxy.Proxy`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from fixtureforge.attributes import parse_key
from fixtureforge.errors import InsufficientPopulation
from fixtureforge.proxy import Proxy

if TYPE_CHECKING:  # pragma: no cover
    from fixtureforge.manager import FixtureManager

log = logging.getLogger(__name__)

T = TypeVar("T")


def _criteria(criteria: Mapping[str, Any]) -> dict[str, Any]:
    return {parse_key(key)[0]: value for key, value in criteria.items()}


class RepositoryView(Generic[T]):
    """Thin view over the store scoped to ``model``.

    :param model: Class whose stored instances are queried.
    :param manager: Manager providing the store and the random source.
    """

    def __init__(self, model: type[T], manager: FixtureManager) -> None:
        self.model = model
        self._manager = manager

    def __repr__(self) -> str:
        return f"<RepositoryView {self.model.__qualname__}>"

    def __len__(self) -> int:
        return self.count()

    @property
    def store(self):
        return self._manager.store

    def _wrap(self, obj: Any) -> Proxy[T]:
        return Proxy(obj, self._manager, self.store.identity_of(obj))

    # -------------------------------- Queries --------------------------------

    def count(self, **criteria: Any) -> int:
        return self.store.count(self.model, _criteria(criteria))

    def exists(self, **criteria: Any) -> bool:
        return self.count(**criteria) > 0

    def find(self, identity: Any) -> Proxy[T] | None:
        obj = self.store.find(self.model, identity)
        return None if obj is None else Proxy(obj, self._manager, identity)

    def find_by(self, **criteria: Any) -> list[Proxy[T]]:
        return [self._wrap(obj) for obj in self.store.find_by(self.model, _criteria(criteria))]

    def find_one_by(self, **criteria: Any) -> Proxy[T] | None:
        found = self.find_by(**criteria)
        return found[0] if found else None

    def all(self) -> list[Proxy[T]]:
        return self.find_by()

    def first(self) -> Proxy[T] | None:
        """Object with the lowest identity, or ``None``."""
        return self.find_one_by()

    def last(self) -> Proxy[T] | None:
        """Object with the highest identity, or ``None``."""
        found = self.find_by()
        return found[-1] if found else None

    def truncate(self) -> None:
        self.store.truncate(self.model)
        log.info("Truncated %s", self.model.__qualname__, extra={"model": self.model.__qualname__})

    # ------------------------------- Sampling --------------------------------

    def random(self, **criteria: Any) -> Proxy[T]:
        """Return one random stored object matching ``criteria``.

        :raises InsufficientPopulation: If nothing matches.
        """
        return self.random_set(1, **criteria)[0]

    def random_set(self, size: int, **criteria: Any) -> list[Proxy[T]]:
        """Return ``size`` distinct random objects (sampling without replacement).

        :raises ValueError: If ``size`` is negative.
        :raises InsufficientPopulation: If fewer than ``size`` objects match.
        """
        if size < 0:
            raise ValueError(f"size must be >= 0, got {size}")
        population = self.store.find_by(self.model, _criteria(criteria))
        if size > len(population):
            raise InsufficientPopulation(self.model, size, len(population))
        picked = self._manager.values.random.sample(population, size)
        return [self._wrap(obj) for obj in picked]

    def random_range(self, min_size: int, max_size: int, **criteria: Any) -> list[Proxy[T]]:
        """Return a random sample whose size is drawn uniformly from
        ``[min_size, max_size]`` (inclusive).

        :raises ValueError: If ``min_size`` is negative or above ``max_size``.
        :raises InsufficientPopulation: If fewer than ``max_size`` objects match.
        """
        if min_size < 0 or min_size > max_size:
            raise ValueError(f"Invalid range [{min_size}, {max_size}]")
        available = self.count(**criteria)
        if max_size > available:
            raise InsufficientPopulation(self.model, max_size, available)
        size = self._manager.values.random.randint(min_size, max_size)
        if size == 0:
            return []
        return self.random_set(size, **criteria)

    # ------------------------------- Assertions ------------------------------

    def _fail(self, message: str | None, default: str) -> None:
        raise AssertionError(message or default)

    def assert_empty(self, message: str | None = None, **criteria: Any) -> RepositoryView[T]:
        return self.assert_count(0, message, **criteria)

    def assert_count(
        self, expected: int, message: str | None = None, **criteria: Any
    ) -> RepositoryView[T]:
        actual = self.count(**criteria)
        if actual != expected:
            self._fail(message, f"Expected {expected} {self.model.__qualname__}, found {actual}")
        return self

    def assert_count_greater_than(
        self, expected: int, message: str | None = None, **criteria: Any
    ) -> RepositoryView[T]:
        actual = self.count(**criteria)
        if not actual > expected:
            self._fail(message, f"Expected more than {expected} {self.model.__qualname__}, found {actual}")
        return self

    def assert_count_greater_than_or_equal(
        self, expected: int, message: str | None = None, **criteria: Any
    ) -> RepositoryView[T]:
        actual = self.count(**criteria)
        if not actual >= expected:
            self._fail(message, f"Expected at least {expected} {self.model.__qualname__}, found {actual}")
        return self

    def assert_count_less_than(
        self, expected: int, message: str | None = None, **criteria: Any
    ) -> RepositoryView[T]:
        actual = self.count(**criteria)
        if not actual < expected:
            self._fail(message, f"Expected fewer than {expected} {self.model.__qualname__}, found {actual}")
        return self

    def assert_count_less_than_or_equal(
        self, expected: int, message: str | None = None, **criteria: Any
    ) -> RepositoryView[T]:
        actual = self.count(**criteria)
        if not actual <= expected:
            self._fail(message, f"Expected at most {expected} {self.model.__qualname__}, found {actual}")
        return self

    def assert_exists(
        self, criteria: Mapping[str, Any] | None = None, message: str | None = None, **kw: Any
    ) -> RepositoryView[T]:
        """Assert at least one object matches ``criteria`` (mapping or keywords)."""
        merged = {**(criteria or {}), **kw}
        if not self.exists(**merged):
            self._fail(message, f"No {self.model.__qualname__} matches {merged!r}")
        return self

    def assert_not_exists(
        self, criteria: Mapping[str, Any] | None = None, message: str | None = None, **kw: Any
    ) -> RepositoryView[T]:
        merged = {**(criteria or {}), **kw}
        if self.exists(**merged):
            self._fail(message, f"A {self.model.__qualname__} matches {merged!r}")
        return self


__all__ = ["RepositoryView"]
