"""Immutable factories composing defaults, states, hooks and instantiation.

Two ways to declare a factory::

    posts = Factory(Post, lambda: {"title": faker().sentence()})

    class PostFactory(Factory[Post]):
        class Meta:
            model = Post

        def defaults(self):
            return {"title": self.faker.sentence(), "body": self.faker.text()}

        def published(self):
            return self.with_attributes(published_at=datetime.now())

Every builder method returns a new factory and leaves the receiver
untouched, so a factory can be shared and specialised freely::

    PostFactory().published().create(title="Post A")
    PostFactory().create_many(3)
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, Generic, TypeVar

from fixtureforge.attributes import AttributeSet, ResolvedAttributes, ValueKind
from fixtureforge.descriptors import describe
from fixtureforge.instantiator import Instantiator, InstantiatorFn
from fixtureforge.manager import FixtureManager
from fixtureforge.proxy import Proxy
from fixtureforge.relationships import RelationshipResolver
from fixtureforge.repository import RepositoryView

log = logging.getLogger(__name__)

T = TypeVar("T")

AttributeSource = Mapping[str, Any] | Callable[[], Mapping[str, Any]]
BeforeInstantiateHook = Callable[[ResolvedAttributes], Mapping[str, Any]]
AfterInstantiateHook = Callable[[Any, ResolvedAttributes], Any]
AfterPersistHook = Callable[[Any, ResolvedAttributes], Any]
AfterPersistProxyHook = Callable[[Proxy[Any], ResolvedAttributes], Any]


def _merge(attributes: AttributeSource | None, overrides: Mapping[str, Any]) -> AttributeSource | None:
    """Combine a positional attribute source with keyword overrides."""
    if not overrides:
        return attributes
    if attributes is None:
        return dict(overrides)
    if callable(attributes):
        return lambda: {**attributes(), **overrides}
    return {**attributes, **overrides}


class Factory(Generic[T]):
    """
    Recipe for one object: class, attribute declarations, hooks and an
    instantiation strategy.

    Parameters
    ----------
    model : type | None
        Target class. Optional in subclasses declaring ``Meta.model``.
    attributes : Mapping | Callable | None
        Initial declaration, applied after :meth:`defaults`.

    Meta options
    ------------
    model : type
        Target class.
    persist : bool
        Default persistence mode (falls back to the manager's setting).
    instantiator : Callable
        Initial instantiation strategy.
    """

    __fixture_kind__ = ValueKind.FACTORY

    def __init__(self, model: type[T] | None = None, attributes: AttributeSource | None = None) -> None:
        meta = getattr(type(self), "Meta", None)
        model = model or getattr(meta, "model", None)
        if model is None:
            raise TypeError(f"{type(self).__qualname__} needs a model (argument or Meta.model)")
        self._model: type[T] = model
        self._attributes = AttributeSet(() if attributes is None else (attributes,))
        self._instantiator: InstantiatorFn = getattr(meta, "instantiator", None) or Instantiator()
        self._before_instantiate: tuple[BeforeInstantiateHook, ...] = ()
        self._after_instantiate: tuple[AfterInstantiateHook, ...] = ()
        self._after_persist: tuple[AfterPersistHook, ...] = ()
        self._after_persist_proxy: tuple[AfterPersistProxyHook, ...] = ()
        self._persist: bool | None = getattr(meta, "persist", None)
        self._manager: FixtureManager | None = None

    def __repr__(self) -> str:
        return f"<{type(self).__qualname__} {self._model.__qualname__}>"

    # ------------------------------ Declaration ------------------------------

    def defaults(self) -> Mapping[str, Any]:
        """Default attributes; evaluated anew for every object built."""
        return {}

    @property
    def model(self) -> type[T]:
        return self._model

    @property
    def manager(self) -> FixtureManager:
        """Bound manager, else the active one."""
        return self._manager or FixtureManager.current()

    @property
    def faker(self) -> Any:
        return self.manager.faker

    # -------------------------------- Builders -------------------------------

    def _replace(self, **changes: Any) -> Factory[T]:
        clone = copy.copy(self)
        for name, value in changes.items():
            setattr(clone, f"_{name}", value)
        return clone

    def with_attributes(self, attributes: AttributeSource | None = None, **overrides: Any) -> Factory[T]:
        """Append a declaration; it wins over earlier ones on key collision."""
        source = _merge(attributes, overrides)
        if source is None:
            return self
        return self._replace(attributes=self._attributes.extend(source))

    def before_instantiate(self, hook: BeforeInstantiateHook) -> Factory[T]:
        """Add ``hook(attributes) -> attributes``; hooks run in addition order."""
        return self._replace(before_instantiate=self._before_instantiate + (hook,))

    def after_instantiate(self, hook: AfterInstantiateHook) -> Factory[T]:
        """Add ``hook(obj, attributes)``, called before persisting."""
        return self._replace(after_instantiate=self._after_instantiate + (hook,))

    def after_persist(self, hook: AfterPersistHook) -> Factory[T]:
        """Add ``hook(obj, attributes)``, called with the raw persisted object."""
        return self._replace(after_persist=self._after_persist + (hook,))

    def after_persist_proxy(self, hook: AfterPersistProxyHook) -> Factory[T]:
        """Add ``hook(proxy, attributes)``, called with the object's proxy."""
        return self._replace(after_persist_proxy=self._after_persist_proxy + (hook,))

    def instantiate_with(self, instantiator: InstantiatorFn) -> Factory[T]:
        return self._replace(instantiator=instantiator)

    def without_persisting(self) -> Factory[T]:
        return self._replace(persist=False)

    def with_persisting(self) -> Factory[T]:
        return self._replace(persist=True)

    def using(self, manager: FixtureManager) -> Factory[T]:
        """Bind to ``manager`` instead of the active one."""
        return self._replace(manager=manager)

    # -------------------------------- Building -------------------------------

    def _should_persist(self, manager: FixtureManager) -> bool:
        return manager.persist if self._persist is None else self._persist

    def build(
        self,
        attributes: AttributeSource | None = None,
        *,
        persist: bool | None = None,
        manager: FixtureManager | None = None,
    ) -> Proxy[T]:
        """Run the full pipeline once.

        ``persist`` and ``manager`` come from an enclosing build when this
        factory is nested; a bound manager always takes precedence.
        """
        manager = self._manager or manager or FixtureManager.current()
        persist = self._should_persist(manager) if persist is None else persist

        # defaults see the manager this build runs with
        bound = self if self._manager is manager else self._replace(manager=manager)
        declarations = AttributeSet((bound.defaults, *self._attributes))
        resolved = declarations.resolve(attributes)
        for hook in self._before_instantiate:
            resolved = resolved.with_values(hook(resolved))
        resolved = RelationshipResolver(manager, persist=persist).resolve(resolved)

        obj = self._instantiator(describe(self._model), resolved)
        for hook in self._after_instantiate:
            hook(obj, resolved)

        if not persist:
            log.debug("Built unpersisted %s", self._model.__qualname__)
            return Proxy(obj, manager)

        identity = manager.store.save(obj)
        proxy = Proxy(obj, manager, identity)
        for hook in self._after_persist:
            hook(obj, resolved)
        for hook in self._after_persist_proxy:
            hook(proxy, resolved)
        if self._after_persist or self._after_persist_proxy:
            manager.store.save(obj)

        log.info(
            "Created %s %r",
            self._model.__qualname__,
            identity,
            extra={"model": self._model.__qualname__, "identity": identity},
        )
        return proxy

    def create(self, attributes: AttributeSource | None = None, **overrides: Any) -> Proxy[T]:
        """Build one object with ``attributes``/``overrides`` winning over
        every declaration."""
        return self.build(_merge(attributes, overrides))

    def create_many(
        self, count: int, attributes: AttributeSource | None = None, **overrides: Any
    ) -> list[Proxy[T]]:
        """Build ``count`` independent objects, in order."""
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")
        source = _merge(attributes, overrides)
        return [self.build(source) for _ in range(count)]

    def many(self, min_count: int, max_count: int | None = None) -> FactoryCollection[T]:
        """Collection of ``min_count`` objects, or a random count in
        ``[min_count, max_count]`` drawn at creation time."""
        return FactoryCollection(self, min_count, max_count)

    def sequence(
        self, sequence: Iterable[AttributeSource] | Callable[[], Iterable[AttributeSource]]
    ) -> FactoryCollection[T]:
        """Collection building one object per attribute set in ``sequence``."""
        return FactoryCollection.from_sequence(self, sequence)

    # ----------------------------- Store shortcuts ---------------------------

    def repository(self) -> RepositoryView[T]:
        return self.manager.repository(self._model)

    def find_or_create(self, attributes: Mapping[str, Any]) -> Proxy[T]:
        """Return the first stored object matching ``attributes`` or create one."""
        found = self.repository().find_one_by(**attributes)
        return found if found is not None else self.create(attributes)

    def random_or_create(self, attributes: Mapping[str, Any] | None = None) -> Proxy[T]:
        """Return a random stored object matching ``attributes`` or create one."""
        criteria = dict(attributes or {})
        repository = self.repository()
        if repository.exists(**criteria):
            return repository.random(**criteria)
        return self.create(criteria)

    def first(self) -> Proxy[T] | None:
        return self.repository().first()

    def last(self) -> Proxy[T] | None:
        return self.repository().last()

    def all(self) -> list[Proxy[T]]:
        return self.repository().all()

    def find_by(self, **criteria: Any) -> list[Proxy[T]]:
        return self.repository().find_by(**criteria)

    def random(self, **criteria: Any) -> Proxy[T]:
        return self.repository().random(**criteria)

    def random_set(self, size: int, **criteria: Any) -> list[Proxy[T]]:
        return self.repository().random_set(size, **criteria)

    def random_range(self, min_size: int, max_size: int, **criteria: Any) -> list[Proxy[T]]:
        return self.repository().random_range(min_size, max_size, **criteria)

    def count(self, **criteria: Any) -> int:
        return self.repository().count(**criteria)

    def truncate(self) -> None:
        self.repository().truncate()


class FactoryCollection(Generic[T]):
    """Deferred "several objects" built from one factory.

    Either a count (fixed, or a random range resolved at creation) or an
    explicit sequence of per-object attribute sets.
    """

    def __init__(
        self,
        factory: Factory[T],
        min_count: int = 1,
        max_count: int | None = None,
        *,
        sequence: Iterable[AttributeSource] | Callable[[], Iterable[AttributeSource]] | None = None,
    ) -> None:
        if sequence is None:
            max_count = min_count if max_count is None else max_count
            if min_count < 0 or min_count > max_count:
                raise ValueError(f"Invalid count range [{min_count}, {max_count}]")
        self.factory = factory
        self.min_count = min_count
        self.max_count = max_count
        self._sequence = sequence

    @classmethod
    def from_sequence(
        cls,
        factory: Factory[T],
        sequence: Iterable[AttributeSource] | Callable[[], Iterable[AttributeSource]],
    ) -> FactoryCollection[T]:
        return cls(factory, sequence=sequence)

    def __repr__(self) -> str:
        if self._sequence is not None:
            return f"<FactoryCollection {self.factory!r} sequence>"
        return f"<FactoryCollection {self.factory!r} [{self.min_count}, {self.max_count}]>"

    def _attribute_sets(self) -> Sequence[AttributeSource | None]:
        if self._sequence is not None:
            sequence = self._sequence() if callable(self._sequence) else self._sequence
            return list(sequence)
        count = self.min_count
        if self.max_count != self.min_count:
            count = self.factory.manager.values.random.randint(self.min_count, self.max_count)
        return [None] * count

    def all(self) -> list[Factory[T]]:
        """One factory per object the collection would create."""
        return [
            self.factory if attributes is None else self.factory.with_attributes(attributes)
            for attributes in self._attribute_sets()
        ]

    def create(self, attributes: AttributeSource | None = None, **overrides: Any) -> list[Proxy[T]]:
        source = _merge(attributes, overrides)
        return [factory.create(source) for factory in self.all()]


__all__ = ["Factory", "FactoryCollection"]
