"""Proxy keeping a built object in sync with the store.

Every attribute read, write or method call that is not one of the proxy's
own operations is forwarded to the wrapped object, after reloading it from
the store when auto-refresh is enabled. Suspend auto-refresh to stack several
local changes before a single :meth:`Proxy.save`::

    with post.auto_refresh_suspended():
        post.title = "Draft"
        post.force_set("slug", "draft")
    post.save()
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable, Iterator, Mapping
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from fixtureforge.attributes import ValueKind, parse_key
from fixtureforge.descriptors import describe
from fixtureforge.errors import (
    ObjectNotPersisted,
    PersistedObjectMissing,
    ProxyRemoved,
    UnconsumedAttribute,
)

if TYPE_CHECKING:  # pragma: no cover
    from fixtureforge.manager import FixtureManager
    from fixtureforge.repository import RepositoryView

log = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class Proxy(Generic[T]):
    """Handle around one constructed object.

    :param obj: Wrapped object.
    :param manager: Manager whose store backs refresh/save/remove.
    :param identity: Store identity, ``None`` while unpersisted.
    :param auto_refresh: Defaults to the manager's setting.
    """

    __fixture_kind__ = ValueKind.PROXY
    __slots__ = ("_obj", "_model", "_manager", "_identity", "_auto_refresh", "_until_save", "_removed")

    def __init__(
        self,
        obj: T,
        manager: FixtureManager,
        identity: Any = None,
        *,
        auto_refresh: bool | None = None,
    ) -> None:
        object.__setattr__(self, "_obj", obj)
        object.__setattr__(self, "_model", type(obj))
        object.__setattr__(self, "_manager", manager)
        object.__setattr__(self, "_identity", identity)
        object.__setattr__(
            self, "_auto_refresh", manager.auto_refresh if auto_refresh is None else auto_refresh
        )
        object.__setattr__(self, "_until_save", False)
        object.__setattr__(self, "_removed", False)

    # ------------------------------ Forwarding -------------------------------

    def __getattr__(self, name: str) -> Any:
        if name in Proxy.__slots__ or (name.startswith("__") and name.endswith("__")):
            raise AttributeError(name)
        self._auto_refresh_if_enabled()
        return getattr(self._obj, name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in Proxy.__slots__:
            object.__setattr__(self, name, value)
            return
        self._auto_refresh_if_enabled()
        setattr(self._obj, name, value)

    def __repr__(self) -> str:
        state = "removed" if self._removed else f"id={self._identity!r}"
        return f"<Proxy {self._model.__qualname__} {state}>"

    # ------------------------------- Internals -------------------------------

    def _ensure_not_removed(self) -> None:
        if self._removed:
            raise ProxyRemoved(self._model, self._identity)

    def _ensure_persisted(self) -> None:
        self._ensure_not_removed()
        if self._identity is None:
            raise ObjectNotPersisted(self._model)

    def _auto_refresh_if_enabled(self) -> None:
        self._ensure_not_removed()
        if self._auto_refresh and self._identity is not None:
            self.refresh()

    def _field(self, name: str):
        key, _ = parse_key(name)
        field = describe(self._model).try_field(self._obj, key)
        if field is None:
            raise UnconsumedAttribute(self._model, key)
        return field

    # -------------------------------- Object ---------------------------------

    def object(self) -> T:
        """Return the wrapped object (refreshed when auto-refresh is on)."""
        self._auto_refresh_if_enabled()
        return self._obj

    @property
    def identity(self) -> Any:
        return self._identity

    def is_persisted(self) -> bool:
        return self._identity is not None and not self._removed

    def repository(self) -> RepositoryView[T]:
        return self._manager.repository(self._model)

    # ------------------------------ Store-backed -----------------------------

    def refresh(self) -> Proxy[T]:
        """Replace the wrapped object with its persisted state.

        :raises ObjectNotPersisted: If the object was never saved.
        :raises PersistedObjectMissing: If the row is gone.
        """
        self._ensure_persisted()
        fresh = self._manager.store.find(self._model, self._identity)
        if fresh is None:
            raise PersistedObjectMissing(self._model, self._identity)
        object.__setattr__(self, "_obj", fresh)
        return self

    def save(self) -> Proxy[T]:
        """Persist the current in-memory state.

        Lifts a suspension requested with ``disable_auto_refresh(until_save=True)``.
        """
        self._ensure_not_removed()
        identity = self._manager.store.save(self._obj)
        object.__setattr__(self, "_identity", identity)
        if self._until_save:
            object.__setattr__(self, "_until_save", False)
            object.__setattr__(self, "_auto_refresh", True)
        log.debug(
            "Saved %s %r through proxy",
            self._model.__qualname__,
            identity,
            extra={"model": self._model.__qualname__, "identity": identity},
        )
        return self

    def remove(self) -> Proxy[T]:
        """Delete the object from the store; the proxy is unusable afterwards."""
        self._ensure_persisted()
        self._manager.store.delete(self._model, self._identity)
        object.__setattr__(self, "_removed", True)
        log.info(
            "Removed %s %r",
            self._model.__qualname__,
            self._identity,
            extra={"model": self._model.__qualname__, "identity": self._identity},
        )
        return self

    # ------------------------------ Direct access ----------------------------

    def force_set(self, name: str, value: Any) -> Proxy[T]:
        """Write a field directly on the current object, bypassing setters.

        No refresh happens first.
        """
        self._ensure_not_removed()
        self._field(name).set(value)
        return self

    def force_set_all(self, values: Mapping[str, Any]) -> Proxy[T]:
        for name, value in values.items():
            self.force_set(name, value)
        return self

    def force_get(self, name: str) -> Any:
        """Read a field directly from the current object, bypassing getters."""
        self._ensure_not_removed()
        return self._field(name).get()

    # ------------------------------ Auto-refresh -----------------------------

    def enable_auto_refresh(self) -> Proxy[T]:
        object.__setattr__(self, "_auto_refresh", True)
        object.__setattr__(self, "_until_save", False)
        return self

    def disable_auto_refresh(self, *, until_save: bool = False) -> Proxy[T]:
        """Stop refreshing before each access.

        :param until_save: Re-enable automatically on the next :meth:`save`.
        """
        object.__setattr__(self, "_until_save", until_save and self._auto_refresh)
        object.__setattr__(self, "_auto_refresh", False)
        return self

    @contextlib.contextmanager
    def auto_refresh_suspended(self) -> Iterator[Proxy[T]]:
        """Suspend auto-refresh for the ``with`` block, then restore it."""
        previous = (self._auto_refresh, self._until_save)
        self.disable_auto_refresh()
        try:
            yield self
        finally:
            object.__setattr__(self, "_auto_refresh", previous[0])
            object.__setattr__(self, "_until_save", previous[1])

    def without_auto_refresh(self, fn: Callable[[Proxy[T]], R]) -> R:
        """Call ``fn(proxy)`` with auto-refresh suspended and return its result."""
        with self.auto_refresh_suspended():
            return fn(self)

    # ------------------------------- Assertions ------------------------------

    def _stored(self) -> bool:
        return self._identity is not None and self._manager.store.exists(self._model, self._identity)

    def assert_persisted(self, message: str | None = None) -> Proxy[T]:
        self._ensure_not_removed()
        if not self._stored():
            raise AssertionError(message or f"{self._model.__qualname__} is not persisted")
        return self

    def assert_not_persisted(self, message: str | None = None) -> Proxy[T]:
        if self._stored():
            raise AssertionError(
                message or f"{self._model.__qualname__} {self._identity!r} is persisted"
            )
        return self


def unwrap(proxy: Proxy[T]) -> T:
    """Return the object behind ``proxy`` as it is, without refreshing it."""
    proxy._ensure_not_removed()
    return proxy._obj


__all__ = ["Proxy", "unwrap"]
