"""
In-memory :class:`~fixtureforge.persistence.base.Store` for plain objects.

Saved objects are kept as deep-copied snapshots so that :meth:`find` behaves
like a database read: it returns a fresh object reflecting the last save and
never the caller's unsaved mutations.
"""

from __future__ import annotations

import copy
import weakref
from collections import defaultdict
from collections.abc import Callable, Mapping
from typing import Any

from fixtureforge.persistence.base import Store

_MISSING = object()


class InMemoryStore(Store):
    """Dictionary-backed store with auto-increment identities per class.

    When a saved object has an ``id`` attribute set to ``None`` the assigned
    identity is written to it. An explicit integer ``id`` moves the class
    counter past it.
    """

    def __init__(self) -> None:
        self._rows: dict[type, dict[Any, Any]] = defaultdict(dict)
        self._next_id: dict[type, int] = defaultdict(lambda: 1)
        # id(obj) -> (reference, model, identity); entries go away with the object
        self._tracked: dict[int, tuple[Callable[[], Any], type, Any]] = {}
        # objects without weakref support: only the newest per identity is kept
        self._pinned: dict[tuple[type, Any], Any] = {}

    # ------------------------------- Tracking --------------------------------

    def _track(self, obj: Any, identity: Any) -> None:
        key, model = id(obj), type(obj)
        try:
            ref: Callable[[], Any] = weakref.ref(obj, lambda _, key=key: self._tracked.pop(key, None))
        except TypeError:
            previous = self._pinned.get((model, identity))
            if previous is not None and previous is not obj:
                self._tracked.pop(id(previous), None)
            self._pinned[(model, identity)] = obj
            ref = lambda obj=obj: obj  # noqa: E731
        self._tracked[key] = (ref, model, identity)

    def _forget(self, model: type, match: Callable[[Any], bool]) -> None:
        stale = [key for key, (_, m, identity) in self._tracked.items() if m is model and match(identity)]
        for key in stale:
            del self._tracked[key]
        for pinned in [k for k in self._pinned if k[0] is model and match(k[1])]:
            del self._pinned[pinned]

    def identity_of(self, obj: Any) -> Any | None:
        tracked = self._tracked.get(id(obj))
        if tracked is not None and tracked[0]() is obj:
            return tracked[2]
        return None

    # ------------------------------ Identities -------------------------------

    def _assign_identity(self, model: type, explicit: Any) -> Any:
        if explicit is not None:
            if isinstance(explicit, int) and not isinstance(explicit, bool):
                self._next_id[model] = max(self._next_id[model], explicit + 1)
            return explicit
        candidate = self._next_id[model]
        while candidate in self._rows[model]:
            candidate += 1
        self._next_id[model] = candidate + 1
        return candidate

    # --------------------------------- Store ---------------------------------

    def save(self, obj: Any) -> Any:
        model = type(obj)
        identity = self.identity_of(obj)
        if identity is None:
            identity = self._assign_identity(model, getattr(obj, "id", None))
            if getattr(obj, "id", _MISSING) is None:
                object.__setattr__(obj, "id", identity)
        self._rows[model][identity] = copy.deepcopy(obj)
        self._track(obj, identity)
        return identity

    def find(self, model: type, identity: Any) -> Any | None:
        row = self._rows[model].get(identity)
        if row is None:
            return None
        fresh = copy.deepcopy(row)
        self._track(fresh, identity)
        return fresh

    def exists(self, model: type, identity: Any) -> bool:
        return identity in self._rows[model]

    def find_by(self, model: type, criteria: Mapping[str, Any]) -> list[Any]:
        found: list[Any] = []
        for identity in sorted(self._rows[model]):
            row = self._rows[model][identity]
            if all(getattr(row, key, _MISSING) == value for key, value in criteria.items()):
                fresh = copy.deepcopy(row)
                self._track(fresh, identity)
                found.append(fresh)
        return found

    def count(self, model: type, criteria: Mapping[str, Any]) -> int:
        return sum(
            1
            for row in self._rows[model].values()
            if all(getattr(row, key, _MISSING) == value for key, value in criteria.items())
        )

    def delete(self, model: type, identity: Any) -> None:
        self._rows[model].pop(identity, None)
        self._forget(model, lambda tracked: tracked == identity)

    def truncate(self, model: type) -> None:
        self._rows[model].clear()
        self._forget(model, lambda tracked: True)
