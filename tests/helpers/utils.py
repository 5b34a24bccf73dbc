"""Tiny helpers shared across test modules."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from fixtureforge import InMemoryStore


@contextmanager
def not_raises(exception: type[BaseException]):
    """Context manager asserting that an exception is *not* raised.

    Parameters
    ----------
    exception: type[BaseException]
        Exception type that should not be raised within the context.
    """
    try:
        yield
    except exception as exc:  # pragma: no cover
        raise AssertionError(f"Did raise {exception}: {exc}") from exc


class RecordingStore(InMemoryStore):
    """In-memory store recording the class of every saved object, in order."""

    def __init__(self) -> None:
        super().__init__()
        self.saved: list[type] = []

    def save(self, obj):
        self.saved.append(type(obj))
        return super().save(obj)


def counter(prefix: str = "") -> Iterator[str]:
    """Yield ``prefix1``, ``prefix2``, ... forever."""
    n = 0
    while True:
        n += 1
        yield f"{prefix}{n}"
