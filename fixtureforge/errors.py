"""
Exceptions raised while building, persisting and inspecting fixtures.

Construction errors (``InvalidAttributeSource``, ``MissingRequiredAttribute``,
``NoSetterAvailable``, ``UnconsumedAttribute``) signal a misconfigured factory.
They are raised immediately and never retried. Failures coming from the
underlying store are not wrapped: they propagate as raised by the store.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


def _type_name(model: Any) -> str:
    return getattr(model, "__qualname__", None) or type(model).__qualname__


# --------------------------------------------------------------------------- #
# Base type
# --------------------------------------------------------------------------- #


class FixtureError(Exception):
    """
    Base class for all fixtureforge errors.

    Notes
    -----
    - Never raised directly.
    - Store exceptions (e.g. ``sqlalchemy.exc.IntegrityError``) are *not*
      subclasses and pass through untouched.
    """

    pass


# --------------------------------------------------------------------------- #
# Construction-time errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class InvalidAttributeSource(FixtureError):
    """
    Raised when an attribute declaration is neither a mapping nor a callable
    producing one.

    :param source: The offending declaration (or the value it produced).
    :type source: Any
    """

    source: Any

    def __str__(self) -> str:
        return (
            "Attribute declarations must be mappings or zero-argument callables "
            f"returning a mapping, got {type(self.source).__name__}: {self.source!r}"
        )


@dataclass(slots=True)
class MissingRequiredAttribute(FixtureError):
    """
    Raised when a required constructor parameter has no attribute.

    :param model: Target class.
    :param name: Constructor parameter name.
    """

    model: type
    name: str

    def __str__(self) -> str:
        return f"Missing required constructor argument '{self.name}' for {_type_name(self.model)}"


@dataclass(slots=True)
class NoSetterAvailable(FixtureError):
    """
    Raised when an attribute names a field that cannot be written through a
    setter (read-only property, frozen dataclass field, ...).

    Use the ``force:`` prefix to write the field directly.
    """

    model: type
    name: str

    def __str__(self) -> str:
        return (
            f"No setter available for '{self.name}' on {_type_name(self.model)}; "
            f"use 'force:{self.name}' to write the field directly"
        )


@dataclass(slots=True)
class UnconsumedAttribute(FixtureError):
    """
    Raised when an attribute matches neither a constructor parameter, a
    setter nor a field of the target class.
    """

    model: type
    name: str

    def __str__(self) -> str:
        return (
            f"Attribute '{self.name}' is not used by {_type_name(self.model)}; "
            f"prefix it with 'optional:' or allow extra attributes on the instantiator"
        )


# --------------------------------------------------------------------------- #
# Proxy errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class ProxyRemoved(FixtureError):
    """Raised when a proxy is used after :meth:`Proxy.remove`."""

    model: type
    identity: Any

    def __str__(self) -> str:
        return f"{_type_name(self.model)} {self.identity!r} was removed through its proxy"


@dataclass(slots=True)
class ObjectNotPersisted(FixtureError):
    """Raised when a store-backed operation is requested on an unpersisted object."""

    model: type

    def __str__(self) -> str:
        return f"{_type_name(self.model)} has not been persisted"


@dataclass(slots=True)
class PersistedObjectMissing(FixtureError):
    """Raised when refreshing finds that the persisted row no longer exists."""

    model: type
    identity: Any

    def __str__(self) -> str:
        return f"{_type_name(self.model)} {self.identity!r} no longer exists in the store"


# --------------------------------------------------------------------------- #
# Repository / story errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class InsufficientPopulation(FixtureError):
    """
    Raised when sampling asks for more objects than are stored.

    :param model: Sampled class.
    :param requested: Number of objects requested.
    :param available: Number of matching objects in the store.
    """

    model: type
    requested: int
    available: int

    def __str__(self) -> str:
        return (
            f"Requested {self.requested} {_type_name(self.model)} object(s) "
            f"but only {self.available} are persisted"
        )


@dataclass(slots=True)
class StoryStateNotFound(FixtureError):
    """Raised when a story has no state or pool under the requested name."""

    story: str
    name: str

    def __str__(self) -> str:
        return f"Story {self.story} has no state named '{self.name}'"


__all__ = [
    "FixtureError",
    "InvalidAttributeSource",
    "MissingRequiredAttribute",
    "NoSetterAvailable",
    "UnconsumedAttribute",
    "ProxyRemoved",
    "ObjectNotPersisted",
    "PersistedObjectMissing",
    "InsufficientPopulation",
    "StoryStateNotFound",
]
