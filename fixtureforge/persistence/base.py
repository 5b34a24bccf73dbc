"""
Abstract persistence store contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any


class Store(ABC):
    """
    Narrow persistence seam used by factories, proxies and repository views.

    Responsibilities:
    - Save objects and report the identity they are stored under.
    - Reload an object from storage, discarding unsaved in-memory changes.
    - Answer equality-criteria queries ordered by identity.

    Stores never retry: errors raised by the backend propagate unchanged.
    """

    @abstractmethod
    def save(self, obj: Any) -> Any: ...
    @abstractmethod
    def delete(self, model: type, identity: Any) -> None: ...
    @abstractmethod
    def find(self, model: type, identity: Any) -> Any | None: ...
    @abstractmethod
    def exists(self, model: type, identity: Any) -> bool: ...
    @abstractmethod
    def find_by(self, model: type, criteria: Mapping[str, Any]) -> list[Any]: ...
    @abstractmethod
    def count(self, model: type, criteria: Mapping[str, Any]) -> int: ...
    @abstractmethod
    def truncate(self, model: type) -> None: ...
    @abstractmethod
    def identity_of(self, obj: Any) -> Any | None: ...
