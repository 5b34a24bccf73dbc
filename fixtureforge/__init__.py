"""Factories, proxies and stories for building persisted test fixtures.

The usual entry points are re-exported here::

    from fixtureforge import Factory, FixtureManager, SQLAlchemyStore, Story
"""

from .attributes import AttributeSet, ResolvedAttributes, normalize_key
from .errors import (
    FixtureError,
    InsufficientPopulation,
    InvalidAttributeSource,
    MissingRequiredAttribute,
    NoSetterAvailable,
    ObjectNotPersisted,
    PersistedObjectMissing,
    ProxyRemoved,
    StoryStateNotFound,
    UnconsumedAttribute,
)
from .factory import Factory, FactoryCollection
from .instantiator import Instantiator
from .manager import FixtureManager, faker
from .persistence import InMemoryStore, SQLAlchemyStore, Store
from .proxy import Proxy, unwrap
from .repository import RepositoryView
from .story import Story
from .values import ValueSource

__version__ = "0.1.0"

__all__ = [
    "AttributeSet",
    "Factory",
    "FactoryCollection",
    "FixtureError",
    "FixtureManager",
    "InMemoryStore",
    "InsufficientPopulation",
    "Instantiator",
    "InvalidAttributeSource",
    "MissingRequiredAttribute",
    "NoSetterAvailable",
    "ObjectNotPersisted",
    "PersistedObjectMissing",
    "Proxy",
    "ProxyRemoved",
    "RepositoryView",
    "ResolvedAttributes",
    "SQLAlchemyStore",
    "Store",
    "Story",
    "StoryStateNotFound",
    "UnconsumedAttribute",
    "ValueSource",
    "faker",
    "normalize_key",
    "unwrap",
]
