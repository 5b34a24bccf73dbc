"""Materialize nested factories and proxies before instantiation.

Factories found among resolved attributes are built with the *enclosing*
build's persistence mode, so a persisted parent always references persisted
children and an unpersisted parent never touches the store. Proxies are
unwrapped. Bare objects are passed through untouched and are never persisted
implicitly.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fixtureforge.attributes import ResolvedAttributes, ValueKind, kind_of
from fixtureforge.proxy import unwrap

if TYPE_CHECKING:  # pragma: no cover
    from fixtureforge.manager import FixtureManager

log = logging.getLogger(__name__)


class RelationshipResolver:
    """Replace factories and proxies in attributes with plain objects.

    Resolution is depth-first and left-to-right: nested values are built in
    the order their keys (and sequence elements) appear.

    :param manager: Manager used by nested factories that are not bound to one.
    :param persist: Persistence mode of the enclosing build.
    """

    def __init__(self, manager: FixtureManager, *, persist: bool) -> None:
        self.manager = manager
        self.persist = persist

    def resolve(self, attributes: ResolvedAttributes) -> ResolvedAttributes:
        # canonical keys keep their directives through with_values
        return attributes.with_values(
            {name: self.resolve_value(value) for name, value in attributes.items()}
        )

    def resolve_value(self, value: Any) -> Any:
        kind = kind_of(value)
        if kind is ValueKind.FACTORY:
            log.debug("Building nested %s (persist=%s)", value.model.__qualname__, self.persist)
            return unwrap(value.build(persist=self.persist, manager=self.manager))
        if kind is ValueKind.PROXY:
            return unwrap(value)
        if kind is ValueKind.SEQUENCE:
            return type(value)(self.resolve_value(item) for item in value)
        if kind is ValueKind.MAPPING:
            return {key: self.resolve_value(item) for key, item in value.items()}
        return value


__all__ = ["RelationshipResolver"]
