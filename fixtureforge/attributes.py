"""Attribute declarations, key normalization and the merge that resolves them.

A factory carries an ordered list of *declarations*: mappings, or
zero-argument callables returning mappings. :class:`AttributeSet` merges them
(later wins, call-site overrides win last) into one
:class:`ResolvedAttributes` keyed by canonical snake_case names.

Two key prefixes travel alongside a name as directives:

* ``force:`` writes the field directly, bypassing setters.
* ``optional:`` tolerates the attribute not being used by the target class.

``title``, ``Title``, ``force:title`` and ``optional:title`` all name the
same attribute; so do ``publishedAt``, ``published_at`` and ``published-at``.
"""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any

from fixtureforge.errors import InvalidAttributeSource

log = logging.getLogger(__name__)

FORCE_PREFIX = "force:"
OPTIONAL_PREFIX = "optional:"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_SEPARATORS = re.compile(r"[-\s]+")


class Directive(enum.Enum):
    """Per-key instruction recorded from a key prefix."""

    FORCE = "force"
    OPTIONAL = "optional"


class ValueKind(enum.Enum):
    """Closed set of shapes an attribute value can take."""

    MAPPING = "mapping"
    PRODUCTION = "production"
    FACTORY = "factory"
    PROXY = "proxy"
    SEQUENCE = "sequence"
    PLAIN = "plain"


def kind_of(value: Any) -> ValueKind:
    """Return the :class:`ValueKind` tag of ``value``.

    Factories and proxies declare their tag through a ``__fixture_kind__``
    class attribute. Classes are plain values even though they are callable.
    """
    tag = getattr(type(value), "__fixture_kind__", None)
    if isinstance(tag, ValueKind):
        return tag
    if isinstance(value, Mapping):
        return ValueKind.MAPPING
    if isinstance(value, list) or (isinstance(value, tuple) and not hasattr(value, "_fields")):
        return ValueKind.SEQUENCE
    if callable(value) and not isinstance(value, type):
        return ValueKind.PRODUCTION
    return ValueKind.PLAIN


def normalize_key(key: str) -> str:
    """Convert camelCase, kebab-case and snake_case spellings to snake_case.

    :param key: Attribute name without directive prefixes.
    :returns: Canonical lower snake_case name.
    """
    key = _CAMEL_BOUNDARY.sub("_", key.strip())
    return _SEPARATORS.sub("_", key).lower()


def parse_key(raw: str) -> tuple[str, frozenset[Directive]]:
    """Split directive prefixes from ``raw`` and normalize the remainder.

    Prefixes may be stacked in any order (``optional:force:title``).
    """
    if not isinstance(raw, str):
        raise TypeError(f"Attribute names must be strings, got {raw!r}")
    directives: set[Directive] = set()
    rest = raw.strip()
    while True:
        lowered = rest.lower()
        if lowered.startswith(FORCE_PREFIX):
            directives.add(Directive.FORCE)
            rest = rest[len(FORCE_PREFIX) :]
        elif lowered.startswith(OPTIONAL_PREFIX):
            directives.add(Directive.OPTIONAL)
            rest = rest[len(OPTIONAL_PREFIX) :]
        else:
            break
    return normalize_key(rest), frozenset(directives)


class ResolvedAttributes(Mapping[str, Any]):
    """Flat, read-only mapping of canonical names to values plus directives."""

    __slots__ = ("_values", "_directives")

    def __init__(
        self,
        values: Mapping[str, Any] | None = None,
        directives: Mapping[str, frozenset[Directive]] | None = None,
    ) -> None:
        self._values: dict[str, Any] = dict(values or {})
        self._directives: dict[str, frozenset[Directive]] = {
            key: frozenset(found)
            for key, found in (directives or {}).items()
            if key in self._values and found
        }

    # Mapping protocol
    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ResolvedAttributes({self._values!r})"

    def directives(self, key: str) -> frozenset[Directive]:
        return self._directives.get(key, frozenset())

    def is_forced(self, key: str) -> bool:
        return Directive.FORCE in self.directives(key)

    def is_optional(self, key: str) -> bool:
        return Directive.OPTIONAL in self.directives(key)

    def with_values(self, values: Mapping[str, Any]) -> ResolvedAttributes:
        """Return a copy holding ``values``.

        Keys are parsed again, so a hook may add prefixed keys. Keys kept from
        this mapping keep their directives; keys missing from ``values`` are
        dropped.
        """
        if isinstance(values, ResolvedAttributes):
            return values
        if not isinstance(values, Mapping):
            raise InvalidAttributeSource(values)
        merged: dict[str, Any] = {}
        directives: dict[str, frozenset[Directive]] = {}
        for raw, value in values.items():
            name, found = parse_key(raw)
            merged[name] = value
            directives[name] = found or self.directives(name)
        return ResolvedAttributes(merged, directives)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._values)


def _evaluate(value: Any) -> Any:
    """Invoke production callables found in ``value`` (depth-first)."""
    kind = kind_of(value)
    if kind is ValueKind.PRODUCTION:
        return _evaluate(value())
    if kind is ValueKind.MAPPING:
        return {key: _evaluate(item) for key, item in value.items()}
    if kind is ValueKind.SEQUENCE:
        return type(value)(_evaluate(item) for item in value)
    return value


class AttributeSet:
    """Ordered attribute declarations awaiting resolution.

    Production callables are invoked by :meth:`resolve`, never when
    declared, so every resolution produces fresh values.

    :param declarations: Mappings or zero-argument callables returning one.
    """

    __slots__ = ("_declarations",)

    def __init__(self, declarations: Iterable[Any] = ()) -> None:
        self._declarations = tuple(declarations)
        for declaration in self._declarations:
            if kind_of(declaration) not in (ValueKind.MAPPING, ValueKind.PRODUCTION):
                raise InvalidAttributeSource(declaration)

    def __len__(self) -> int:
        return len(self._declarations)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._declarations)

    def extend(self, *declarations: Any) -> AttributeSet:
        return AttributeSet(self._declarations + declarations)

    @staticmethod
    def _materialize(declaration: Any) -> Mapping[str, Any]:
        if kind_of(declaration) is ValueKind.PRODUCTION:
            declaration = declaration()
        if not isinstance(declaration, Mapping):
            raise InvalidAttributeSource(declaration)
        return declaration

    def resolve(
        self,
        overrides: Mapping[str, Any] | Callable[[], Mapping[str, Any]] | None = None,
    ) -> ResolvedAttributes:
        """Merge every declaration, then ``overrides``, into one mapping.

        :param overrides: Call-site attributes; always win.
        :returns: Canonical names mapped to evaluated values.
        :raises InvalidAttributeSource: If a declaration is not usable.
        """
        sources = list(self._declarations)
        if overrides is not None:
            if kind_of(overrides) not in (ValueKind.MAPPING, ValueKind.PRODUCTION):
                raise InvalidAttributeSource(overrides)
            sources.append(overrides)

        merged: dict[str, Any] = {}
        directives: dict[str, frozenset[Directive]] = {}
        for declaration in sources:
            for raw, value in self._materialize(declaration).items():
                name, found = parse_key(raw)
                # a later spelling replaces the value and directives, keeping the position
                merged[name] = value
                directives[name] = found

        values = {name: _evaluate(value) for name, value in merged.items()}
        log.debug("Resolved attributes: %s", sorted(values))
        return ResolvedAttributes(values, directives)


__all__ = [
    "AttributeSet",
    "Directive",
    "FORCE_PREFIX",
    "OPTIONAL_PREFIX",
    "ResolvedAttributes",
    "ValueKind",
    "kind_of",
    "normalize_key",
    "parse_key",
]
