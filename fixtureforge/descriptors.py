"""Reflection over target classes.

The instantiator never inspects a class directly; it asks a
:class:`ClassDescriptor` for constructor parameters, setters, adders and raw
fields. :func:`describe` returns a :class:`MappedDescriptor` for SQLAlchemy
mapped classes and an :class:`ObjectDescriptor` for everything else.

Conventions
-----------
* Setter: ``set_<name>()`` method, else a property with a setter, else a
  writable declared field.
* Adder: ``add_<singular>()`` method, used for sequence values.
* Field: the declared attribute itself, or ``_<name>`` behind a property.
"""

from __future__ import annotations

import dataclasses
import functools
import inspect
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper, RelationshipProperty
from sqlalchemy.orm.attributes import flag_modified, set_attribute

_MISSING = object()


@dataclass(frozen=True, slots=True)
class ConstructorParameter:
    """One named constructor parameter.

    :param name: Parameter name as declared.
    :param required: ``True`` when the parameter has no default.
    :param default: Declared default (meaningless when ``required``).
    :param positional_only: Must be passed positionally.
    """

    name: str
    required: bool
    default: Any = None
    positional_only: bool = False


@dataclass(frozen=True, slots=True)
class FieldAccess:
    """Direct read/write access to one field of an instance."""

    instance: Any
    name: str

    def get(self) -> Any:
        return object.__getattribute__(self.instance, self.name)

    def set(self, value: Any) -> None:
        object.__setattr__(self.instance, self.name, value)


@dataclass(frozen=True, slots=True)
class MappedFieldAccess(FieldAccess):
    """Field access on a SQLAlchemy mapped attribute.

    Columns are written straight into the instance state and flagged as
    modified, which skips ``@validates`` hooks while keeping the change in
    the next flush. Relationships go through the attribute system so
    collections and backrefs stay consistent.
    """

    relationship: bool = False

    def set(self, value: Any) -> None:
        if self.relationship:
            set_attribute(self.instance, self.name, value)
            return
        self.instance.__dict__[self.name] = value
        flag_modified(self.instance, self.name)


class ClassDescriptor(Protocol):
    """Capabilities the instantiator needs from a target class."""

    model: type

    def constructor_parameters(self) -> Sequence[ConstructorParameter]: ...
    def construct(self, args: Sequence[Any], kwargs: Mapping[str, Any]) -> Any: ...
    def new_instance(self) -> Any: ...
    def try_setter(self, instance: Any, name: str) -> Callable[[Any], None] | None: ...
    def try_adder(self, instance: Any, name: str) -> Callable[[Any], None] | None: ...
    def try_field(self, instance: Any, name: str) -> FieldAccess | None: ...


def _singular(name: str) -> str | None:
    if name.endswith("ies") and len(name) > 3:
        return name[:-3] + "y"
    if name.endswith("s") and len(name) > 1:
        return name[:-1]
    return None


class ObjectDescriptor:
    """Descriptor for plain Python classes (including dataclasses and slots)."""

    def __init__(self, model: type) -> None:
        self.model = model

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.model.__qualname__}>"

    # ------------------------------ Constructor ------------------------------

    @functools.cached_property
    def _signature(self) -> inspect.Signature | None:
        try:
            return inspect.signature(self.model)
        except (TypeError, ValueError):
            return None

    def constructor_parameters(self) -> Sequence[ConstructorParameter]:
        """Named constructor parameters in declaration order.

        ``*args`` and ``**kwargs`` are skipped: whatever they accept is not
        discoverable, so those attributes fall through to setters.
        """
        if self._signature is None:
            return ()
        params: list[ConstructorParameter] = []
        for param in self._signature.parameters.values():
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            required = param.default is param.empty
            params.append(
                ConstructorParameter(
                    name=param.name,
                    required=required,
                    default=None if required else param.default,
                    positional_only=param.kind is param.POSITIONAL_ONLY,
                )
            )
        return tuple(params)

    def construct(self, args: Sequence[Any], kwargs: Mapping[str, Any]) -> Any:
        return self.model(*args, **kwargs)

    def new_instance(self) -> Any:
        """Allocate an instance without running ``__init__``."""
        return self.model.__new__(self.model)

    # ------------------------------ Introspection ----------------------------

    @functools.cached_property
    def declared_fields(self) -> frozenset[str]:
        """Names the class declares as data: annotations, slots, dataclass
        fields and constructor parameters."""
        return frozenset(self._collect_fields())

    def _collect_fields(self) -> set[str]:
        names: set[str] = set()
        for klass in self.model.__mro__:
            if klass is object:
                continue
            names.update(inspect.get_annotations(klass))
            slots = klass.__dict__.get("__slots__", ())
            names.update((slots,) if isinstance(slots, str) else slots)
        if dataclasses.is_dataclass(self.model):
            names.update(f.name for f in dataclasses.fields(self.model))
        names.update(p.name for p in self.constructor_parameters())
        names.discard("__dict__")
        names.discard("__weakref__")
        return names

    @functools.cached_property
    def _frozen(self) -> bool:
        params = getattr(self.model, "__dataclass_params__", None)
        return bool(params and params.frozen)

    def _static(self, name: str) -> Any:
        return inspect.getattr_static(self.model, name, _MISSING)

    def has_field(self, instance: Any, name: str) -> bool:
        if name in self.declared_fields or name in getattr(instance, "__dict__", {}):
            return True
        # plain class attributes act as defaults; methods and descriptors do not
        static = self._static(name)
        return static is not _MISSING and not (
            callable(static) or isinstance(static, (property, classmethod, staticmethod))
        )

    # -------------------------------- Access ---------------------------------

    def try_setter(self, instance: Any, name: str) -> Callable[[Any], None] | None:
        method = getattr(instance, f"set_{name}", None)
        if callable(method):
            return method
        static = self._static(name)
        if isinstance(static, property):
            if static.fset is None:
                return None
            return functools.partial(setattr, instance, name)
        if self._frozen:
            return None
        if self.has_field(instance, name):
            return functools.partial(setattr, instance, name)
        return None

    def try_adder(self, instance: Any, name: str) -> Callable[[Any], None] | None:
        singular = _singular(name)
        if singular is None:
            return None
        method = getattr(instance, f"add_{singular}", None)
        return method if callable(method) else None

    def try_field(self, instance: Any, name: str) -> FieldAccess | None:
        if isinstance(self._static(name), property):
            backing = f"_{name}"
            if self.has_field(instance, backing):
                return FieldAccess(instance, backing)
            return None
        if self.has_field(instance, name):
            return FieldAccess(instance, name)
        return None


class MappedDescriptor(ObjectDescriptor):
    """Descriptor for SQLAlchemy mapped classes."""

    def __init__(self, model: type, mapper: Mapper[Any]) -> None:
        super().__init__(model)
        self.mapper = mapper

    @functools.cached_property
    def mapped_attributes(self) -> frozenset[str]:
        return frozenset(self.mapper.attrs.keys())

    def constructor_parameters(self) -> Sequence[ConstructorParameter]:
        """Explicit parameters, or every mapped attribute when the class keeps
        the declarative ``**kwargs`` constructor."""
        params = list(super().constructor_parameters())
        accepts_kwargs = self._signature is not None and any(
            p.kind is p.VAR_KEYWORD for p in self._signature.parameters.values()
        )
        if accepts_kwargs:
            named = {p.name for p in params}
            params.extend(
                ConstructorParameter(name=key, required=False)
                for key in self.mapper.attrs.keys()
                if key not in named
            )
        return tuple(params)

    def _collect_fields(self) -> set[str]:
        return super()._collect_fields() | self.mapped_attributes

    def new_instance(self) -> Any:
        """Allocate an instrumented instance without running ``__init__``."""
        return self.mapper.class_manager.new_instance()

    def try_field(self, instance: Any, name: str) -> FieldAccess | None:
        if name in self.mapped_attributes:
            prop = self.mapper.attrs[name]
            return MappedFieldAccess(
                instance, name, relationship=isinstance(prop, RelationshipProperty)
            )
        return super().try_field(instance, name)


@functools.cache
def describe(model: type) -> ClassDescriptor:
    """Return the (cached) descriptor for ``model``."""
    mapper = sa_inspect(model, raiseerr=False)
    if isinstance(mapper, Mapper):
        return MappedDescriptor(model, mapper)
    return ObjectDescriptor(model)


__all__ = [
    "ClassDescriptor",
    "ConstructorParameter",
    "FieldAccess",
    "MappedDescriptor",
    "MappedFieldAccess",
    "ObjectDescriptor",
    "describe",
]
