"""Default strategy turning resolved attributes into an object."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from fixtureforge.attributes import ResolvedAttributes, ValueKind, kind_of
from fixtureforge.descriptors import ClassDescriptor
from fixtureforge.errors import MissingRequiredAttribute, NoSetterAvailable, UnconsumedAttribute

log = logging.getLogger(__name__)

#: Any callable with this shape can replace :class:`Instantiator` on a factory.
InstantiatorFn = Callable[[ClassDescriptor, ResolvedAttributes], Any]


@dataclass(frozen=True, slots=True)
class Instantiator:
    """
    Build an object from a :class:`ClassDescriptor` and resolved attributes.

    Algorithm
    ---------
    1. Attributes named like constructor parameters are passed to the
       constructor, in declaration order. Missing optional parameters keep
       their defaults; a missing required one raises
       :class:`MissingRequiredAttribute`.
    2. Every other attribute is written after construction: directly into the
       field when forced, else through the setter (or an adder for sequence
       values).
    3. An attribute nothing consumed raises :class:`UnconsumedAttribute`
       unless it is ``optional:`` or extra attributes are allowed.

    Parameters
    ----------
    use_constructor : bool
        ``False`` allocates the object without ``__init__`` and sends every
        attribute through step 2.
    allow_extra : bool
        Silently skip attributes the class does not know.
    always_force : bool
        Write every post-construction attribute directly into its field.
    """

    use_constructor: bool = True
    allow_extra: bool = False
    always_force: bool = False

    # ------------------------------- Builders --------------------------------

    def without_constructor(self) -> Instantiator:
        return dataclasses.replace(self, use_constructor=False)

    def allow_extra_attributes(self) -> Instantiator:
        return dataclasses.replace(self, allow_extra=True)

    def always_force_properties(self) -> Instantiator:
        return dataclasses.replace(self, always_force=True)

    # ------------------------------- Algorithm -------------------------------

    def __call__(self, descriptor: ClassDescriptor, attributes: ResolvedAttributes) -> Any:
        remaining = dict(attributes)
        if self.use_constructor:
            instance = self._construct(descriptor, attributes, remaining)
        else:
            instance = descriptor.new_instance()

        for name, value in remaining.items():
            self._assign(descriptor, instance, attributes, name, value)

        log.debug(
            "Instantiated %s (constructor=%s, assigned=%s)",
            descriptor.model.__qualname__,
            self.use_constructor,
            sorted(remaining),
            extra={"model": descriptor.model.__qualname__},
        )
        return instance

    def _construct(
        self,
        descriptor: ClassDescriptor,
        attributes: ResolvedAttributes,
        remaining: dict[str, Any],
    ) -> Any:
        """Call the constructor, consuming matched keys from ``remaining``.

        A forced key never feeds an optional parameter: it is written to the
        field after construction instead.
        """
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for param in descriptor.constructor_parameters():
            forced_later = attributes.is_forced(param.name) and not param.required
            if param.name in remaining and not forced_later:
                value = remaining.pop(param.name)
            elif param.required:
                raise MissingRequiredAttribute(descriptor.model, param.name)
            elif param.positional_only:
                value = param.default
            else:
                continue
            if param.positional_only:
                args.append(value)
            else:
                kwargs[param.name] = value
        return descriptor.construct(args, kwargs)

    def _assign(
        self,
        descriptor: ClassDescriptor,
        instance: Any,
        attributes: ResolvedAttributes,
        name: str,
        value: Any,
    ) -> None:
        optional = attributes.is_optional(name)

        if self.always_force or attributes.is_forced(name):
            field = descriptor.try_field(instance, name)
            if field is not None:
                field.set(value)
                return
            if optional or self.allow_extra:
                return
            raise UnconsumedAttribute(descriptor.model, name)

        if kind_of(value) is ValueKind.SEQUENCE:
            adder = descriptor.try_adder(instance, name)
            if adder is not None:
                for item in value:
                    adder(item)
                return

        setter = descriptor.try_setter(instance, name)
        if setter is not None:
            setter(value)
            return
        if optional:
            return
        if descriptor.try_field(instance, name) is not None:
            raise NoSetterAvailable(descriptor.model, name)
        if self.allow_extra:
            return
        raise UnconsumedAttribute(descriptor.model, name)


__all__ = ["Instantiator", "InstantiatorFn"]
