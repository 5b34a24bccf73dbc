"""Random-value source backed by :mod:`faker`."""

from __future__ import annotations

import random
from typing import Any

from faker import Faker


class ValueSource:
    """Produce plausible random values on demand.

    Values are not reproducible across runs unless :meth:`seed` is called
    (or a seed is configured). The same seed also drives repository
    sampling through :attr:`random`.

    :param locale: Faker locale, e.g. ``"en_US"``.
    :param seed: Optional seed applied immediately.
    """

    def __init__(self, locale: str | None = None, seed: int | None = None) -> None:
        self.faker = Faker(locale)
        if seed is not None:
            self.seed(seed)

    @property
    def random(self) -> random.Random:
        return self.faker.random

    def seed(self, value: int) -> None:
        self.faker.seed_instance(value)

    def next(self, kind: str, **kwargs: Any) -> Any:
        """Return one value of the semantic ``kind`` (any Faker provider name).

        >>> ValueSource(seed=1).next("random_int", min=1, max=1)
        1
        """
        provider = getattr(self.faker, kind, None)
        if provider is None or not callable(provider):
            raise AttributeError(f"Unknown value kind: {kind!r}")
        return provider(**kwargs)


__all__ = ["ValueSource"]
