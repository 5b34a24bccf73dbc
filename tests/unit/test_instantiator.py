"""Unit tests for the default instantiation strategy."""

from __future__ import annotations

import pytest

from fixtureforge import (
    Instantiator,
    MissingRequiredAttribute,
    NoSetterAvailable,
    UnconsumedAttribute,
)
from fixtureforge.attributes import AttributeSet
from fixtureforge.descriptors import MappedDescriptor, describe
from tests.models import Account, Article, Point, Post


def build(model, attributes, instantiator=None):
    resolved = AttributeSet([attributes]).resolve()
    return (instantiator or Instantiator())(describe(model), resolved)


class TestConstructor:
    """Attributes matching constructor parameters go to the constructor."""

    def test_required_parameters(self):
        article = build(Article, {"title": "Hello", "author": "Ann"})
        assert (article.title, article.author) == ("Hello", "Ann")

    def test_missing_required_parameter(self):
        with pytest.raises(MissingRequiredAttribute) as exc:
            build(Article, {"title": "Hello"})
        assert exc.value.name == "author"
        assert "author" in str(exc.value)

    def test_optional_parameter_keeps_default(self):
        assert build(Point, {"x": 1}) == Point(1, 0)

    def test_mapped_class_accepts_every_mapped_attribute(self):
        assert isinstance(describe(Post), MappedDescriptor)
        post = build(Post, {"title": "T", "body": "B"})
        assert (post.title, post.body) == ("T", "B")


class TestAssignment:
    """Attributes left after construction go through setters and adders."""

    def test_set_method_is_preferred(self):
        account = build(Account, {"owner": "ann", "nickname": "A"})
        assert account.nickname == "A"
        assert account.calls == ["set_nickname"]

    def test_property_setter_runs(self):
        with pytest.raises(ValueError):
            build(Account, {"owner": "ann", "balance": -1})
        assert build(Account, {"owner": "ann", "balance": 5}).balance == 5

    def test_adder_for_sequences(self):
        account = build(Account, {"owner": "ann", "emails": ["a@x.io", "b@x.io"]})
        assert account.emails == ["a@x.io", "b@x.io"]

    def test_forced_property_writes_backing_field(self):
        account = build(Account, {"owner": "ann", "force:balance": -5})
        assert account.balance == -5

    def test_read_only_property(self):
        with pytest.raises(NoSetterAvailable):
            build(Account, {"owner": "ann", "created": "x"})
        assert build(Account, {"owner": "ann", "force:created": "x"}).created == "x"

    def test_frozen_dataclass_needs_force(self):
        skip = Instantiator().without_constructor()
        with pytest.raises(NoSetterAvailable):
            build(Point, {"x": 1}, skip)
        assert build(Point, {"force:x": 1, "force:y": 2}, skip) == Point(1, 2)

    def test_unknown_attribute(self):
        with pytest.raises(UnconsumedAttribute) as exc:
            build(Account, {"owner": "ann", "unknown": 1})
        assert exc.value.name == "unknown"

    def test_optional_unknown_attribute_is_skipped(self):
        account = build(Account, {"owner": "ann", "optional:unknown": 1})
        assert not hasattr(account, "unknown")

    def test_allow_extra_attributes(self):
        account = build(Account, {"owner": "ann", "unknown": 1}, Instantiator().allow_extra_attributes())
        assert not hasattr(account, "unknown")


class TestStrategies:
    def test_skip_constructor_and_always_force(self):
        """A class needing two constructor arguments is built from one attribute."""
        instantiator = Instantiator().without_constructor().always_force_properties()
        article = build(Article, {"title": "X"}, instantiator)
        assert isinstance(article, Article)
        assert article.title == "X"
        assert not hasattr(article, "author")

    def test_builders_do_not_mutate(self):
        base = Instantiator()
        base.without_constructor()
        base.allow_extra_attributes()
        base.always_force_properties()
        assert base == Instantiator()

    def test_skip_constructor_on_mapped_class(self):
        post = build(Post, {"title": "T"}, Instantiator().without_constructor())
        assert post.title == "T"
