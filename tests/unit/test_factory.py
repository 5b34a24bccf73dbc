"""Unit tests for factory building, immutability and hooks."""

from __future__ import annotations

from itertools import count

import pytest

from fixtureforge import Factory, FactoryCollection, FixtureManager, Instantiator, Proxy, unwrap
from tests.factories import PostFactory
from tests.helpers.utils import counter, not_raises
from tests.models import Article, Post


class TestCreate:
    """``create`` resolves, instantiates, persists and wraps one object."""

    def test_create_with_override(self, fixture_manager):
        post = PostFactory().create({"title": "Post A"})

        assert isinstance(post, Proxy)
        assert post.title == "Post A"
        assert post.is_persisted()
        PostFactory().repository().assert_exists({"title": "Post A"}).assert_count(1)

    def test_keyword_overrides(self):
        post = PostFactory().create(title="kw", body=None)
        assert (post.title, post.body) == ("kw", None)

    def test_default_title_is_random(self):
        post = PostFactory().create()
        assert post.title.startswith("t-") and len(post.title) == 6

    def test_each_create_reevaluates_defaults(self):
        numbers = counter("n-")
        factory = Factory(Post, lambda: {"title": next(numbers)})
        overrides = {"body": "same"}

        first = factory.create(overrides)
        second = factory.create(overrides)

        assert unwrap(first) is not unwrap(second)
        assert first.identity != second.identity
        assert (first.title, second.title) == ("n-1", "n-2")

    def test_create_many_with_production(self):
        posts = Factory(Post).create_many(3, lambda: {"title": PostFactory().faker.sentence()})

        assert len(posts) == 3
        assert len({p.identity for p in posts}) == 3
        PostFactory().repository().assert_count(3)

    def test_create_many_rejects_negative(self):
        with pytest.raises(ValueError):
            PostFactory().create_many(-1)

    def test_create_many_zero(self):
        assert PostFactory().create_many(0) == []

    def test_model_required(self):
        with pytest.raises(TypeError):
            Factory()


class TestImmutability:
    """Builder methods never change the factory they are called on."""

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda f: f.with_attributes(title="changed"),
            lambda f: f.published(),
            lambda f: f.before_instantiate(lambda a: {**a, "title": "hooked"}),
            lambda f: f.after_instantiate(lambda obj, a: setattr(obj, "title", "hooked")),
            lambda f: f.instantiate_with(Instantiator().allow_extra_attributes()),
            lambda f: f.without_persisting(),
        ],
    )
    def test_mutators_return_new_factory(self, mutate):
        factory = PostFactory().with_attributes(title="base")
        derived = mutate(factory)

        assert derived is not factory
        post = factory.create()
        assert post.title == "base"
        assert post.status == "draft"
        assert post.is_persisted()

    def test_states(self):
        assert PostFactory().published().create().status == "published"


class TestHooks:
    def test_before_instantiate_rewrites_attributes(self):
        factory = PostFactory().before_instantiate(lambda attrs: {**attrs, "title": attrs["title"] + "!"})
        assert factory.create(title="Hi").title == "Hi!"

    def test_hooks_run_in_order(self):
        calls = []
        factory = (
            PostFactory()
            .before_instantiate(lambda attrs: calls.append("before") or attrs)
            .after_instantiate(lambda obj, attrs: calls.append(("after_instantiate", obj.id)))
            .after_persist(lambda obj, attrs: calls.append(("after_persist", obj.id is not None)))
            .after_persist_proxy(lambda proxy, attrs: calls.append(("proxy", type(proxy).__name__)))
        )

        factory.create()

        assert calls == [
            "before",
            ("after_instantiate", None),
            ("after_persist", True),
            ("proxy", "Proxy"),
        ]

    def test_after_persist_changes_are_saved(self, fixture_store):
        factory = PostFactory().after_persist(lambda obj, attrs: setattr(obj, "status", "archived"))
        post = factory.create()

        fixture_store.session.expire_all()
        assert post.refresh().status == "archived"

    def test_after_persist_hooks_skipped_without_persisting(self):
        calls = []
        PostFactory().after_persist(lambda obj, attrs: calls.append(obj)).without_persisting().create()
        assert calls == []


class TestPersistence:
    def test_without_persisting(self):
        post = PostFactory().without_persisting().create(title="local")

        assert post.title == "local"
        assert not post.is_persisted()
        post.assert_not_persisted()
        PostFactory().repository().assert_empty()

    def test_meta_persist(self):
        class DraftFactory(Factory[Post]):
            class Meta:
                model = Post
                persist = False

            def defaults(self):
                return {"title": "draft"}

        assert not DraftFactory().create().is_persisted()
        assert DraftFactory().with_persisting().create().is_persisted()

    def test_meta_instantiator(self, memory_manager):
        class BareArticleFactory(Factory[Article]):
            class Meta:
                model = Article
                instantiator = Instantiator().without_constructor().always_force_properties()

        article = BareArticleFactory().using(memory_manager).create(title="X")
        assert article.title == "X"

    def test_using_binds_manager(self, memory_manager, memory_store):
        factory = Factory(Article, {"author": "ann"}).using(memory_manager)

        article = factory.create(title="bound")

        assert memory_store.count(Article, {}) == 1
        assert factory.repository().first().title == "bound"
        assert factory.manager is memory_manager

    def test_unbound_factory_needs_active_manager(self):
        FixtureManager.deactivate()
        with pytest.raises(RuntimeError, match="fixture_manager"):
            PostFactory().create()


class TestCollections:
    def test_many_fixed(self):
        collection = PostFactory().many(2)
        assert isinstance(collection, FactoryCollection)
        assert len(collection.create()) == 2
        PostFactory().repository().assert_count(2)

    def test_many_range(self):
        for _ in range(5):
            created = PostFactory().many(1, 3).create(status="bulk")
            assert 1 <= len(created) <= 3

    def test_many_invalid_range(self):
        with pytest.raises(ValueError):
            PostFactory().many(3, 1)

    def test_sequence(self):
        posts = PostFactory().sequence([{"title": "a"}, {"title": "b"}]).create(status="published")

        assert [p.title for p in posts] == ["a", "b"]
        assert {p.status for p in posts} == {"published"}

    def test_sequence_from_callable(self):
        numbers = count(1)
        collection = PostFactory().sequence(lambda: ({"title": f"p{next(numbers)}"} for _ in range(2)))
        assert [p.title for p in collection.create()] == ["p1", "p2"]
        assert [p.title for p in collection.create()] == ["p3", "p4"]


class TestStoreShortcuts:
    def test_find_or_create(self):
        created = PostFactory().find_or_create({"title": "once"})
        found = PostFactory().find_or_create({"title": "once"})

        assert found.identity == created.identity
        assert PostFactory().count() == 1

    def test_find_or_create_with_directive_keys(self):
        created = PostFactory().find_or_create({"force:title": "forced"})
        found = PostFactory().find_or_create({"force:title": "forced"})

        assert created.title == "forced"
        assert found.identity == created.identity
        assert PostFactory().count() == 1

    def test_random_or_create(self):
        created = PostFactory().random_or_create({"title": "r"})
        with not_raises(LookupError):
            again = PostFactory().random_or_create({"title": "r"})
        assert again.identity == created.identity
        assert PostFactory().count(title="r") == 1

    def test_shortcuts_delegate_to_repository(self):
        posts = PostFactory().sequence([{"title": "a"}, {"title": "b"}, {"title": "c"}]).create()

        assert PostFactory().first().identity == posts[0].identity
        assert PostFactory().last().identity == posts[-1].identity
        assert [p.title for p in PostFactory().all()] == ["a", "b", "c"]
        assert [p.title for p in PostFactory().find_by(title="b")] == ["b"]
        assert PostFactory().random().title in {"a", "b", "c"}
        assert len(PostFactory().random_set(2)) == 2
        assert 1 <= len(PostFactory().random_range(1, 2)) <= 2

        PostFactory().truncate()
        assert PostFactory().count() == 0
