"""Factories for plain (unmapped) classes, persisted in memory."""

from __future__ import annotations

from fixtureforge import Factory
from tests.models import Account, Article


class ArticleFactory(Factory[Article]):
    class Meta:
        model = Article

    def defaults(self):
        return {"title": self.faker.sentence(), "author": self.faker.name()}


class AccountFactory(Factory[Account]):
    class Meta:
        model = Account

    def defaults(self):
        return {"owner": self.faker.user_name()}
