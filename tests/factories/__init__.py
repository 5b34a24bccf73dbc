"""Factories for the test models, declared the way projects declare theirs."""

from .blog import CategoryFactory, CommentFactory, PostFactory, TagFactory
from .plain import AccountFactory, ArticleFactory

__all__ = [
    "AccountFactory",
    "ArticleFactory",
    "CategoryFactory",
    "CommentFactory",
    "PostFactory",
    "TagFactory",
]
