"""Utility helpers package."""

from app.utils.cache import VolatileArticleCache, build_article_key

__all__ = ["VolatileArticleCache", "build_article_key"]
