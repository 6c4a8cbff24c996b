"""Durable cache of generated quiz articles."""
import uuid

from sqlalchemy import Column, DateTime, Integer, String, Text

from app.db.base import Base


def _new_id() -> str:
    return f"article-{uuid.uuid4().hex}"


class CachedArticle(Base):
    """Generated article text keyed by the canonical word-set key."""

    __tablename__ = "cached_articles"

    id = Column(String(64), primary_key=True, default=_new_id)
    cache_key = Column(Text, nullable=False, unique=True)
    article_text = Column(Text, nullable=False)
    word_count = Column(Integer, nullable=False)
    generator = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    last_accessed_at = Column(DateTime(timezone=True), nullable=False, index=True)
    access_count = Column(Integer, nullable=False, default=0)
