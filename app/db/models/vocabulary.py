"""Vocabulary database models."""
from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from app.db.base import Base
from app.db.types import StringList


class Word(Base):
    """An advanced English word offered for learning."""

    __tablename__ = "words"

    id = Column(String(64), primary_key=True)
    word = Column(String(255), nullable=False, unique=True)
    pronunciation = Column(String(255))
    definition = Column(Text, nullable=False)
    synonym = Column(String(255))
    context_difference = Column(Text)
    usages = Column(StringList, nullable=True)

    # 1=beginner, 2=intermediate, 3=advanced, 4=expert
    difficulty_level = Column(Integer, default=1, index=True)
    category = Column(String(100), index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Word id={self.id!r} word={self.word!r}>"
