"""Service helpers for vocabulary endpoints."""
from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.db.models.vocabulary import Word
from app.services.article_generator import ArticleWord
from app.utils.exceptions import InvalidInputError, NotFoundError


class VocabularyNotFoundError(NotFoundError):
    """Raised when a vocabulary item cannot be located."""


class VocabularyService:
    """Provide querying utilities for the word catalogue."""

    def __init__(self, db: Session):
        self.db = db

    def _filtered(
        self,
        stmt,
        *,
        difficulty: int | None = None,
        category: str | None = None,
        search: str | None = None,
    ):
        if difficulty is not None:
            stmt = stmt.where(Word.difficulty_level == difficulty)
        if category:
            stmt = stmt.where(Word.category == category)
        if search:
            term = f"%{search.strip()}%"
            stmt = stmt.where(or_(Word.word.ilike(term), Word.definition.ilike(term)))
        return stmt

    def list_words(
        self,
        *,
        difficulty: int | None = None,
        category: str | None = None,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Word]:
        """Return a page of words, hardest first then alphabetical."""

        stmt = self._filtered(
            select(Word), difficulty=difficulty, category=category, search=search
        )
        stmt = stmt.order_by(Word.difficulty_level.desc(), Word.word.asc()).offset(offset).limit(limit)
        return list(self.db.scalars(stmt))

    def count_words(
        self,
        *,
        difficulty: int | None = None,
        category: str | None = None,
        search: str | None = None,
    ) -> int:
        stmt = self._filtered(
            select(func.count()).select_from(Word),
            difficulty=difficulty,
            category=category,
            search=search,
        )
        return int(self.db.scalar(stmt) or 0)

    def random_words(
        self, *, count: int, difficulty: int | None = None, category: str | None = None
    ) -> list[Word]:
        stmt = self._filtered(select(Word), difficulty=difficulty, category=category)
        return list(self.db.scalars(stmt.order_by(func.random()).limit(count)))

    def get_word(self, word_id: str) -> Word:
        """Retrieve a single word by identifier."""

        word = self.db.get(Word, word_id)
        if not word:
            raise VocabularyNotFoundError("Word not found", details={"word_id": word_id})
        return word

    def get_article_words(self, word_ids: Iterable[str]) -> list[ArticleWord]:
        """Load the words an article is requested for, rejecting unknown ids."""

        requested = list(dict.fromkeys(word_ids))
        if not requested:
            raise InvalidInputError("word_ids must contain at least one identifier")
        rows = list(self.db.scalars(select(Word).where(Word.id.in_(requested))))
        found = {row.id for row in rows}
        missing = [word_id for word_id in requested if word_id not in found]
        if missing:
            raise InvalidInputError("Some word IDs are invalid", details={"missing": missing})
        return [ArticleWord(id=row.id, word=row.word, definition=row.definition) for row in rows]
