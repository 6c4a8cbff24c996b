"""Business logic for saved words, quiz answers and daily counters."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable

from loguru import logger
from sqlalchemy import and_, case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.mastery import INITIAL_BUCKET, Bucket, MasteryTransition
from app.db.models.progress import DailyProgress, QuizResult, WordProgress
from app.db.models.user import User
from app.db.models.vocabulary import Word
from app.utils.exceptions import InvalidInputError, NotFoundError

_DAILY_COUNTERS = frozenset({"words_saved", "words_reviewed", "quizzes_completed"})

_BUCKET_PRIORITY = case(
    {bucket.value: bucket.quiz_priority for bucket in Bucket},
    value=WordProgress.bucket,
    else_=len(Bucket),
)


@dataclass(slots=True)
class QuizCandidate:
    """A saved word proposed for the next quiz."""

    word: Word
    progress: WordProgress


@dataclass(slots=True)
class RecordedAnswer:
    result_id: str
    progress: WordProgress
    transition: MasteryTransition


class ProgressService:
    """High level helper for learner progress workflows."""

    def __init__(self, db: Session, *, clock: Callable[[], datetime] | None = None) -> None:
        self.db = db
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------
    def _require_user(self, user_id: str) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found", details={"user_id": user_id})
        return user

    def _require_word(self, word_id: str) -> Word:
        word = self.db.get(Word, word_id)
        if word is None:
            raise NotFoundError("Word not found", details={"word_id": word_id})
        return word

    def _progress_query(self, user_id: str, word_id: str):
        return select(WordProgress).where(
            and_(WordProgress.user_id == user_id, WordProgress.word_id == word_id)
        )

    def get_progress(self, *, user_id: str, word_id: str) -> WordProgress | None:
        return self.db.scalars(self._progress_query(user_id, word_id)).first()

    # ------------------------------------------------------------------
    # Daily counters
    # ------------------------------------------------------------------
    def _bump_daily(self, user_id: str, day: date, counter: str, amount: int = 1) -> None:
        if counter not in _DAILY_COUNTERS:
            raise ValueError(f"Unknown daily counter {counter!r}")
        exists = self.db.scalar(
            select(DailyProgress.id).where(
                DailyProgress.user_id == user_id, DailyProgress.date == day
            )
        )
        if exists is None:
            try:
                with self.db.begin_nested():
                    self.db.add(DailyProgress(user_id=user_id, date=day))
            except IntegrityError:
                logger.debug("Daily progress row created concurrently", user_id=user_id, day=day)
        column = getattr(DailyProgress, counter)
        self.db.execute(
            update(DailyProgress)
            .where(DailyProgress.user_id == user_id, DailyProgress.date == day)
            .values({counter: func.coalesce(column, 0) + amount})
        )

    # ------------------------------------------------------------------
    # Saved words
    # ------------------------------------------------------------------
    def save_word(self, *, user_id: str, word_id: str) -> tuple[WordProgress, bool]:
        """Add a word to the learner's collection at the lowest bucket."""

        self._require_user(user_id)
        self._require_word(word_id)

        existing = self.get_progress(user_id=user_id, word_id=word_id)
        if existing is not None:
            return existing, False

        progress = WordProgress(
            user_id=user_id,
            word_id=word_id,
            bucket=INITIAL_BUCKET.value,
            created_at=self.clock(),
        )
        self.db.add(progress)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            existing = self.get_progress(user_id=user_id, word_id=word_id)
            if existing is None:
                raise
            return existing, False

        self._bump_daily(user_id, self.clock().date(), "words_saved")
        self.db.commit()
        logger.info("Word saved", user_id=user_id, word_id=word_id)
        return progress, True

    def list_saved_words(self, *, user_id: str) -> list[WordProgress]:
        self._require_user(user_id)
        stmt = (
            select(WordProgress)
            .options(joinedload(WordProgress.word))
            .where(WordProgress.user_id == user_id)
            .order_by(WordProgress.created_at.desc(), WordProgress.id.desc())
        )
        return list(self.db.scalars(stmt))

    # ------------------------------------------------------------------
    # Quiz flow
    # ------------------------------------------------------------------
    def select_words_for_quiz(self, *, user_id: str, max_words: int) -> list[QuizCandidate]:
        """Return up to ``max_words`` saved words, weakest and stalest first."""

        if max_words < 1:
            raise InvalidInputError("max_words must be at least 1", details={"max_words": max_words})
        self._require_user(user_id)

        stmt = (
            select(WordProgress)
            .options(joinedload(WordProgress.word))
            .where(WordProgress.user_id == user_id)
            .order_by(
                _BUCKET_PRIORITY.asc(),
                WordProgress.last_reviewed_at.asc().nulls_first(),
                WordProgress.created_at.asc(),
                WordProgress.word_id.asc(),
            )
            .limit(max_words)
        )
        return [QuizCandidate(word=row.word, progress=row) for row in self.db.scalars(stmt)]

    def record_quiz_result(self, *, user_id: str, word_id: str, is_correct: bool) -> RecordedAnswer:
        """Apply one answer to the word's bucket and counters.

        The counters are incremented in SQL first. That UPDATE takes the
        write lock (a row lock on PostgreSQL, the database lock on SQLite), so
        the bucket read afterwards already reflects every earlier answer and
        concurrent answers for the same word are applied one after another.
        """

        self._require_user(user_id)
        self._require_word(word_id)

        now = self.clock()
        counted = self.db.execute(
            update(WordProgress)
            .where(WordProgress.user_id == user_id, WordProgress.word_id == word_id)
            .values(WordProgress.answer_counters(bool(is_correct), now))
            .execution_options(synchronize_session=False)
        )
        if not counted.rowcount:
            self.db.rollback()
            raise NotFoundError(
                "Word is not in the learner's collection",
                details={"user_id": user_id, "word_id": word_id},
            )

        progress = self.db.scalars(
            self._progress_query(user_id, word_id).execution_options(populate_existing=True)
        ).one()
        transition = progress.apply_result(bool(is_correct))
        result = QuizResult(user_id=user_id, word_id=word_id, is_correct=bool(is_correct), answered_at=now)
        self.db.add(result)
        self._bump_daily(user_id, now.date(), "words_reviewed")
        self.db.commit()

        logger.info(
            "Quiz result recorded",
            user_id=user_id,
            word_id=word_id,
            correct=is_correct,
            bucket_before=transition.before.value,
            bucket_after=transition.after.value,
        )
        return RecordedAnswer(result_id=result.id, progress=progress, transition=transition)

    def complete_quiz(self, *, user_id: str) -> DailyProgress:
        """Count one finished quiz towards today's aggregate."""

        self._require_user(user_id)
        today = self.clock().date()
        self._bump_daily(user_id, today, "quizzes_completed")
        self.db.commit()
        return self.db.scalars(
            select(DailyProgress)
            .where(DailyProgress.user_id == user_id, DailyProgress.date == today)
            .execution_options(populate_existing=True)
        ).one()

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------
    def daily_progress(self, *, user_id: str, days: int) -> list[DailyProgress]:
        self._require_user(user_id)
        stmt = (
            select(DailyProgress)
            .where(DailyProgress.user_id == user_id)
            .order_by(DailyProgress.date.desc())
            .limit(days)
            .execution_options(populate_existing=True)
        )
        return list(self.db.scalars(stmt))

    def learning_stats(self, *, user_id: str) -> dict:
        self._require_user(user_id)

        total_words = int(
            self.db.scalar(
                select(func.count()).select_from(WordProgress).where(WordProgress.user_id == user_id)
            )
            or 0
        )
        bucket_rows = self.db.execute(
            select(WordProgress.bucket, func.count())
            .where(WordProgress.user_id == user_id)
            .group_by(WordProgress.bucket)
        ).all()
        words_by_bucket = {bucket.value: 0 for bucket in Bucket}
        words_by_bucket.update({bucket: int(count) for bucket, count in bucket_rows})

        correct_flag = case((QuizResult.is_correct.is_(True), 1), else_=0)
        total, correct = self.db.execute(
            select(func.count(QuizResult.id), func.coalesce(func.sum(correct_flag), 0)).where(
                QuizResult.user_id == user_id
            )
        ).one()
        total = int(total or 0)
        correct = int(correct or 0)
        return {
            "total_words": total_words,
            "words_by_bucket": words_by_bucket,
            "quiz_stats": {
                "total_answers": total,
                "correct_answers": correct,
                "incorrect_answers": total - correct,
                "accuracy": round(correct / total * 100, 1) if total else 0.0,
            },
        }


__all__ = ["ProgressService", "QuizCandidate", "RecordedAnswer"]
