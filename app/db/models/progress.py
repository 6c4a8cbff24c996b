"""Learner progress models: saved words, quiz history and daily counters."""
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.mastery import Bucket, MasteryTransition
from app.db.base import Base


def _new_id() -> str:
    return uuid.uuid4().hex


class WordProgress(Base):
    """Mastery bucket and answer counters for one saved word of one learner."""

    __tablename__ = "word_progress"
    __table_args__ = (UniqueConstraint("user_id", "word_id", name="uq_word_progress_user_word"),)

    id = Column(String(32), primary_key=True, default=_new_id)
    user_id = Column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    word_id = Column(
        String(64), ForeignKey("words.id", ondelete="CASCADE"), nullable=False, index=True
    )

    bucket = Column(String(20), nullable=False, default=Bucket.NEEDS_WORK.value, index=True)
    review_count = Column(Integer, nullable=False, default=0)
    correct_count = Column(Integer, nullable=False, default=0)
    incorrect_count = Column(Integer, nullable=False, default=0)
    last_reviewed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    word = relationship("Word")

    @classmethod
    def answer_counters(cls, is_correct: bool, reviewed_at: datetime) -> dict:
        """Column values for one answer, written as a single UPDATE.

        The increments are evaluated by the database so concurrent answers
        never overwrite each other's counts.
        """

        return {
            cls.review_count: func.coalesce(cls.review_count, 0) + 1,
            cls.correct_count: func.coalesce(cls.correct_count, 0) + int(is_correct),
            cls.incorrect_count: func.coalesce(cls.incorrect_count, 0) + int(not is_correct),
            cls.last_reviewed_at: reviewed_at,
        }

    def apply_result(self, is_correct: bool) -> MasteryTransition:
        """Move the bucket for one quiz answer."""

        transition = MasteryTransition.from_answer(Bucket(self.bucket), is_correct)
        self.bucket = transition.after.value
        return transition


class QuizResult(Base):
    """One answered blank."""

    __tablename__ = "quiz_results"

    id = Column(String(32), primary_key=True, default=_new_id)
    user_id = Column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    word_id = Column(
        String(64), ForeignKey("words.id", ondelete="CASCADE"), nullable=False, index=True
    )
    is_correct = Column(Boolean, nullable=False)
    quiz_type = Column(String(30), nullable=False, default="fill_blank")
    answered_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)


class DailyProgress(Base):
    """Per learner, per UTC day activity counters."""

    __tablename__ = "daily_progress"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_daily_progress_user_date"),)

    id = Column(String(32), primary_key=True, default=_new_id)
    user_id = Column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date = Column(Date, nullable=False)
    words_saved = Column(Integer, nullable=False, default=0)
    quizzes_completed = Column(Integer, nullable=False, default=0)
    words_reviewed = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
