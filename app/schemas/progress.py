"""Pydantic models for learner progress endpoints."""
from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from app.core.mastery import Bucket
from app.schemas.vocabulary import WordRead


class SaveWordRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    word_id: str = Field(..., min_length=1)


class SaveWordResponse(BaseModel):
    message: str
    progress_id: str
    bucket: Bucket
    created: bool


class QuizResultRequest(BaseModel):
    """Payload for submitting one fill-in-the-blank answer."""

    user_id: str = Field(..., min_length=1)
    word_id: str = Field(..., min_length=1)
    is_correct: bool


class QuizResultResponse(BaseModel):
    result_id: str
    word_id: str
    previous_bucket: Bucket
    new_bucket: Bucket
    review_count: int
    correct_count: int
    incorrect_count: int


class QuizCompletedRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


class SavedWordRead(WordRead):
    """A saved word together with the learner's progress on it."""

    bucket: Bucket
    saved_at: datetime | None = None
    last_reviewed_at: datetime | None = None
    review_count: int = 0
    correct_count: int = 0
    incorrect_count: int = 0


class SavedWordListResponse(BaseModel):
    count: int
    words: list[SavedWordRead]


class DailyProgressRead(BaseModel):
    date: date
    words_saved: int
    quizzes_completed: int
    words_reviewed: int


class DailyProgressResponse(BaseModel):
    progress: list[DailyProgressRead]


class QuizAnswerStats(BaseModel):
    total_answers: int
    correct_answers: int
    incorrect_answers: int
    accuracy: float


class LearningStatsResponse(BaseModel):
    total_words: int
    words_by_bucket: dict[str, int]
    quiz_stats: QuizAnswerStats
