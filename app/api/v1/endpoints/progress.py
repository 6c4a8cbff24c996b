"""Endpoints for learners, saved words and quiz answers."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.api import deps
from app.config import settings
from app.db.models.progress import WordProgress
from app.schemas import (
    DailyProgressRead,
    DailyProgressResponse,
    DeviceUserRequest,
    DeviceUserResponse,
    LearningStatsResponse,
    QuizCompletedRequest,
    QuizResultRequest,
    QuizResultResponse,
    SavedWordListResponse,
    SavedWordRead,
    SaveWordRequest,
    SaveWordResponse,
)
from app.services.progress import ProgressService
from app.services.users import UserService

router = APIRouter(prefix="/progress", tags=["progress"])


def saved_word_read(progress: WordProgress) -> SavedWordRead:
    word = progress.word
    return SavedWordRead(
        id=word.id,
        word=word.word,
        pronunciation=word.pronunciation,
        definition=word.definition,
        synonym=word.synonym,
        context_difference=word.context_difference,
        usages=word.usages or [],
        difficulty_level=word.difficulty_level,
        category=word.category,
        bucket=progress.bucket,
        saved_at=progress.created_at,
        last_reviewed_at=progress.last_reviewed_at,
        review_count=progress.review_count or 0,
        correct_count=progress.correct_count or 0,
        incorrect_count=progress.incorrect_count or 0,
    )


@router.post("/user", response_model=DeviceUserResponse)
def get_or_create_user(
    payload: DeviceUserRequest, service: UserService = Depends(deps.get_user_service)
) -> DeviceUserResponse:
    """Create or return the learner registered for a device."""

    user, created = service.get_or_create_by_device(payload.device_id)
    return DeviceUserResponse(user_id=user.id, device_id=user.device_id, created=created)


@router.post("/save-word", response_model=SaveWordResponse)
def save_word(
    payload: SaveWordRequest, service: ProgressService = Depends(deps.get_progress_service)
) -> SaveWordResponse:
    """Add a word to the learner's collection."""

    progress, created = service.save_word(user_id=payload.user_id, word_id=payload.word_id)
    return SaveWordResponse(
        message="Word saved successfully" if created else "Word already saved",
        progress_id=progress.id,
        bucket=progress.bucket,
        created=created,
    )


@router.get("/words/{user_id}", response_model=SavedWordListResponse)
def list_saved_words(
    user_id: str, service: ProgressService = Depends(deps.get_progress_service)
) -> SavedWordListResponse:
    """Return every saved word with its bucket, newest first."""

    rows = service.list_saved_words(user_id=user_id)
    return SavedWordListResponse(count=len(rows), words=[saved_word_read(row) for row in rows])


@router.post("/quiz-result", response_model=QuizResultResponse)
def record_quiz_result(
    payload: QuizResultRequest, service: ProgressService = Depends(deps.get_progress_service)
) -> QuizResultResponse:
    """Record an answer and move the word's mastery bucket."""

    recorded = service.record_quiz_result(
        user_id=payload.user_id, word_id=payload.word_id, is_correct=payload.is_correct
    )
    progress = recorded.progress
    return QuizResultResponse(
        result_id=recorded.result_id,
        word_id=payload.word_id,
        previous_bucket=recorded.transition.before,
        new_bucket=recorded.transition.after,
        review_count=progress.review_count,
        correct_count=progress.correct_count,
        incorrect_count=progress.incorrect_count,
    )


@router.post("/quiz-completed", response_model=DailyProgressRead)
def quiz_completed(
    payload: QuizCompletedRequest, service: ProgressService = Depends(deps.get_progress_service)
) -> DailyProgressRead:
    """Count a finished quiz for today."""

    row = service.complete_quiz(user_id=payload.user_id)
    return DailyProgressRead.model_validate(row, from_attributes=True)


@router.get("/daily/{user_id}", response_model=DailyProgressResponse)
def daily_progress(
    user_id: str,
    days: int = Query(default=settings.DAILY_PROGRESS_DEFAULT_DAYS, ge=1, le=366),
    service: ProgressService = Depends(deps.get_progress_service),
) -> DailyProgressResponse:
    """Return the most recent daily aggregates."""

    rows = service.daily_progress(user_id=user_id, days=days)
    return DailyProgressResponse(
        progress=[DailyProgressRead.model_validate(row, from_attributes=True) for row in rows]
    )


@router.get("/stats/{user_id}", response_model=LearningStatsResponse)
def learning_stats(
    user_id: str, service: ProgressService = Depends(deps.get_progress_service)
) -> LearningStatsResponse:
    """Return overall learning statistics."""

    return LearningStatsResponse(**service.learning_stats(user_id=user_id))
