"""Vocabulary browsing endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query

from app.api import deps
from app.schemas import WordListResponse, WordRead
from app.services.vocabulary import VocabularyService

router = APIRouter(prefix="/words", tags=["words"])


@router.get("/", response_model=WordListResponse)
def list_words(
    difficulty: int | None = Query(default=None, ge=1, le=4),
    category: str | None = Query(default=None, max_length=100),
    search: str | None = Query(default=None, max_length=100),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    service: VocabularyService = Depends(deps.get_vocabulary_service),
) -> WordListResponse:
    """Return words with optional filtering and pagination."""

    words = service.list_words(
        difficulty=difficulty, category=category, search=search, limit=limit, offset=offset
    )
    total = service.count_words(difficulty=difficulty, category=category, search=search)
    return WordListResponse(
        total=total,
        count=len(words),
        words=[WordRead.model_validate(word) for word in words],
    )


@router.get("/random/{count}", response_model=WordListResponse)
def random_words(
    count: int = Path(..., ge=1, le=50),
    difficulty: int | None = Query(default=None, ge=1, le=4),
    category: str | None = Query(default=None, max_length=100),
    service: VocabularyService = Depends(deps.get_vocabulary_service),
) -> WordListResponse:
    """Return a random selection for a learning session."""

    words = service.random_words(count=count, difficulty=difficulty, category=category)
    return WordListResponse(
        total=len(words),
        count=len(words),
        words=[WordRead.model_validate(word) for word in words],
    )


@router.get("/{word_id}", response_model=WordRead)
def get_word(
    word_id: str, service: VocabularyService = Depends(deps.get_vocabulary_service)
) -> WordRead:
    """Retrieve a word by identifier."""

    return WordRead.model_validate(service.get_word(word_id))
