"""Fill-in-the-blank quiz endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.api import deps
from app.api.v1.endpoints.progress import saved_word_read
from app.config import settings
from app.schemas import (
    ArticleRequest,
    ArticleResponse,
    ArticleWordRead,
    CacheStatsResponse,
    EvictionResponse,
    QuizWordsResponse,
)
from app.services.article_cache import ArticleCacheCoordinator
from app.services.progress import ProgressService
from app.services.vocabulary import VocabularyService

router = APIRouter(prefix="/quiz", tags=["quiz"])


@router.post("/generate", response_model=ArticleResponse)
def generate_article(
    payload: ArticleRequest,
    vocabulary: VocabularyService = Depends(deps.get_vocabulary_service),
    article_cache: ArticleCacheCoordinator = Depends(deps.get_article_cache),
) -> ArticleResponse:
    """Return a cached or newly generated article for the requested words."""

    words = vocabulary.get_article_words(payload.word_ids)
    article = article_cache.resolve_article(words)
    return ArticleResponse(
        article=article.text,
        blank_count=article.blank_count,
        words=[ArticleWordRead(id=w.id, word=w.word, definition=w.definition) for w in article.words],
        source=article.source,
        quality_warning=str(article.quality_warning) if article.quality_warning else None,
    )


@router.get("/words/{user_id}", response_model=QuizWordsResponse)
def quiz_words(
    user_id: str,
    limit: int = Query(default=settings.QUIZ_DEFAULT_WORD_COUNT, ge=1, le=20),
    service: ProgressService = Depends(deps.get_progress_service),
) -> QuizWordsResponse:
    """Pick the learner's weakest saved words for the next quiz."""

    candidates = service.select_words_for_quiz(user_id=user_id, max_words=limit)
    words = [saved_word_read(candidate.progress) for candidate in candidates]
    return QuizWordsResponse(
        count=len(words),
        words=words,
        message=None if words else "No words available. Save some words in Learning mode first!",
    )


@router.get("/cache-stats", response_model=CacheStatsResponse)
def cache_stats(
    article_cache: ArticleCacheCoordinator = Depends(deps.get_article_cache),
) -> CacheStatsResponse:
    """Volatile and durable article cache counters."""

    return CacheStatsResponse(**article_cache.stats())


@router.post("/cache/evict", response_model=EvictionResponse)
def evict_cache(
    article_cache: ArticleCacheCoordinator = Depends(deps.get_article_cache),
) -> EvictionResponse:
    """Run the article eviction policy immediately."""

    return EvictionResponse(**article_cache.evict().as_dict())
