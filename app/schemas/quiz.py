"""Pydantic models for the article quiz endpoints."""
from __future__ import annotations

from pydantic import BaseModel, Field

from app.schemas.progress import SavedWordRead


class ArticleRequest(BaseModel):
    word_ids: list[str] = Field(..., min_length=1, max_length=20)


class ArticleWordRead(BaseModel):
    id: str
    word: str
    definition: str


class ArticleResponse(BaseModel):
    article: str
    blank_count: int
    words: list[ArticleWordRead]
    source: str = Field(description="volatile, durable or generated")
    quality_warning: str | None = None


class QuizWordsResponse(BaseModel):
    count: int
    words: list[SavedWordRead]
    message: str | None = None


class VolatileCacheStats(BaseModel):
    keys: int
    hits: int
    misses: int
    hit_rate: float


class DurableCacheStats(BaseModel):
    count: int
    total_accesses: int
    available: bool = True


class CacheStatsResponse(BaseModel):
    volatile: VolatileCacheStats
    durable: DurableCacheStats


class EvictionResponse(BaseModel):
    expired: int
    trimmed: int
