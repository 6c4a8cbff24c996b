"""Pydantic schemas package."""

from app.schemas.progress import (
    DailyProgressRead,
    DailyProgressResponse,
    LearningStatsResponse,
    QuizCompletedRequest,
    QuizResultRequest,
    QuizResultResponse,
    SavedWordListResponse,
    SavedWordRead,
    SaveWordRequest,
    SaveWordResponse,
)
from app.schemas.quiz import (
    ArticleRequest,
    ArticleResponse,
    ArticleWordRead,
    CacheStatsResponse,
    EvictionResponse,
    QuizWordsResponse,
)
from app.schemas.user import DeviceUserRequest, DeviceUserResponse
from app.schemas.vocabulary import WordListResponse, WordRead

__all__ = [
    "ArticleRequest",
    "ArticleResponse",
    "ArticleWordRead",
    "CacheStatsResponse",
    "DailyProgressRead",
    "DailyProgressResponse",
    "DeviceUserRequest",
    "DeviceUserResponse",
    "EvictionResponse",
    "LearningStatsResponse",
    "QuizCompletedRequest",
    "QuizResultRequest",
    "QuizResultResponse",
    "QuizWordsResponse",
    "SavedWordListResponse",
    "SavedWordRead",
    "SaveWordRequest",
    "SaveWordResponse",
    "WordListResponse",
    "WordRead",
]
