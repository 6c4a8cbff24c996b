"""Database models package."""
from app.db.models.user import User
from app.db.models.vocabulary import Word
from app.db.models.progress import DailyProgress, QuizResult, WordProgress
from app.db.models.article_cache import CachedArticle

__all__ = [
    "User",
    "Word",
    "WordProgress",
    "QuizResult",
    "DailyProgress",
    "CachedArticle",
]
