"""Service layer package."""

from app.services.article_cache import ArticleCacheCoordinator
from app.services.article_generator import ArticleResolver
from app.services.llm_service import LLMService
from app.services.progress import ProgressService
from app.services.users import UserService
from app.services.vocabulary import VocabularyService

__all__ = [
    "ArticleCacheCoordinator",
    "ArticleResolver",
    "LLMService",
    "ProgressService",
    "UserService",
    "VocabularyService",
]
