"""Shared API dependencies."""
from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.services.article_cache import ArticleCacheCoordinator
from app.services.progress import ProgressService
from app.services.users import UserService
from app.services.vocabulary import VocabularyService


def get_article_cache(request: Request) -> ArticleCacheCoordinator:
    """Return the process-wide article cache built at startup."""

    return request.app.state.article_cache


def get_vocabulary_service(db: Session = Depends(get_db)) -> VocabularyService:
    return VocabularyService(db)


def get_progress_service(db: Session = Depends(get_db)) -> ProgressService:
    return ProgressService(db)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)
