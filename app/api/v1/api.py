"""API router for version 1."""
from fastapi import APIRouter

from app.api.v1.endpoints import progress, quiz, words


api_router = APIRouter()
api_router.include_router(words.router)
api_router.include_router(progress.router)
api_router.include_router(quiz.router)
