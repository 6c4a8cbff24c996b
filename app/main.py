"""FastAPI application factory."""
from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from app.api.v1 import api_router
from app.config import settings
from app.db.session import SessionLocal
from app.services.article_cache import ArticleCacheCoordinator, build_article_cache
from app.services.article_generator import build_default_resolver
from app.utils.exceptions import (
    InvalidInputError,
    NotFoundError,
    handle_invalid_input_error,
    handle_not_found_error,
)


tags_metadata: List[dict[str, str]] = [
    {"name": "words", "description": "Browse the advanced vocabulary catalogue."},
    {"name": "progress", "description": "Learners, saved words, quiz answers and daily counters."},
    {"name": "quiz", "description": "Fill-in-the-blank articles and their cache."},
]


def create_app(article_cache: ArticleCacheCoordinator | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    ``article_cache`` is built from settings at startup unless one is passed
    in, and is closed at shutdown either way.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        cache = article_cache or build_article_cache(SessionLocal, build_default_resolver())
        app.state.article_cache = cache
        logger.info("Article cache ready", generators=cache.resolver.generator_names)
        try:
            yield
        finally:
            cache.close()
            logger.info("Article cache closed")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Vocabulary learning backend with cached fill-in-the-blank articles.",
        version="0.1.0",
        openapi_tags=tags_metadata,
        docs_url=f"{settings.API_V1_STR}/docs",
        redoc_url=f"{settings.API_V1_STR}/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": exc.errors(), "message": "Validation failed"},
        )

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
        error = handle_invalid_input_error(exc)
        return JSONResponse(status_code=error.status_code, content={"detail": error.detail})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        error = handle_not_found_error(exc)
        return JSONResponse(status_code=error.status_code, content={"detail": error.detail})

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    app.include_router(api_router, prefix=settings.API_V1_STR)
    return app


app = create_app()
