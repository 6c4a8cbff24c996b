"""Celery tasks keeping the durable article cache bounded."""
from __future__ import annotations

from loguru import logger

from app.celery_app import celery_app
from app.db.session import SessionLocal
from app.services.article_cache import ArticleEvictionPolicy, DurableArticleStore


@celery_app.task(name="app.tasks.cache_maintenance.evict_article_cache")
def evict_article_cache(
    max_age_seconds: int | None = None, max_entries: int | None = None
) -> dict[str, int]:
    """Expire stale cached articles and trim the store to its capacity."""

    store = DurableArticleStore(SessionLocal)
    policy = ArticleEvictionPolicy(store, max_age_seconds=max_age_seconds, max_entries=max_entries)
    try:
        report = policy.run()
    except Exception as exc:
        logger.error("Article cache eviction failed", error=str(exc))
        raise

    remaining = store.count()
    logger.info("Article cache eviction finished", remaining=remaining, **report.as_dict())
    return {**report.as_dict(), "remaining": remaining}
