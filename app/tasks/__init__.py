"""Celery tasks package."""

from app.tasks import cache_maintenance

__all__ = ["cache_maintenance"]
