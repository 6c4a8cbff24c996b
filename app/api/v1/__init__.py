"""API v1 package."""

from app.api.v1.api import api_router

__all__ = ["api_router"]
