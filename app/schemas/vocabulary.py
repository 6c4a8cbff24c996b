"""Pydantic schemas for vocabulary endpoints."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class WordRead(BaseModel):
    """Representation of a vocabulary word."""

    id: str
    word: str
    pronunciation: Optional[str] = None
    definition: str
    synonym: Optional[str] = None
    context_difference: Optional[str] = None
    usages: List[str] = Field(default_factory=list)
    difficulty_level: Optional[int] = None
    category: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class WordListResponse(BaseModel):
    """Paginated vocabulary response payload."""

    total: int
    count: int
    words: list[WordRead]
