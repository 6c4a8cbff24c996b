"""Pydantic schemas for learner registration."""
from __future__ import annotations

from pydantic import BaseModel, Field


class DeviceUserRequest(BaseModel):
    device_id: str = Field(..., min_length=1, max_length=255)


class DeviceUserResponse(BaseModel):
    user_id: str
    device_id: str
    created: bool
