"""User database model."""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from app.db.base import Base


def _new_user_id() -> str:
    return f"user-{uuid.uuid4().hex}"


class User(Base):
    """A learner, identified by the device that registered it."""

    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=_new_user_id)
    device_id = Column(String(255), unique=True, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_active = Column(DateTime(timezone=True), server_default=func.now())

    def mark_active(self, moment: datetime | None = None) -> None:
        """Record that the learner used the app."""

        self.last_active = moment or datetime.now(timezone.utc)
