"""Learner registration by device identifier."""
from __future__ import annotations

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.models.user import User
from app.utils.exceptions import InvalidInputError


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get_or_create_by_device(self, device_id: str) -> tuple[User, bool]:
        """Return the learner for ``device_id``, creating one on first contact."""

        device_id = (device_id or "").strip()
        if not device_id:
            raise InvalidInputError("deviceId is required")

        user = self.db.scalars(select(User).where(User.device_id == device_id)).first()
        if user is not None:
            user.mark_active()
            self.db.commit()
            return user, False

        user = User(device_id=device_id)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Another request registered the same device first.
            self.db.rollback()
            user = self.db.scalars(select(User).where(User.device_id == device_id)).one()
            return user, False
        logger.info("Registered learner", user_id=user.id)
        return user, True
