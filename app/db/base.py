"""Declarative base shared by every model in ``app.db.models``."""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
