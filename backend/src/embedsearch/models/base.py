"""Abstract base for registry tables."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import declarative_mixin

from ..core.database import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


@declarative_mixin
class RecordColumns:
    """String UUID key plus creation and update times."""

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)


class BaseModel(RecordColumns, Base):
    __abstract__ = True

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"
