from __future__ import annotations

from sqlalchemy import Column, DateTime, Enum, Integer, String

from app.core.clock import utcnow
from app.core.db import Base

ACTIVITY_TYPES = ("entry", "exit", "payment", "member_added", "member_removed")
ActivityType = Enum(*ACTIVITY_TYPES, name="activity_type")


class Activity(Base):
    """Append-only audit trail entry."""

    __tablename__ = "activities"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    type = Column(ActivityType, nullable=False, index=True)
    member_id = Column(Integer, nullable=False, index=True)
    member_name = Column(String(150), nullable=False)
    timestamp = Column(DateTime, default=utcnow, nullable=False, index=True)
    description = Column(String(255), nullable=False)
