from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.core.clock import utcnow
from app.core.db import Base


class MemberAudit(Base):
    """Field-level edit history of a member profile.

    Rows keep the member's name at the time of the edit so the trail
    stays readable after the member is removed.
    """

    __tablename__ = "member_audit"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    member_id = Column(Integer, nullable=False, index=True)
    member_name = Column(String(150), nullable=False)
    field = Column(String(100), nullable=False)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    changed_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    changed_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    actor = relationship("User")

    @property
    def changed_by(self) -> str | None:
        if not self.actor:
            return None
        return self.actor.full_name or self.actor.email
