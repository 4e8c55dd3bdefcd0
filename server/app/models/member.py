from __future__ import annotations

from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from app.core.clock import utcnow
from app.core.db import Base

MemberStatus = Enum("active", "inactive", name="member_status")
MemberShift = Enum("morning", "evening", "full_day", name="member_shift")


class Member(Base):
    __tablename__ = "members"
    # Ids are never reused once a row is deleted.
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    name = Column(String(150), nullable=False, index=True)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(25), nullable=False)
    address = Column(String(255), nullable=True)
    seat_number = Column(String(20), nullable=False)
    shift = Column(MemberShift, nullable=True)
    monthly_fee = Column(Numeric(10, 2), nullable=False)
    status = Column(MemberStatus, nullable=False, default="active")
    join_date = Column(Date, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, unique=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="member")

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def has_credentials(self) -> bool:
        return self.user_id is not None

    def __repr__(self):
        return f"<Member {self.id} {self.name}>"
