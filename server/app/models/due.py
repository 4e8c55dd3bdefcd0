from __future__ import annotations

from datetime import date

from sqlalchemy import Column, Date, DateTime, Integer, Numeric, String

from app.core.clock import utcnow
from app.core.db import Base


class Due(Base):
    __tablename__ = "dues"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    member_id = Column(Integer, nullable=False, index=True)
    member_name = Column(String(150), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    paid_at = Column(DateTime, nullable=True)
    # Stored as pending/paid; "overdue" is derived when read.
    status = Column(String(20), nullable=False, default="pending", index=True)
    period = Column(String(20), nullable=False)
    receipt_number = Column(String(40), nullable=True, unique=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def effective_status(self, today: date) -> str:
        if self.status == "pending" and self.due_date < today:
            return "overdue"
        return self.status

    def __repr__(self):
        return f"<Due {self.id} member={self.member_id} {self.period} {self.status}>"
