from __future__ import annotations

from sqlalchemy import Column, Date, DateTime, Index, Integer, String

from app.core.db import Base


class Attendance(Base):
    """One library visit. ``exit_time`` stays NULL while the member is inside."""

    __tablename__ = "attendance"

    id = Column(Integer, primary_key=True)
    # No foreign key: visits outlive the member record.
    member_id = Column(Integer, nullable=False, index=True)
    member_name = Column(String(150), nullable=False)
    date = Column(Date, nullable=False, index=True)
    entry_time = Column(DateTime, nullable=False)
    exit_time = Column(DateTime, nullable=True)

    __table_args__ = (
        # At most one open visit per member.
        Index(
            "uq_attendance_open_visit",
            "member_id",
            unique=True,
            sqlite_where=exit_time.is_(None),
            postgresql_where=exit_time.is_(None),
        ),
        {"sqlite_autoincrement": True},
    )

    @property
    def status(self) -> str:
        return "present" if self.exit_time is None else "left"

    @property
    def duration_minutes(self) -> int | None:
        if self.exit_time is None:
            return None
        return int((self.exit_time - self.entry_time).total_seconds() // 60)

    def __repr__(self):
        return f"<Attendance member={self.member_id} date={self.date} status={self.status}>"
