from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from app.core.clock import local_date, local_today, to_naive_utc, utcnow
from app.models.attendance import Attendance
from app.models.member import Member
from app.schemas.attendance import AttendanceListResponse, AttendanceOut
from app.services.activity import log_activity

logger = logging.getLogger(__name__)

ATTENDANCE_STATUS_FILTERS = ("present", "left")


def get_attendance(db: Session, attendance_id: int) -> Attendance:
    record = db.get(Attendance, attendance_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attendance record not found")
    return record


def get_open_attendance(db: Session, member_id: int, *, on_date: date | None = None) -> Attendance | None:
    query = db.query(Attendance).filter(Attendance.member_id == member_id, Attendance.exit_time.is_(None))
    if on_date is not None:
        query = query.filter(Attendance.date == on_date)
    return query.order_by(Attendance.entry_time.desc()).first()


def mark_entry(
    db: Session,
    member_id: int,
    *,
    at: datetime | None = None,
    now: datetime | None = None,
) -> Attendance:
    member = db.get(Member, member_id)
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    if not member.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Member is inactive")
    if get_open_attendance(db, member_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Member is already checked in")

    entry_time = to_naive_utc(at) if at else (now or utcnow())
    record = Attendance(
        member_id=member.id,
        member_name=member.name,
        date=local_date(entry_time),
        entry_time=entry_time,
        exit_time=None,
    )
    db.add(record)
    log_activity(
        db,
        type="entry",
        member_id=member.id,
        member_name=member.name,
        description=f"{member.name} entered the library",
        timestamp=entry_time,
    )
    try:
        db.commit()
    except IntegrityError as exc:
        # A concurrent check-in won the race for the open-visit slot.
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Member is already checked in") from exc

    logger.info("attendance_entry", extra={"attendance_id": record.id, "member_id": member.id})
    return record


def mark_exit(
    db: Session,
    attendance_id: int,
    *,
    member_id: int | None = None,
    at: datetime | None = None,
    now: datetime | None = None,
) -> Attendance:
    """Close an open visit. ``member_id`` restricts the call to that member's own visits."""

    record = get_attendance(db, attendance_id)
    if member_id is not None and record.member_id != member_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Attendance record belongs to another member")
    if record.exit_time is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Visit is already closed")

    exit_time = to_naive_utc(at) if at else (now or utcnow())
    if exit_time < record.entry_time:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Exit time cannot be before entry time")

    record.exit_time = exit_time
    log_activity(
        db,
        type="exit",
        member_id=record.member_id,
        member_name=record.member_name,
        description=f"{record.member_name} left the library",
        timestamp=exit_time,
    )
    db.commit()
    logger.info(
        "attendance_exit",
        extra={"attendance_id": record.id, "member_id": record.member_id, "minutes": record.duration_minutes},
    )
    return record


def close_open_visit(
    db: Session,
    member_id: int,
    *,
    at: datetime | None = None,
    now: datetime | None = None,
) -> Attendance:
    record = get_open_attendance(db, member_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No open visit for this member")
    return mark_exit(db, record.id, member_id=member_id, at=at, now=now)


def build_attendance_query(
    db: Session,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    member_id: Optional[int] = None,
    status_filter: Optional[str] = None,
) -> Query:
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="start_date must be on or before end_date")
    query: Query = db.query(Attendance)
    if start_date:
        query = query.filter(Attendance.date >= start_date)
    if end_date:
        query = query.filter(Attendance.date <= end_date)
    if member_id is not None:
        query = query.filter(Attendance.member_id == member_id)
    if status_filter:
        if status_filter not in ATTENDANCE_STATUS_FILTERS:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Invalid status filter")
        if status_filter == "present":
            query = query.filter(Attendance.exit_time.is_(None))
        else:
            query = query.filter(Attendance.exit_time.isnot(None))
    return query.order_by(Attendance.date.desc(), Attendance.entry_time.desc(), Attendance.id.desc())


def list_attendance(
    db: Session,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    member_id: Optional[int] = None,
    status_filter: Optional[str] = None,
    page: int = 1,
    page_size: int = 50,
) -> AttendanceListResponse:
    query = build_attendance_query(
        db,
        start_date=start_date,
        end_date=end_date,
        member_id=member_id,
        status_filter=status_filter,
    )
    total = query.order_by(None).count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return AttendanceListResponse(
        items=[AttendanceOut.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
    )


def today_attendance(db: Session, *, now: datetime | None = None) -> list[Attendance]:
    today = local_today(now)
    return build_attendance_query(db, start_date=today, end_date=today).all()


def present_count(db: Session, *, now: datetime | None = None) -> int:
    """Members with an open visit that started today."""

    today = local_today(now)
    return (
        db.query(Attendance)
        .filter(Attendance.date == today, Attendance.exit_time.is_(None))
        .count()
    )
