from __future__ import annotations

import csv
import io
from datetime import date, datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from app.models.attendance import Attendance
from app.models.due import Due
from app.models.member import Member
from app.schemas.due import DueOut
from app.schemas.reports import DashboardStats
from app.services.attendance import present_count
from app.services.dues import collected_this_month, count_and_total, format_amount, overdue_totals

MEMBER_EXPORT_HEADERS = [
    "member_id",
    "name",
    "email",
    "phone",
    "seat_number",
    "shift",
    "monthly_fee",
    "status",
    "join_date",
]

ATTENDANCE_EXPORT_HEADERS = [
    "attendance_id",
    "member_id",
    "member_name",
    "date",
    "entry_time",
    "exit_time",
    "status",
    "duration_minutes",
]

DUE_EXPORT_HEADERS = [
    "due_id",
    "member_id",
    "member_name",
    "period",
    "amount",
    "due_date",
    "status",
    "paid_at",
    "receipt_number",
]


def dashboard_stats(db: Session, *, now: datetime | None = None) -> DashboardStats:
    """Headline numbers for the admin dashboard, aggregated in the database.

    ``pending_dues`` counts every unpaid due, overdue ones included; the
    overdue share is reported separately.
    """
    total_members = db.query(Member).count()
    active_members = db.query(Member).filter(Member.status == "active").count()
    unpaid_count, unpaid_total = count_and_total(db.query(Due).filter(Due.status == "pending"))
    overdue_count, overdue_total = overdue_totals(db, now=now)
    return DashboardStats(
        total_members=total_members,
        active_members=active_members,
        present_today=present_count(db, now=now),
        pending_dues=unpaid_count,
        total_dues_amount=unpaid_total,
        overdue_dues=overdue_count,
        overdue_amount=overdue_total,
        collected_this_month=collected_this_month(db, now=now),
    )


def _format_datetime(value: Optional[datetime]) -> str:
    return value.isoformat() if value else ""


def _format_date(value: Optional[date]) -> str:
    return value.isoformat() if value else ""


def format_member_row(member: Member) -> list[str]:
    return [
        str(member.id),
        member.name,
        member.email or "",
        member.phone,
        member.seat_number,
        member.shift or "",
        f"{member.monthly_fee:.2f}",
        member.status,
        _format_date(member.join_date),
    ]


def format_attendance_row(record: Attendance) -> list[str]:
    minutes = record.duration_minutes
    return [
        str(record.id),
        str(record.member_id),
        record.member_name,
        _format_date(record.date),
        _format_datetime(record.entry_time),
        _format_datetime(record.exit_time),
        record.status,
        str(minutes) if minutes is not None else "",
    ]


def format_due_row(due: DueOut) -> list[str]:
    return [
        str(due.id),
        str(due.member_id),
        due.member_name,
        due.period,
        format_amount(due.amount),
        _format_date(due.due_date),
        due.status,
        _format_datetime(due.paid_at),
        due.receipt_number or "",
    ]


def stream_csv(headers: list[str], rows: Iterable[list[str]]) -> Iterable[str]:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(headers)
    yield buffer.getvalue()
    buffer.seek(0)
    buffer.truncate(0)
    for row in rows:
        writer.writerow(row)
        yield buffer.getvalue()
        buffer.seek(0)
        buffer.truncate(0)
