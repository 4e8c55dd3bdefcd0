from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from app.core.clock import local_today
from app.core.db import SessionLocal
from app.models.due import Due

logger = logging.getLogger(__name__)


def notify_due_overdue(due: Due) -> None:
    logger.warning(
        "due_overdue",
        extra={
            "due_id": due.id,
            "member_id": due.member_id,
            "member_name": due.member_name,
            "due_date": due.due_date.isoformat(),
            "amount": str(due.amount),
        },
    )


def send_overdue_digest(*, now: datetime | None = None) -> int:
    """Scheduled job: log every unpaid due past its due date. Returns how many were reported."""

    today = local_today(now)
    with SessionLocal() as session:
        overdue = (
            session.query(Due)
            .filter(Due.status == "pending", Due.due_date < today)
            .order_by(Due.due_date.asc(), Due.id.asc())
            .all()
        )
        for due in overdue:
            notify_due_overdue(due)
    total = sum((due.amount for due in overdue), Decimal("0.00"))
    logger.info(
        "dues_overdue_digest",
        extra={"day": today.isoformat(), "count": len(overdue), "total": str(total)},
    )
    return len(overdue)
