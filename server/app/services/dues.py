from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from app.core.clock import local_date, local_day_start, local_today, month_start, next_month_start, to_naive_utc, utcnow
from app.core.config import settings
from app.models.due import Due
from app.models.member import Member
from app.schemas.due import (
    DueCreate,
    DueListResponse,
    DueOut,
    DuePaymentRequest,
    DueSummaryResponse,
    MemberDuesResponse,
    ReceiptOut,
)
from app.services.activity import log_activity

logger = logging.getLogger(__name__)

DUE_STATUS_FILTERS = ("pending", "overdue", "paid", "outstanding")
CENTS = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value if value is not None else 0)).quantize(CENTS)


def format_amount(amount: Decimal) -> str:
    amount = _money(amount)
    if amount == amount.to_integral_value():
        return str(amount.quantize(Decimal("1")))
    return str(amount)


def period_label(start: date) -> str:
    return start.strftime("%b %Y")


def due_to_schema(due: Due, today: date) -> DueOut:
    return DueOut(
        id=due.id,
        member_id=due.member_id,
        member_name=due.member_name,
        amount=_money(due.amount),
        due_date=due.due_date,
        paid_at=due.paid_at,
        status=due.effective_status(today),
        period=due.period,
        receipt_number=due.receipt_number,
        created_at=due.created_at,
    )


def create_due_for_member(
    db: Session,
    *,
    member_id: int,
    member_name: str,
    amount: Decimal,
    period_start: date,
    due_date: Optional[date] = None,
    period: Optional[str] = None,
) -> Due:
    """Stage the due for the period starting ``period_start``; the caller commits."""

    due = Due(
        member_id=member_id,
        member_name=member_name,
        amount=_money(amount),
        due_date=due_date or period_start + timedelta(days=settings.DUE_PERIOD_DAYS),
        status="pending",
        period=period or period_label(period_start),
        created_at=utcnow(),
    )
    db.add(due)
    db.flush()
    return due


def get_due(db: Session, due_id: int) -> Due:
    due = db.get(Due, due_id)
    if not due:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Due not found")
    return due


def create_due(db: Session, payload: DueCreate, *, now: datetime | None = None) -> Due:
    member = db.get(Member, payload.member_id)
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    start = payload.period_start or local_today(now)
    if payload.due_date and payload.due_date < start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Due date cannot be before the period start")
    due = create_due_for_member(
        db,
        member_id=member.id,
        member_name=member.name,
        amount=payload.amount or member.monthly_fee,
        period_start=start,
        due_date=payload.due_date,
        period=payload.period,
    )
    db.commit()
    logger.info("due_created", extra={"due_id": due.id, "member_id": member.id, "due_date": due.due_date.isoformat()})
    return due


def receipt_number_for(due: Due, paid_at: datetime) -> str:
    return f"RCP-{paid_at:%Y%m%d}-{due.id:06d}"


def mark_due_paid(
    db: Session,
    due_id: int,
    payload: DuePaymentRequest | None = None,
    *,
    now: datetime | None = None,
) -> tuple[Due, Due]:
    """Settle a due and roll the member over to the next period.

    Returns ``(paid_due, next_due)``. The payment, the next due and the
    ``payment`` activity are committed together.
    """
    due = get_due(db, due_id)
    if due.status == "paid":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Due is already paid")

    if payload and payload.paid_at:
        paid_at = to_naive_utc(payload.paid_at)
    else:
        paid_at = now or utcnow()
    receipt_number = payload.receipt_number.strip() if payload and payload.receipt_number else receipt_number_for(due, paid_at)
    if db.query(Due.id).filter(Due.receipt_number == receipt_number).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Receipt number already used")

    member = db.get(Member, due.member_id)
    member_name = member.name if member else due.member_name

    due.status = "paid"
    due.paid_at = paid_at
    due.receipt_number = receipt_number
    next_due = create_due_for_member(
        db,
        member_id=due.member_id,
        member_name=member_name,
        amount=due.amount,
        period_start=local_date(paid_at),
    )
    log_activity(
        db,
        type="payment",
        member_id=due.member_id,
        member_name=member_name,
        description=f"{member_name} paid {settings.CURRENCY_SYMBOL}{format_amount(due.amount)}",
        timestamp=paid_at,
    )
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Receipt number already used") from exc

    logger.info(
        "due_paid",
        extra={"due_id": due.id, "member_id": due.member_id, "receipt_number": receipt_number, "next_due_id": next_due.id},
    )
    return due, next_due


def _apply_due_filters(
    query: Query,
    *,
    today: date,
    member_id: Optional[int] = None,
    status_filter: Optional[str] = None,
    q: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Query:
    if member_id is not None:
        query = query.filter(Due.member_id == member_id)
    if status_filter:
        if status_filter not in DUE_STATUS_FILTERS:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Invalid status filter")
        if status_filter == "paid":
            query = query.filter(Due.status == "paid")
        elif status_filter == "outstanding":
            query = query.filter(Due.status == "pending")
        elif status_filter == "overdue":
            query = query.filter(Due.status == "pending", Due.due_date < today)
        else:
            query = query.filter(Due.status == "pending", Due.due_date >= today)
    if q:
        query = query.filter(func.lower(Due.member_name).like(f"%{q.strip().lower()}%"))
    if start_date:
        query = query.filter(Due.due_date >= start_date)
    if end_date:
        query = query.filter(Due.due_date <= end_date)
    return query


def _base_due_query(db: Session) -> Query:
    return db.query(Due).order_by(Due.created_at.desc(), Due.id.desc())


def list_dues(
    db: Session,
    *,
    page: int = 1,
    page_size: int = 25,
    member_id: Optional[int] = None,
    status_filter: Optional[str] = None,
    q: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    now: datetime | None = None,
) -> DueListResponse:
    today = local_today(now)
    query = _apply_due_filters(
        _base_due_query(db),
        today=today,
        member_id=member_id,
        status_filter=status_filter,
        q=q,
        start_date=start_date,
        end_date=end_date,
    )
    total = query.order_by(None).count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return DueListResponse(
        items=[due_to_schema(item, today) for item in items],
        total=total,
        page=page,
        page_size=page_size,
    )


def get_dues_for_export(
    db: Session,
    *,
    member_id: Optional[int] = None,
    status_filter: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    now: datetime | None = None,
) -> list[DueOut]:
    today = local_today(now)
    query = _apply_due_filters(
        _base_due_query(db),
        today=today,
        member_id=member_id,
        status_filter=status_filter,
        start_date=start_date,
        end_date=end_date,
    )
    return [due_to_schema(item, today) for item in query.all()]


def member_dues(db: Session, member_id: int, *, now: datetime | None = None) -> MemberDuesResponse:
    """Dues of a member, including a removed member whose dues remain."""

    today = local_today(now)
    dues = _base_due_query(db).filter(Due.member_id == member_id).all()
    if not dues and db.get(Member, member_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    outstanding = sum((_money(due.amount) for due in dues if due.status == "pending"), Decimal("0.00"))
    return MemberDuesResponse(
        member_id=member_id,
        items=[due_to_schema(due, today) for due in dues],
        outstanding_total=_money(outstanding),
    )


def count_and_total(query: Query) -> tuple[int, Decimal]:
    count, total = query.with_entities(func.count(Due.id), func.coalesce(func.sum(Due.amount), 0)).one()
    return int(count or 0), _money(total)


def collected_between(db: Session, start: datetime, end: datetime) -> Decimal:
    _, total = count_and_total(
        db.query(Due).filter(Due.status == "paid", Due.paid_at >= start, Due.paid_at < end)
    )
    return total


def collected_this_month(db: Session, *, now: datetime | None = None) -> Decimal:
    today = local_today(now)
    return collected_between(db, local_day_start(month_start(today)), local_day_start(next_month_start(today)))


def summarize_dues(db: Session, *, now: datetime | None = None) -> DueSummaryResponse:
    today = local_today(now)
    pending_count, pending_total = count_and_total(
        db.query(Due).filter(Due.status == "pending", Due.due_date >= today)
    )
    overdue_count, overdue_total = count_and_total(
        db.query(Due).filter(Due.status == "pending", Due.due_date < today)
    )
    paid_count, paid_total = count_and_total(db.query(Due).filter(Due.status == "paid"))
    return DueSummaryResponse(
        pending_count=pending_count,
        pending_total=pending_total,
        overdue_count=overdue_count,
        overdue_total=overdue_total,
        paid_count=paid_count,
        paid_total=paid_total,
        collected_this_month=collected_this_month(db, now=now),
    )


def overdue_totals(db: Session, *, now: datetime | None = None) -> tuple[int, Decimal]:
    today = local_today(now)
    return count_and_total(db.query(Due).filter(Due.status == "pending", Due.due_date < today))


def build_receipt(db: Session, due_id: int) -> ReceiptOut:
    due = get_due(db, due_id)
    if due.status != "paid" or due.paid_at is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Receipts are only issued for paid dues")
    member = db.get(Member, due.member_id)
    return ReceiptOut(
        receipt_number=due.receipt_number or receipt_number_for(due, due.paid_at),
        library_name=settings.LIBRARY_NAME,
        library_address=settings.LIBRARY_ADDRESS,
        library_contact=settings.LIBRARY_CONTACT,
        member_id=due.member_id,
        member_name=due.member_name,
        seat_number=member.seat_number if member else None,
        period=due.period,
        amount=_money(due.amount),
        currency_symbol=settings.CURRENCY_SYMBOL,
        paid_at=due.paid_at,
    )
