from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from app.auth.security import hash_password
from app.core.clock import local_date, utcnow
from app.core.config import settings
from app.models.member import Member
from app.models.user import User
from app.schemas.member import (
    ALLOWED_MEMBER_SHIFTS,
    ALLOWED_MEMBER_STATUSES,
    MemberCreate,
    MemberCredentialsRequest,
    MemberCredentialsResponse,
    MemberListResponse,
    MemberOut,
    MemberUpdate,
)
from app.services.activity import log_activity
from app.services import audit as audit_service
from app.services.audit import record_member_changes, snapshot_member
from app.services.dues import create_due_for_member
from app.services.identity import is_admin
from app.services.user_accounts import create_portal_user, find_user_by_email, resolve_password

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("name", "phone", "seat_number", "monthly_fee", "status", "join_date")


def _money(value: Decimal) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"))


def get_member(db: Session, member_id: int) -> Member:
    member = db.get(Member, member_id)
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    return member


def add_member(
    db: Session,
    payload: MemberCreate,
    actor: User | None = None,
    *,
    now: datetime | None = None,
) -> tuple[Member, Optional[str]]:
    """Create a member together with its first due and a ``member_added`` activity.

    Portal credentials are issued in the same transaction when a password is
    supplied or requested. Returns the member and the generated password, if any.
    """
    now = now or utcnow()
    password, revealed = resolve_password(payload.password, payload.issue_credentials)
    if password and not payload.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="An email is required to issue member credentials",
        )
    join_date = payload.join_date or local_date(now)

    try:
        user = None
        if password:
            user = create_portal_user(db, email=payload.email, full_name=payload.name, password=password)
        member = Member(
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            address=payload.address,
            seat_number=payload.seat_number,
            shift=payload.shift,
            monthly_fee=_money(payload.monthly_fee or settings.DEFAULT_MONTHLY_FEE),
            status="active",
            join_date=join_date,
            user_id=user.id if user else None,
            created_at=now,
            updated_at=now,
        )
        db.add(member)
        db.flush()
        create_due_for_member(
            db,
            member_id=member.id,
            member_name=member.name,
            amount=member.monthly_fee,
            period_start=join_date,
        )
        log_activity(
            db,
            type="member_added",
            member_id=member.id,
            member_name=member.name,
            description=f"New member {member.name} joined the library",
            timestamp=now,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "member_added",
        extra={
            "member_id": member.id,
            "actor_id": actor.id if actor else None,
            "credentials_issued": user is not None,
        },
    )
    return member, revealed


def update_member(db: Session, member_id: int, payload: MemberUpdate, actor: User | None = None) -> Member:
    member = get_member(db, member_id)
    data = payload.model_dump(exclude_unset=True)
    for field in _REQUIRED_FIELDS:
        if field in data and data[field] is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} cannot be empty")
    if "monthly_fee" in data:
        data["monthly_fee"] = _money(data["monthly_fee"])

    if data.get("email") and member.user_id:
        existing = find_user_by_email(db, data["email"])
        if existing and existing.id != member.user_id:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="An account with this email already exists")
        linked = db.get(User, member.user_id)
        if linked:
            linked.email = data["email"].strip().lower()

    previous = snapshot_member(member)
    for field, value in data.items():
        setattr(member, field, value)
    member.updated_at = utcnow()
    changed = record_member_changes(db, member, previous, actor.id if actor else None)
    db.commit()
    if changed:
        logger.info("member_updated", extra={"member_id": member.id, "fields_changed": changed})
    return member


def toggle_status(db: Session, member_id: int, actor: User | None = None) -> Member:
    member = get_member(db, member_id)
    next_status = "inactive" if member.status == "active" else "active"
    return update_member(db, member_id, MemberUpdate(status=next_status), actor)


def delete_member(db: Session, member_id: int, actor: User | None = None) -> None:
    """Remove the member record only; visits and dues keep their copy of the name."""

    member = get_member(db, member_id)
    name = member.name
    if member.user_id:
        linked = db.get(User, member.user_id)
        if linked and not is_admin(linked):
            linked.is_active = False
    db.delete(member)
    log_activity(
        db,
        type="member_removed",
        member_id=member_id,
        member_name=name,
        description=f"Member {name} was removed from the library",
    )
    db.commit()
    logger.info("member_removed", extra={"member_id": member_id, "actor_id": actor.id if actor else None})


def set_member_password(db: Session, member_id: int, payload: MemberCredentialsRequest) -> MemberCredentialsResponse:
    member = get_member(db, member_id)
    password, revealed = resolve_password(payload.password, payload.generate)
    if not password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide a password or request a generated one",
        )
    user = db.get(User, member.user_id) if member.user_id else None
    if user:
        user.hashed_password = hash_password(password)
        user.is_active = True
    else:
        if not member.email:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="An email is required to issue member credentials",
            )
        user = create_portal_user(db, email=member.email, full_name=member.name, password=password)
        member.user_id = user.id
    db.commit()
    logger.info("member_credentials_issued", extra={"member_id": member.id, "user_id": user.id})
    return MemberCredentialsResponse(member_id=member.id, email=user.email, temporary_password=revealed)


def build_members_query(
    db: Session,
    *,
    q: Optional[str] = None,
    status_filter: Optional[str] = None,
    shift: Optional[str] = None,
    seat: Optional[str] = None,
) -> Query:
    query: Query = db.query(Member)
    if status_filter:
        if status_filter not in ALLOWED_MEMBER_STATUSES:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Invalid status filter")
        query = query.filter(Member.status == status_filter)
    if shift:
        if shift not in ALLOWED_MEMBER_SHIFTS:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Invalid shift filter")
        query = query.filter(Member.shift == shift)
    if seat:
        query = query.filter(Member.seat_number == seat.strip())
    if q:
        pattern = f"%{q.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(Member.name).like(pattern),
                func.lower(Member.email).like(pattern),
                func.lower(Member.phone).like(pattern),
                func.lower(Member.seat_number).like(pattern),
            )
        )
    return query.order_by(Member.name.asc(), Member.id.asc())


def list_members(
    db: Session,
    *,
    q: Optional[str] = None,
    status_filter: Optional[str] = None,
    shift: Optional[str] = None,
    seat: Optional[str] = None,
    page: int = 1,
    page_size: int = 25,
) -> MemberListResponse:
    query = build_members_query(db, q=q, status_filter=status_filter, shift=shift, seat=seat)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return MemberListResponse(
        items=[MemberOut.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
    )


def member_history(db: Session, member_id: int, *, limit: int = 50):
    get_member(db, member_id)
    return audit_service.member_history(db, member_id, limit=limit)
