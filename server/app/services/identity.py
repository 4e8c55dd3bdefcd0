"""Maps an authenticated account to the principal the request acts as."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.auth.security import verify_password
from app.core.clock import utcnow
from app.core.config import settings
from app.models.member import Member
from app.models.role import ADMIN_ROLE
from app.models.user import User
from app.services.user_accounts import find_user_by_email

logger = logging.getLogger(__name__)

PrincipalKind = Literal["admin", "member"]


@dataclass
class Principal:
    user: User
    kind: PrincipalKind
    member: Member | None = None

    @property
    def is_admin(self) -> bool:
        return self.kind == "admin"


def is_admin(user: User) -> bool:
    if ADMIN_ROLE in user.role_names:
        return True
    admin_emails = {email.strip().lower() for email in settings.ADMIN_EMAILS}
    return user.email.lower() in admin_emails


def resolve_member_for_user(db: Session, user: User) -> Member | None:
    member = db.query(Member).filter(Member.user_id == user.id).first()
    if member:
        return member
    # Records created before accounts were linked only share the email.
    return (
        db.query(Member)
        .filter(Member.user_id.is_(None), func.lower(Member.email) == user.email.lower())
        .order_by(Member.id.asc())
        .first()
    )


def classify(db: Session, user: User) -> Principal:
    if is_admin(user):
        return Principal(user=user, kind="admin")
    member = resolve_member_for_user(db, user)
    if member is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No member record for this account")
    if not member.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")
    return Principal(user=user, kind="member", member=member)


def authenticate_user(db: Session, email: str, password: str) -> Principal:
    user = find_user_by_email(db, email)
    if not user or not user.is_active or not verify_password(password, user.hashed_password):
        logger.info("login_failed", extra={"email": email})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    principal = classify(db, user)
    user.last_login_at = utcnow()
    db.commit()
    logger.info("login_succeeded", extra={"user_id": user.id, "kind": principal.kind})
    return principal


def _find_member(db: Session, identifier: str) -> Member | None:
    identifier = identifier.strip()
    if identifier.isdigit():
        return db.get(Member, int(identifier))
    return (
        db.query(Member)
        .filter(func.lower(Member.email) == identifier.lower())
        .order_by(Member.id.asc())
        .first()
    )


def authenticate_member(db: Session, identifier: str, password: str) -> Principal:
    """Member portal login by member id or email.

    The password is checked before the member's status so an inactive
    member only learns about the status once the password is right.
    """
    member = _find_member(db, identifier)
    if member is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    user = db.get(User, member.user_id) if member.user_id else None
    if user is None or not verify_password(password, user.hashed_password):
        logger.info("member_login_failed", extra={"member_id": member.id})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not member.is_active or not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")
    user.last_login_at = utcnow()
    db.commit()
    logger.info("member_login_succeeded", extra={"member_id": member.id, "user_id": user.id})
    return Principal(user=user, kind="member", member=member)
