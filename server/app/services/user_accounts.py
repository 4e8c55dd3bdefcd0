from __future__ import annotations

import re
import secrets
import string

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.auth.security import hash_password
from app.core.config import settings
from app.models.member import Member
from app.models.role import MEMBER_ROLE, Role
from app.models.user import User

_PASSWORD_ALPHABET = string.ascii_letters + string.digits


def validate_password_strength(password: str) -> None:
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long.")
    if not re.search(r"[A-Za-z]", password):
        raise ValueError("Password must include at least one letter.")
    if not re.search(r"[0-9]", password):
        raise ValueError("Password must include at least one digit.")


def generate_password(length: int = 10) -> str:
    while True:
        candidate = "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(max(length, settings.PASSWORD_MIN_LENGTH)))
        try:
            validate_password_strength(candidate)
        except ValueError:
            continue
        return candidate


def ensure_role(db: Session, name: str) -> Role:
    role = db.query(Role).filter(Role.name == name).first()
    if role is None:
        role = Role(name=name)
        db.add(role)
        db.flush()
    return role


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def resolve_password(password: str | None, generate: bool) -> tuple[str | None, str | None]:
    """Return ``(password_to_store, password_to_reveal)``.

    A generated password is revealed once to the caller; an admin supplied one never is.
    """
    if password:
        try:
            validate_password_strength(password)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        return password, None
    if generate:
        generated = generate_password()
        return generated, generated
    return None, None


def _is_released_portal_user(db: Session, user: User) -> bool:
    if user.is_active or set(user.role_names) != {MEMBER_ROLE}:
        return False
    return not db.query(Member.id).filter(Member.user_id == user.id).first()


def create_portal_user(db: Session, *, email: str, full_name: str, password: str) -> User:
    """Stage a member-portal account; flushing and committing is left to the caller.

    The deactivated account of a removed member is reused for the same email.
    """

    existing = find_user_by_email(db, email)
    if existing:
        if not _is_released_portal_user(db, existing):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="An account with this email already exists")
        existing.full_name = full_name
        existing.hashed_password = hash_password(password)
        existing.is_active = True
        db.flush()
        return existing
    user = User(
        email=email.strip().lower(),
        full_name=full_name,
        hashed_password=hash_password(password),
        is_active=True,
    )
    user.roles = [ensure_role(db, MEMBER_ROLE)]
    db.add(user)
    db.flush()
    return user
