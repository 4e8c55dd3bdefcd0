from __future__ import annotations

from datetime import datetime, time, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from app.auth.security import hash_password
from app.core.clock import local_today, utcnow
from app.core.db import Base, SessionLocal, engine
from app.models.member import Member
from app.models.role import ADMIN_ROLE, MEMBER_ROLE
from app.models.user import User
from app.schemas.due import DuePaymentRequest
from app.schemas.member import MemberCreate
from app.services import attendance as attendance_service
from app.services import dues as dues_service
from app.services import members as members_service
from app.services.user_accounts import ensure_role

ROLE_NAMES = [ADMIN_ROLE, MEMBER_ROLE]

DEMO_USERS = [
    ("admin@example.com", "Library Admin", "Demo1234", [ADMIN_ROLE]),
]

# (name, email, phone, seat, shift, fee, days since joining, portal password)
DEMO_MEMBERS = [
    ("Asha Rao", "asha@example.com", "9800000001", "A-01", "morning", "500", 45, "Member123"),
    ("Vikram Singh", "vikram@example.com", "9800000002", "A-02", "evening", "500", 20, "Member123"),
    ("Meera Iyer", None, "9800000003", "B-07", "full_day", "800", 10, None),
    ("Rohan Das", "rohan@example.com", "9800000004", "B-08", "morning", "650", 70, None),
]


def ensure_user(db: Session, email: str, full_name: str, password: str, roles: list[str]) -> User:
    user = db.query(User).filter_by(email=email).first()
    if user is None:
        user = User(
            email=email,
            full_name=full_name,
            hashed_password=hash_password(password),
            is_active=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)

    user.roles.clear()
    for role_name in roles:
        user.roles.append(ensure_role(db, role_name))
    db.commit()
    return user


def ensure_members(db: Session, admin_user: User) -> list[Member]:
    members: list[Member] = []
    today = local_today()
    for name, email, phone, seat, shift, fee, days_ago, password in DEMO_MEMBERS:
        member = db.query(Member).filter_by(phone=phone).first()
        if member is None:
            payload = MemberCreate(
                name=name,
                email=email,
                phone=phone,
                seat_number=seat,
                shift=shift,
                monthly_fee=Decimal(fee),
                join_date=today - timedelta(days=days_ago),
                password=password,
            )
            member, _ = members_service.add_member(db, payload, admin_user)
        members.append(member)
    return members


def ensure_payments(db: Session, members: list[Member]) -> None:
    # Settle the oldest due of the first member so a receipt exists.
    first = members[0]
    dues = dues_service.member_dues(db, first.id)
    unpaid = [due for due in dues.items if due.status != "paid"]
    if dues.items and len(unpaid) == len(dues.items):
        oldest = unpaid[-1]
        paid_at = datetime.combine(oldest.due_date - timedelta(days=5), time(10, 30))
        dues_service.mark_due_paid(db, oldest.id, DuePaymentRequest(paid_at=paid_at))


def ensure_visits(db: Session, members: list[Member]) -> None:
    now = utcnow()
    for member in members[:2]:
        if attendance_service.get_open_attendance(db, member.id, on_date=local_today(now)):
            continue
        attendance_service.mark_entry(db, member.id, now=now - timedelta(hours=2))
    if attendance_service.get_open_attendance(db, members[1].id):
        attendance_service.close_open_visit(db, members[1].id, now=now)


def main() -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        users: dict[str, User] = {}
        for role_name in ROLE_NAMES:
            ensure_role(db, role_name)
        db.commit()
        for email, full_name, password, roles in DEMO_USERS:
            users[email] = ensure_user(db, email, full_name, password, roles)

        members = ensure_members(db, users["admin@example.com"])
        ensure_payments(db, members)
        ensure_visits(db, members)
        print(f"Seeded {len(members)} members as of {local_today().isoformat()}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
