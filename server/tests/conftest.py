from __future__ import annotations

import os
from collections.abc import Generator
from datetime import date, datetime
from decimal import Decimal

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ["ENABLE_SCHEDULER"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.auth.deps import get_current_user
from app.core import changes
from app.core.db import Base, get_db
from app.main import app
from app.models.member import Member
from app.models.role import ADMIN_ROLE, Role
from app.models.user import User
from app.schemas.member import MemberCreate
from app.services import members as members_service

SQLALCHEMY_TEST_URL = "sqlite+pysqlite:///:memory:"
engine = create_engine(SQLALCHEMY_TEST_URL, connect_args={"check_same_thread": False}, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

MEMBER_PASSWORD = "Member123"
NOW = datetime(2024, 1, 1, 9, 0)


def override_get_db() -> Generator[Session, None, None]:
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_database() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    changes.clear_subscribers()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    session = TestingSessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app.dependency_overrides.clear()
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def authorize(client: TestClient):
    def _apply(user: User):
        app.dependency_overrides[get_current_user] = lambda: user

    yield _apply
    app.dependency_overrides.pop(get_current_user, None)


def _ensure_role(session: Session, name: str) -> Role:
    role = session.query(Role).filter_by(name=name).first()
    if role is None:
        role = Role(name=name)
        session.add(role)
        session.commit()
        session.refresh(role)
    return role


@pytest.fixture()
def admin_user(db_session: Session) -> User:
    role = _ensure_role(db_session, ADMIN_ROLE)
    user = User(email="admin@example.com", full_name="Admin", hashed_password="hash", is_active=True)
    user.roles.append(role)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture()
def make_member(db_session: Session):
    def _make(
        name: str = "Asha Rao",
        *,
        phone: str = "9800000001",
        seat_number: str = "A-01",
        monthly_fee: str = "500",
        join_date: date = date(2024, 1, 1),
        email: str | None = None,
        password: str | None = None,
    ) -> Member:
        payload = MemberCreate(
            name=name,
            email=email,
            phone=phone,
            seat_number=seat_number,
            monthly_fee=Decimal(monthly_fee),
            join_date=join_date,
            password=password,
        )
        member, _ = members_service.add_member(db_session, payload, now=NOW)
        return member

    return _make


@pytest.fixture()
def sample_member(make_member) -> Member:
    return make_member()


@pytest.fixture()
def portal_member(make_member) -> Member:
    return make_member(
        "Vikram Singh",
        phone="9800000002",
        seat_number="A-02",
        email="vikram@example.com",
        password=MEMBER_PASSWORD,
    )


@pytest.fixture()
def portal_user(db_session: Session, portal_member: Member) -> User:
    return db_session.get(User, portal_member.user_id)


@pytest.fixture()
def session_factory() -> sessionmaker:
    return TestingSessionLocal
