from __future__ import annotations

from datetime import datetime, timedelta

from app.auth.security import create_access_token, hash_password
from app.core.clock import utcnow
from app.core.config import settings
from app.models.due import Due
from app.models.user import User
from app.schemas.member import MemberUpdate
from app.services import attendance as attendance_service
from app.services import dues as dues_service
from app.services import members as members_service

MEMBER_PASSWORD = "Member123"


def _bearer(user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject=str(user_id), roles=[])}"}


def test_member_login_by_id_and_email(client, portal_member):
    response = client.post(
        "/auth/member-login",
        json={"identifier": str(portal_member.id), "password": MEMBER_PASSWORD},
    )
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["kind"] == "member"
    assert data["member_id"] == portal_member.id

    response = client.post(
        "/auth/member-login",
        json={"identifier": "VIKRAM@example.com", "password": MEMBER_PASSWORD},
    )
    assert response.status_code == 200

    me = client.get("/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.json()["name"] == "Vikram Singh"


def test_member_login_failures(client, db_session, portal_member):
    response = client.post("/auth/member-login", json={"identifier": "9999", "password": MEMBER_PASSWORD})
    assert response.status_code == 404
    assert response.json()["detail"] == "Member not found"

    response = client.post(
        "/auth/member-login",
        json={"identifier": str(portal_member.id), "password": "Wrong1234"},
    )
    assert response.status_code == 401

    members_service.update_member(db_session, portal_member.id, MemberUpdate(status="inactive"))
    response = client.post(
        "/auth/member-login",
        json={"identifier": str(portal_member.id), "password": MEMBER_PASSWORD},
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Account is inactive"
    assert "access_token" not in response.json()


def test_member_without_credentials_cannot_log_in(client, sample_member):
    response = client.post("/auth/member-login", json={"identifier": str(sample_member.id), "password": "Whatever1"})
    assert response.status_code == 401


def test_admin_login_and_whoami(client, db_session, admin_user):
    admin_user.hashed_password = hash_password("Admin1234")
    db_session.commit()

    response = client.post("/auth/login", json={"email": "admin@example.com", "password": "Admin1234"})
    assert response.status_code == 200, response.text
    token = response.json()["access_token"]
    assert response.json()["kind"] == "admin"

    whoami = client.get("/auth/whoami", headers={"Authorization": f"Bearer {token}"})
    assert whoami.status_code == 200
    assert whoami.json()["kind"] == "admin"
    assert whoami.json()["roles"] == ["Admin"]

    response = client.post("/auth/login", json={"email": "admin@example.com", "password": "nope"})
    assert response.status_code == 401


def test_admin_by_configured_email(client, authorize, db_session, monkeypatch):
    user = User(email="owner@example.com", full_name="Owner", hashed_password="hash", is_active=True)
    db_session.add(user)
    db_session.commit()
    monkeypatch.setattr(settings, "ADMIN_EMAILS", ["Owner@Example.com"])
    authorize(user)

    assert client.get("/auth/whoami").json()["kind"] == "admin"
    assert client.get("/reports/stats").status_code == 200


def test_account_without_member_record_is_refused(client, authorize, db_session):
    user = User(email="stranger@example.com", full_name="Stranger", hashed_password="hash", is_active=True)
    db_session.add(user)
    db_session.commit()
    authorize(user)
    assert client.get("/me").status_code == 403


def test_invalid_token_is_rejected(client):
    response = client.get("/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_portal_is_limited_to_own_records(client, authorize, db_session, make_member, portal_member, portal_user):
    other = make_member("Meera Iyer", phone="9800000003", seat_number="B-07")
    other_due = db_session.query(Due).filter_by(member_id=other.id).one()
    dues_service.mark_due_paid(db_session, other_due.id, now=datetime(2024, 1, 20, 11, 0))
    authorize(portal_user)

    assert client.get("/members").status_code == 403
    assert client.get(f"/me/dues/{other_due.id}/receipt").status_code == 403

    dues = client.get("/me/dues")
    assert dues.status_code == 200
    assert {item["member_id"] for item in dues.json()["items"]} == {portal_member.id}


def test_portal_attendance_flow(client, authorize, db_session, make_member, portal_member, portal_user):
    authorize(portal_user)
    assert client.get("/me/attendance/current").json() is None

    entry = client.post("/me/attendance/entry")
    assert entry.status_code == 201, entry.text
    assert client.post("/me/attendance/entry").status_code == 409
    assert client.get("/me/attendance/current").json()["id"] == entry.json()["id"]

    other = make_member("Meera Iyer", phone="9800000003", seat_number="B-07")
    other_visit = attendance_service.mark_entry(db_session, other.id)
    assert client.post(f"/me/attendance/{other_visit.id}/exit").status_code == 403

    exit_response = client.post("/me/attendance/exit")
    assert exit_response.status_code == 200
    assert exit_response.json()["status"] == "left"
    assert client.post("/me/attendance/exit").status_code == 404

    history = client.get("/me/attendance").json()
    assert history["total"] == 1

    activities = client.get("/me/activities").json()
    assert [item["type"] for item in activities][:2] == ["exit", "entry"]


def test_inactive_member_is_refused_with_valid_token(client, db_session, portal_member):
    headers = _bearer(portal_member.user_id)
    assert client.get("/me", headers=headers).status_code == 200
    members_service.update_member(db_session, portal_member.id, MemberUpdate(status="inactive"))
    assert client.get("/me", headers=headers).status_code == 403


def test_visit_left_open_overnight_is_current(client, authorize, db_session, portal_member, portal_user):
    visit = attendance_service.mark_entry(db_session, portal_member.id, at=utcnow() - timedelta(days=1))
    authorize(portal_user)

    current = client.get("/me/attendance/current")
    assert current.status_code == 200
    assert current.json()["id"] == visit.id
    assert client.post("/me/attendance/entry").status_code == 409
    assert client.post("/me/attendance/exit").json()["id"] == visit.id
