from __future__ import annotations

from datetime import date, datetime

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError

from app.models.activity import Activity
from app.models.attendance import Attendance
from app.schemas.member import MemberUpdate
from app.services import attendance as attendance_service
from app.services import members as members_service


def test_entry_then_exit_records_duration(db_session, sample_member):
    entry = attendance_service.mark_entry(db_session, sample_member.id, at=datetime(2024, 1, 15, 9, 0))
    assert entry.status == "present"
    assert entry.date == date(2024, 1, 15)
    assert entry.member_name == "Asha Rao"
    assert entry.duration_minutes is None

    closed = attendance_service.mark_exit(db_session, entry.id, at=datetime(2024, 1, 15, 13, 0))
    assert closed.status == "left"
    assert closed.duration_minutes == 240

    descriptions = [
        item.description
        for item in db_session.query(Activity).filter(Activity.type.in_(["entry", "exit"])).order_by(Activity.id)
    ]
    assert descriptions == ["Asha Rao entered the library", "Asha Rao left the library"]


def test_second_open_visit_is_refused(db_session, sample_member):
    attendance_service.mark_entry(db_session, sample_member.id, at=datetime(2024, 1, 15, 9, 0))
    with pytest.raises(HTTPException) as exc:
        attendance_service.mark_entry(db_session, sample_member.id, at=datetime(2024, 1, 15, 10, 0))
    assert exc.value.status_code == 409
    assert db_session.query(Attendance).count() == 1


def test_open_visit_guard_at_store_level(db_session, sample_member):
    db_session.add_all(
        [
            Attendance(
                member_id=sample_member.id,
                member_name=sample_member.name,
                date=date(2024, 1, 15),
                entry_time=datetime(2024, 1, 15, hour, 0),
            )
            for hour in (9, 10)
        ]
    )
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_exit_rules(db_session, make_member):
    asha = make_member()
    meera = make_member("Meera Iyer", phone="9800000003", seat_number="B-07")
    visit = attendance_service.mark_entry(db_session, asha.id, at=datetime(2024, 1, 15, 9, 0))

    with pytest.raises(HTTPException) as exc:
        attendance_service.mark_exit(db_session, 9999)
    assert exc.value.status_code == 404

    with pytest.raises(HTTPException) as exc:
        attendance_service.mark_exit(db_session, visit.id, member_id=meera.id)
    assert exc.value.status_code == 400

    with pytest.raises(HTTPException) as exc:
        attendance_service.mark_exit(db_session, visit.id, at=datetime(2024, 1, 15, 8, 0))
    assert exc.value.status_code == 400

    attendance_service.mark_exit(db_session, visit.id, at=datetime(2024, 1, 15, 11, 0))
    with pytest.raises(HTTPException) as exc:
        attendance_service.mark_exit(db_session, visit.id, at=datetime(2024, 1, 15, 12, 0))
    assert exc.value.status_code == 400
    assert db_session.get(Attendance, visit.id).exit_time == datetime(2024, 1, 15, 11, 0)


def test_entry_refused_for_unknown_or_inactive_member(db_session, sample_member):
    with pytest.raises(HTTPException) as exc:
        attendance_service.mark_entry(db_session, 9999)
    assert exc.value.status_code == 404

    members_service.update_member(db_session, sample_member.id, MemberUpdate(status="inactive"))
    with pytest.raises(HTTPException) as exc:
        attendance_service.mark_entry(db_session, sample_member.id)
    assert exc.value.status_code == 400


def test_open_visit_lookup(db_session, sample_member):
    visit = attendance_service.mark_entry(db_session, sample_member.id, at=datetime(2024, 1, 15, 9, 0))
    assert attendance_service.get_open_attendance(db_session, sample_member.id).id == visit.id
    assert attendance_service.get_open_attendance(db_session, sample_member.id, on_date=date(2024, 1, 16)) is None


def test_list_attendance_by_date_range(client, authorize, admin_user, db_session, sample_member):
    for day in (10, 12, 14):
        visit = attendance_service.mark_entry(db_session, sample_member.id, at=datetime(2024, 1, day, 9, 0))
        attendance_service.mark_exit(db_session, visit.id, at=datetime(2024, 1, day, 12, 0))
    attendance_service.mark_entry(db_session, sample_member.id, at=datetime(2024, 1, 16, 9, 0))
    authorize(admin_user)

    response = client.get("/attendance", params={"start_date": "2024-01-11", "end_date": "2024-01-16"})
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["total"] == 3
    assert [item["date"] for item in data["items"]] == ["2024-01-16", "2024-01-14", "2024-01-12"]
    assert data["items"][0]["status"] == "present"
    assert data["items"][1]["duration_minutes"] == 180

    response = client.get("/attendance", params={"status": "present"})
    assert response.json()["total"] == 1

    response = client.get("/attendance", params={"start_date": "2024-01-16", "end_date": "2024-01-10"})
    assert response.status_code == 400


def test_entry_and_exit_endpoints(client, authorize, admin_user, sample_member):
    authorize(admin_user)
    response = client.post("/attendance/entry", json={"member_id": sample_member.id})
    assert response.status_code == 201, response.text
    visit_id = response.json()["id"]

    assert client.post("/attendance/entry", json={"member_id": sample_member.id}).status_code == 409
    assert client.get(f"/attendance/open/{sample_member.id}").json()["id"] == visit_id
    assert len(client.get("/attendance/today").json()) == 1

    response = client.post(f"/attendance/{visit_id}/exit")
    assert response.status_code == 200, response.text
    assert response.json()["status"] == "left"


def test_export_attendance_csv(client, authorize, admin_user, db_session, sample_member):
    visit = attendance_service.mark_entry(db_session, sample_member.id, at=datetime(2024, 1, 15, 9, 0))
    attendance_service.mark_exit(db_session, visit.id, at=datetime(2024, 1, 15, 13, 0))
    authorize(admin_user)

    response = client.get("/attendance/export.csv", params={"member_id": sample_member.id})
    assert response.status_code == 200
    lines = response.text.strip().splitlines()
    assert len(lines) == 2
    assert lines[1].endswith("left,240")
