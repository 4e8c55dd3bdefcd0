from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from app.models.due import Due
from app.services import attendance as attendance_service
from app.services import dues as dues_service
from app.services import notifications
from app.services.activity import recent_activities
from app.services.reporting import dashboard_stats


def test_dashboard_stats(db_session, make_member):
    asha = make_member()
    meera = make_member("Meera Iyer", phone="9800000003", seat_number="B-07", monthly_fee="800", join_date=date(2024, 2, 1))
    make_member("Rohan Das", phone="9800000004", seat_number="B-08", join_date=date(2024, 2, 1))
    dues_service.mark_due_paid(
        db_session,
        db_session.query(Due).filter_by(member_id=asha.id).one().id,
        now=datetime(2024, 2, 5, 10, 0),
    )
    attendance_service.mark_entry(db_session, asha.id, at=datetime(2024, 2, 10, 9, 0))
    visit = attendance_service.mark_entry(db_session, meera.id, at=datetime(2024, 2, 10, 9, 30))
    attendance_service.mark_exit(db_session, visit.id, at=datetime(2024, 2, 10, 11, 0))

    stats = dashboard_stats(db_session, now=datetime(2024, 2, 10, 12, 0))
    assert stats.total_members == 3
    assert stats.active_members == 3
    assert stats.present_today == 1
    assert stats.pending_dues == 3
    assert stats.total_dues_amount == Decimal("1800.00")
    assert stats.overdue_dues == 0
    assert stats.collected_this_month == Decimal("500.00")


def test_recent_activities_newest_first(db_session, make_member):
    for index in range(12):
        make_member(f"Member {index}", phone=f"98000001{index:02d}", seat_number=f"S-{index}")
    items = recent_activities(db_session)
    assert len(items) == 10
    assert items[0].member_name == "Member 11"


def test_stats_endpoint(client, authorize, admin_user, sample_member):
    authorize(admin_user)
    response = client.get("/reports/stats")
    assert response.status_code == 200
    data = response.json()
    assert data["total_members"] == 1
    assert data["pending_dues"] == 1
    assert data["overdue_dues"] == 1

    activities = client.get("/activities")
    assert activities.status_code == 200
    assert activities.json()[0]["type"] == "member_added"


def test_overdue_digest_only_logs(db_session, sample_member, session_factory, monkeypatch, caplog):
    monkeypatch.setattr(notifications, "SessionLocal", session_factory)
    with caplog.at_level("INFO"):
        count = notifications.send_overdue_digest(now=datetime(2024, 3, 1, 3, 0))
    assert count == 1
    assert "dues_overdue_digest" in caplog.messages
    db_session.expire_all()
    assert db_session.query(Due).one().status == "pending"
