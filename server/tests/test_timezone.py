from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from app.core.clock import local_day_start, local_today
from app.core.config import settings
from app.models.due import Due
from app.services import attendance as attendance_service
from app.services import dues as dues_service


@pytest.fixture()
def kolkata(monkeypatch):
    monkeypatch.setattr(settings, "LIBRARY_TIMEZONE", "Asia/Kolkata")


def test_local_calendar_helpers(kolkata):
    assert local_today(datetime(2024, 1, 31, 18, 45)) == date(2024, 2, 1)
    assert local_today(datetime(2024, 1, 31, 18, 15)) == date(2024, 1, 31)
    assert local_day_start(date(2024, 2, 1)) == datetime(2024, 1, 31, 18, 30)


def test_evening_entry_lands_on_next_local_day(kolkata, db_session, sample_member):
    visit = attendance_service.mark_entry(db_session, sample_member.id, at=datetime(2024, 1, 15, 20, 0))
    assert visit.date == date(2024, 1, 16)
    assert attendance_service.present_count(db_session, now=datetime(2024, 1, 15, 21, 0)) == 1
    assert attendance_service.present_count(db_session, now=datetime(2024, 1, 15, 12, 0)) == 0


def test_payment_after_local_midnight_counts_for_new_month(kolkata, db_session, sample_member):
    due = db_session.query(Due).filter_by(member_id=sample_member.id).one()
    _, next_due = dues_service.mark_due_paid(db_session, due.id, now=datetime(2024, 1, 31, 18, 45))

    assert next_due.period == "Feb 2024"
    assert next_due.due_date == date(2024, 3, 2)
    assert dues_service.collected_this_month(db_session, now=datetime(2024, 2, 10, 12, 0)) == Decimal("500.00")
    assert dues_service.collected_this_month(db_session, now=datetime(2024, 1, 20, 12, 0)) == Decimal("0.00")
