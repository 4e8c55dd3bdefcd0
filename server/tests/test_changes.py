from __future__ import annotations

from datetime import datetime

import pytest

from app.core import changes
from app.models.attendance import Attendance
from app.services import attendance as attendance_service


def test_commit_delivers_changes(db_session, sample_member):
    received: list[changes.ChangeEvent] = []
    changes.subscribe("attendance", received.append)
    activities: list[changes.ChangeEvent] = []
    changes.subscribe("activities", activities.append)

    visit = attendance_service.mark_entry(db_session, sample_member.id, at=datetime(2024, 1, 15, 9, 0))

    assert received == [changes.ChangeEvent(collection="attendance", op="insert", record_id=visit.id)]
    assert [event.op for event in activities] == ["insert"]


def test_rollback_discards_changes(db_session, sample_member):
    received: list[changes.ChangeEvent] = []
    changes.subscribe(changes.ALL_COLLECTIONS, received.append)

    db_session.add(
        Attendance(
            member_id=sample_member.id,
            member_name=sample_member.name,
            date=datetime(2024, 1, 15).date(),
            entry_time=datetime(2024, 1, 15, 9, 0),
        )
    )
    db_session.flush()
    db_session.rollback()
    assert received == []


def test_failing_subscriber_does_not_block_others(db_session, sample_member):
    def broken(event: changes.ChangeEvent) -> None:
        raise RuntimeError("boom")

    received: list[changes.ChangeEvent] = []
    changes.subscribe("attendance", broken)
    changes.subscribe("attendance", received.append)

    attendance_service.mark_entry(db_session, sample_member.id, at=datetime(2024, 1, 15, 9, 0))
    assert len(received) == 1


def test_unsubscribe_and_unknown_collection(db_session, sample_member):
    received: list[changes.ChangeEvent] = []
    unsubscribe = changes.subscribe("members", received.append)
    unsubscribe()
    attendance_service.mark_entry(db_session, sample_member.id)
    assert received == []

    with pytest.raises(ValueError):
        changes.subscribe("invoices", received.append)
