from __future__ import annotations

from typing import Any, Dict

from sqlalchemy.orm import Session

from app.models.member import Member
from app.models.member_audit import MemberAudit

_TRACKED_FIELDS = {
    "name",
    "email",
    "phone",
    "address",
    "seat_number",
    "shift",
    "monthly_fee",
    "status",
    "join_date",
}


def snapshot_member(member: Member) -> Dict[str, Any]:
    """Create a snapshot of tracked fields for comparison."""

    return {field: getattr(member, field) for field in _TRACKED_FIELDS}


def _to_string(value: Any) -> str | None:
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def record_member_changes(db: Session, member: Member, previous_snapshot: Dict[str, Any], actor_id: int | None) -> int:
    """Persist audit entries for fields that changed. Returns how many were written."""

    current_snapshot = snapshot_member(member)
    written = 0
    for field in sorted(previous_snapshot):
        old_value = previous_snapshot[field]
        new_value = current_snapshot.get(field)
        if _to_string(old_value) == _to_string(new_value):
            continue
        db.add(
            MemberAudit(
                member_id=member.id,
                member_name=member.name,
                field=field,
                old_value=_to_string(old_value),
                new_value=_to_string(new_value),
                changed_by_id=actor_id,
            )
        )
        written += 1
    return written


def member_history(db: Session, member_id: int, *, limit: int = 50) -> list[MemberAudit]:
    return (
        db.query(MemberAudit)
        .filter(MemberAudit.member_id == member_id)
        .order_by(MemberAudit.changed_at.desc(), MemberAudit.id.desc())
        .limit(limit)
        .all()
    )
