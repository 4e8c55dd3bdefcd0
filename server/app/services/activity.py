from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.models.activity import ACTIVITY_TYPES, Activity

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    *,
    type: str,
    member_id: int,
    member_name: str,
    description: str,
    timestamp: datetime | None = None,
) -> Activity:
    """Append an activity inside the caller's transaction; the caller commits."""

    if type not in ACTIVITY_TYPES:
        raise ValueError(f"Unknown activity type: {type}")
    activity = Activity(
        type=type,
        member_id=member_id,
        member_name=member_name,
        description=description,
        timestamp=timestamp or utcnow(),
    )
    db.add(activity)
    return activity


def recent_activities(db: Session, *, limit: int = 10, member_id: int | None = None) -> list[Activity]:
    query = db.query(Activity)
    if member_id is not None:
        query = query.filter(Activity.member_id == member_id)
    return query.order_by(Activity.timestamp.desc(), Activity.id.desc()).limit(limit).all()
