from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.auth.deps import require_admin
from app.core.db import get_db
from app.models.user import User
from app.schemas.activity import ActivityOut
from app.services.activity import recent_activities

router = APIRouter(prefix="/activities", tags=["activities"])


@router.get("", response_model=List[ActivityOut])
@router.get("/", response_model=List[ActivityOut], include_in_schema=False)
def list_recent_activities(
    limit: int = Query(10, ge=1, le=100),
    member_id: Optional[int] = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> List[ActivityOut]:
    return [ActivityOut.model_validate(item) for item in recent_activities(db, limit=limit, member_id=member_id)]
