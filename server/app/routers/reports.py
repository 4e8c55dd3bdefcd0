from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.deps import require_admin
from app.core.db import get_db
from app.models.user import User
from app.schemas.reports import DashboardStats
from app.services.reporting import dashboard_stats

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/stats", response_model=DashboardStats)
def get_dashboard_stats(
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> DashboardStats:
    return dashboard_stats(db)
