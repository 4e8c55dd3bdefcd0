from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel


class DashboardStats(BaseModel):
    total_members: int
    active_members: int
    present_today: int
    pending_dues: int
    total_dues_amount: Decimal
    overdue_dues: int
    overdue_amount: Decimal
    collected_this_month: Decimal
