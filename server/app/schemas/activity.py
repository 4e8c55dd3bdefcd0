from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

ActivityType = Literal["entry", "exit", "payment", "member_added", "member_removed"]


class ActivityOut(BaseModel):
    id: int
    type: ActivityType
    member_id: int
    member_name: str
    timestamp: datetime
    description: str

    class Config:
        from_attributes = True
