from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel

AttendanceStatus = Literal["present", "left"]


class AttendanceEntryRequest(BaseModel):
    member_id: int
    at: Optional[datetime] = None


class AttendanceExitRequest(BaseModel):
    member_id: Optional[int] = None
    at: Optional[datetime] = None


class AttendanceOut(BaseModel):
    id: int
    member_id: int
    member_name: str
    date: date
    entry_time: datetime
    exit_time: Optional[datetime]
    status: AttendanceStatus
    duration_minutes: Optional[int]

    class Config:
        from_attributes = True


class AttendanceListResponse(BaseModel):
    items: List[AttendanceOut]
    total: int
    page: int
    page_size: int
