from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.auth.deps import require_admin
from app.core.db import get_db
from app.models.user import User
from app.schemas.attendance import (
    AttendanceEntryRequest,
    AttendanceExitRequest,
    AttendanceListResponse,
    AttendanceOut,
)
from app.services import attendance as attendance_service
from app.services.reporting import ATTENDANCE_EXPORT_HEADERS, format_attendance_row, stream_csv

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.get("", response_model=AttendanceListResponse)
@router.get("/", response_model=AttendanceListResponse, include_in_schema=False)
def list_attendance(
    *,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    member_id: Optional[int] = Query(default=None),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> AttendanceListResponse:
    return attendance_service.list_attendance(
        db,
        start_date=start_date,
        end_date=end_date,
        member_id=member_id,
        status_filter=status_filter,
        page=page,
        page_size=page_size,
    )


@router.get("/today", response_model=List[AttendanceOut])
def today_attendance(
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> List[AttendanceOut]:
    return [AttendanceOut.model_validate(record) for record in attendance_service.today_attendance(db)]


@router.get("/export.csv", status_code=status.HTTP_200_OK)
def export_attendance(
    *,
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    member_id: Optional[int] = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> StreamingResponse:
    records = attendance_service.build_attendance_query(
        db,
        start_date=start_date,
        end_date=end_date,
        member_id=member_id,
    ).all()
    rows = (format_attendance_row(record) for record in records)
    response = StreamingResponse(stream_csv(ATTENDANCE_EXPORT_HEADERS, rows), media_type="text/csv")
    response.headers["Content-Disposition"] = "attachment; filename=attendance_report.csv"
    return response


@router.post("/entry", response_model=AttendanceOut, status_code=status.HTTP_201_CREATED)
def mark_entry(
    payload: AttendanceEntryRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> AttendanceOut:
    record = attendance_service.mark_entry(db, payload.member_id, at=payload.at)
    return AttendanceOut.model_validate(record)


@router.post("/{attendance_id:int}/exit", response_model=AttendanceOut)
def mark_exit(
    attendance_id: int,
    payload: Optional[AttendanceExitRequest] = None,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> AttendanceOut:
    payload = payload or AttendanceExitRequest()
    record = attendance_service.mark_exit(db, attendance_id, member_id=payload.member_id, at=payload.at)
    return AttendanceOut.model_validate(record)


@router.get("/open/{member_id:int}", response_model=Optional[AttendanceOut])
def open_visit(
    member_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> Optional[AttendanceOut]:
    record = attendance_service.get_open_attendance(db, member_id)
    return AttendanceOut.model_validate(record) if record else None
