"""Member self-service endpoints. Every call acts on the caller's own member record."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.auth.deps import require_member
from app.core.db import get_db
from app.models.member import Member
from app.schemas.activity import ActivityOut
from app.schemas.attendance import AttendanceListResponse, AttendanceOut
from app.schemas.due import MemberDuesResponse, ReceiptOut
from app.schemas.member import MemberOut
from app.services import attendance as attendance_service
from app.services import dues as dues_service
from app.services.activity import recent_activities

router = APIRouter(prefix="/me", tags=["portal"])


def _ensure_own(member: Member, owner_id: int) -> None:
    if owner_id != member.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your record")


@router.get("", response_model=MemberOut)
def my_profile(member: Member = Depends(require_member)) -> MemberOut:
    return MemberOut.model_validate(member)


@router.get("/attendance", response_model=AttendanceListResponse)
def my_attendance(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    member: Member = Depends(require_member),
    db: Session = Depends(get_db),
) -> AttendanceListResponse:
    return attendance_service.list_attendance(db, member_id=member.id, page=page, page_size=page_size)


@router.get("/attendance/current", response_model=Optional[AttendanceOut])
def my_current_visit(
    member: Member = Depends(require_member),
    db: Session = Depends(get_db),
) -> Optional[AttendanceOut]:
    record = attendance_service.get_open_attendance(db, member.id)
    return AttendanceOut.model_validate(record) if record else None


@router.post("/attendance/entry", response_model=AttendanceOut, status_code=status.HTTP_201_CREATED)
def my_entry(
    member: Member = Depends(require_member),
    db: Session = Depends(get_db),
) -> AttendanceOut:
    return AttendanceOut.model_validate(attendance_service.mark_entry(db, member.id))


@router.post("/attendance/exit", response_model=AttendanceOut)
def my_exit(
    member: Member = Depends(require_member),
    db: Session = Depends(get_db),
) -> AttendanceOut:
    return AttendanceOut.model_validate(attendance_service.close_open_visit(db, member.id))


@router.post("/attendance/{attendance_id:int}/exit", response_model=AttendanceOut)
def my_exit_by_id(
    attendance_id: int,
    member: Member = Depends(require_member),
    db: Session = Depends(get_db),
) -> AttendanceOut:
    _ensure_own(member, attendance_service.get_attendance(db, attendance_id).member_id)
    return AttendanceOut.model_validate(attendance_service.mark_exit(db, attendance_id, member_id=member.id))


@router.get("/dues", response_model=MemberDuesResponse)
def my_dues(
    member: Member = Depends(require_member),
    db: Session = Depends(get_db),
) -> MemberDuesResponse:
    return dues_service.member_dues(db, member.id)


@router.get("/dues/{due_id:int}/receipt", response_model=ReceiptOut)
def my_receipt(
    due_id: int,
    member: Member = Depends(require_member),
    db: Session = Depends(get_db),
) -> ReceiptOut:
    _ensure_own(member, dues_service.get_due(db, due_id).member_id)
    return dues_service.build_receipt(db, due_id)


@router.get("/activities", response_model=List[ActivityOut])
def my_activities(
    limit: int = Query(10, ge=1, le=100),
    member: Member = Depends(require_member),
    db: Session = Depends(get_db),
) -> List[ActivityOut]:
    return [ActivityOut.model_validate(item) for item in recent_activities(db, limit=limit, member_id=member.id)]
