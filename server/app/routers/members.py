from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.auth.deps import require_admin
from app.core.db import get_db
from app.models.user import User
from app.schemas.due import MemberDuesResponse
from app.schemas.member import (
    MemberAuditOut,
    MemberCreate,
    MemberCreateResponse,
    MemberCredentialsRequest,
    MemberCredentialsResponse,
    MemberListResponse,
    MemberOut,
    MemberUpdate,
)
from app.services import dues as dues_service
from app.services import members as members_service
from app.services.reporting import MEMBER_EXPORT_HEADERS, format_member_row, stream_csv

router = APIRouter(prefix="/members", tags=["members"])


@router.get("", response_model=MemberListResponse)
@router.get("/", response_model=MemberListResponse, include_in_schema=False)
def list_members(
    *,
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=100),
    q: Optional[str] = Query(default=None),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    shift: Optional[str] = Query(default=None),
    seat: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> MemberListResponse:
    return members_service.list_members(
        db,
        q=q,
        status_filter=status_filter,
        shift=shift,
        seat=seat,
        page=page,
        page_size=page_size,
    )


@router.get("/export.csv", status_code=status.HTTP_200_OK)
def export_members(
    *,
    q: Optional[str] = Query(default=None),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    shift: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> StreamingResponse:
    members = members_service.build_members_query(db, q=q, status_filter=status_filter, shift=shift).all()
    rows = (format_member_row(member) for member in members)
    response = StreamingResponse(stream_csv(MEMBER_EXPORT_HEADERS, rows), media_type="text/csv")
    response.headers["Content-Disposition"] = "attachment; filename=members_export.csv"
    return response


@router.post("", response_model=MemberCreateResponse, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=MemberCreateResponse, status_code=status.HTTP_201_CREATED, include_in_schema=False)
def create_member(
    payload: MemberCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> MemberCreateResponse:
    member, temporary_password = members_service.add_member(db, payload, current_user)
    data = MemberOut.model_validate(member).model_dump()
    return MemberCreateResponse(**data, temporary_password=temporary_password)


@router.get("/{member_id:int}", response_model=MemberOut)
def get_member(
    member_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> MemberOut:
    return MemberOut.model_validate(members_service.get_member(db, member_id))


@router.put("/{member_id:int}", response_model=MemberOut)
@router.patch("/{member_id:int}", response_model=MemberOut)
def update_member(
    member_id: int,
    payload: MemberUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> MemberOut:
    member = members_service.update_member(db, member_id, payload, current_user)
    return MemberOut.model_validate(member)


@router.post("/{member_id:int}/toggle-status", response_model=MemberOut)
def toggle_member_status(
    member_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> MemberOut:
    member = members_service.toggle_status(db, member_id, current_user)
    return MemberOut.model_validate(member)


@router.delete("/{member_id:int}", status_code=status.HTTP_204_NO_CONTENT)
def delete_member(
    member_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> Response:
    members_service.delete_member(db, member_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{member_id:int}/credentials", response_model=MemberCredentialsResponse)
def set_member_password(
    member_id: int,
    payload: MemberCredentialsRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> MemberCredentialsResponse:
    return members_service.set_member_password(db, member_id, payload)


@router.get("/{member_id:int}/history", response_model=List[MemberAuditOut])
def member_history(
    member_id: int,
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> List[MemberAuditOut]:
    entries = members_service.member_history(db, member_id, limit=limit)
    return [MemberAuditOut.model_validate(entry) for entry in entries]


@router.get("/{member_id:int}/dues", response_model=MemberDuesResponse)
def member_dues(
    member_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> MemberDuesResponse:
    return dues_service.member_dues(db, member_id)
