from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.auth.deps import require_admin
from app.core.clock import local_today
from app.core.db import get_db
from app.models.user import User
from app.schemas.due import (
    DueCreate,
    DueListResponse,
    DueOut,
    DuePaymentRequest,
    DuePaymentResponse,
    DueSummaryResponse,
    ReceiptOut,
)
from app.services import dues as dues_service
from app.services.reporting import DUE_EXPORT_HEADERS, format_due_row, stream_csv

router = APIRouter(prefix="/dues", tags=["dues"])


@router.get("", response_model=DueListResponse)
@router.get("/", response_model=DueListResponse, include_in_schema=False)
def list_dues(
    *,
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=100),
    member_id: Optional[int] = Query(default=None),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    q: Optional[str] = Query(default=None),
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> DueListResponse:
    return dues_service.list_dues(
        db,
        page=page,
        page_size=page_size,
        member_id=member_id,
        status_filter=status_filter,
        q=q,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/summary", response_model=DueSummaryResponse)
def dues_summary(
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> DueSummaryResponse:
    return dues_service.summarize_dues(db)


@router.get("/export.csv", status_code=status.HTTP_200_OK)
def export_dues(
    *,
    member_id: Optional[int] = Query(default=None),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> StreamingResponse:
    dues = dues_service.get_dues_for_export(
        db,
        member_id=member_id,
        status_filter=status_filter,
        start_date=start_date,
        end_date=end_date,
    )
    rows = (format_due_row(due) for due in dues)
    response = StreamingResponse(stream_csv(DUE_EXPORT_HEADERS, rows), media_type="text/csv")
    response.headers["Content-Disposition"] = "attachment; filename=dues_report.csv"
    return response


@router.post("", response_model=DueOut, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=DueOut, status_code=status.HTTP_201_CREATED, include_in_schema=False)
def create_due(
    payload: DueCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> DueOut:
    due = dues_service.create_due(db, payload)
    return dues_service.due_to_schema(due, local_today())


@router.get("/{due_id:int}", response_model=DueOut)
def get_due(
    due_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> DueOut:
    return dues_service.due_to_schema(dues_service.get_due(db, due_id), local_today())


@router.post("/{due_id:int}/pay", response_model=DuePaymentResponse)
def pay_due(
    due_id: int,
    payload: Optional[DuePaymentRequest] = None,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> DuePaymentResponse:
    paid, next_due = dues_service.mark_due_paid(db, due_id, payload)
    today = local_today()
    return DuePaymentResponse(
        paid=dues_service.due_to_schema(paid, today),
        next_due=dues_service.due_to_schema(next_due, today),
        receipt_number=paid.receipt_number,
    )


@router.get("/{due_id:int}/receipt", response_model=ReceiptOut)
def due_receipt(
    due_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> ReceiptOut:
    return dues_service.build_receipt(db, due_id)
