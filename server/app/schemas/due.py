from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

DueStatus = Literal["pending", "paid", "overdue"]


class DueCreate(BaseModel):
    member_id: int
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    period_start: Optional[date] = None
    due_date: Optional[date] = None
    period: Optional[str] = Field(None, min_length=1, max_length=20)


class DuePaymentRequest(BaseModel):
    paid_at: Optional[datetime] = None
    receipt_number: Optional[str] = Field(None, min_length=1, max_length=40)


class DueOut(BaseModel):
    id: int
    member_id: int
    member_name: str
    amount: Decimal
    due_date: date
    paid_at: Optional[datetime]
    status: DueStatus
    period: str
    receipt_number: Optional[str]
    created_at: datetime


class DueListResponse(BaseModel):
    items: List[DueOut]
    total: int
    page: int
    page_size: int


class DuePaymentResponse(BaseModel):
    paid: DueOut
    next_due: DueOut
    receipt_number: str


class MemberDuesResponse(BaseModel):
    member_id: int
    items: List[DueOut]
    outstanding_total: Decimal


class DueSummaryResponse(BaseModel):
    pending_count: int
    pending_total: Decimal
    overdue_count: int
    overdue_total: Decimal
    paid_count: int
    paid_total: Decimal
    collected_this_month: Decimal


class ReceiptOut(BaseModel):
    receipt_number: str
    library_name: str
    library_address: Optional[str]
    library_contact: Optional[str]
    member_id: int
    member_name: str
    seat_number: Optional[str]
    period: str
    amount: Decimal
    currency_symbol: str
    paid_at: datetime
