from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

MemberStatus = Literal["active", "inactive"]
MemberShift = Literal["morning", "evening", "full_day"]

ALLOWED_MEMBER_STATUSES = ("active", "inactive")
ALLOWED_MEMBER_SHIFTS = ("morning", "evening", "full_day")


def _strip_required(value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise ValueError("Field is required")
    return cleaned


class MemberBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    email: Optional[EmailStr] = None
    phone: str = Field(..., min_length=1, max_length=25)
    address: Optional[str] = Field(None, max_length=255)
    seat_number: str = Field(..., min_length=1, max_length=20)
    shift: Optional[MemberShift] = None
    monthly_fee: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    join_date: Optional[date] = None

    @field_validator("name", "phone", "seat_number")
    @classmethod
    def _required_text(cls, value: str) -> str:
        return _strip_required(value)


class MemberCreate(MemberBase):
    # Falls back to the configured default fee.
    monthly_fee: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    password: Optional[str] = Field(None, max_length=128)
    issue_credentials: bool = False


class MemberUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, min_length=1, max_length=25)
    address: Optional[str] = Field(None, max_length=255)
    seat_number: Optional[str] = Field(None, min_length=1, max_length=20)
    shift: Optional[MemberShift] = None
    monthly_fee: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    status: Optional[MemberStatus] = None
    join_date: Optional[date] = None

    @field_validator("name", "phone", "seat_number")
    @classmethod
    def _required_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _strip_required(value)


class MemberOut(BaseModel):
    id: int
    name: str
    email: Optional[str]
    phone: str
    address: Optional[str]
    seat_number: str
    shift: Optional[MemberShift]
    monthly_fee: Decimal
    status: MemberStatus
    join_date: date
    has_credentials: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MemberCreateResponse(MemberOut):
    temporary_password: Optional[str] = None


class MemberListResponse(BaseModel):
    items: List[MemberOut]
    total: int
    page: int
    page_size: int


class MemberCredentialsRequest(BaseModel):
    password: Optional[str] = Field(None, max_length=128)
    generate: bool = False


class MemberCredentialsResponse(BaseModel):
    member_id: int
    email: str
    temporary_password: Optional[str] = None


class MemberAuditOut(BaseModel):
    id: int
    member_name: str
    field: str
    old_value: Optional[str]
    new_value: Optional[str]
    changed_by_id: Optional[int]
    changed_by: Optional[str] = None
    changed_at: datetime

    class Config:
        from_attributes = True
