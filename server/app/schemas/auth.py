from typing import Literal

from pydantic import BaseModel, EmailStr, Field

PrincipalKind = Literal["admin", "member"]


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class MemberLoginRequest(BaseModel):
    # Member id or the email on the member record.
    identifier: str = Field(..., min_length=1, max_length=255)
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    kind: PrincipalKind
    member_id: int | None = None


class WhoAmIResponse(BaseModel):
    id: int
    user: str
    roles: list[str]
    kind: PrincipalKind
    member_id: int | None = None
    full_name: str | None = None
