from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.security import create_access_token
from app.core.db import get_db
from app.schemas.auth import LoginRequest, MemberLoginRequest, TokenResponse
from app.services.identity import Principal, authenticate_member, authenticate_user

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_token(principal: Principal) -> TokenResponse:
    token = create_access_token(subject=str(principal.user.id), roles=principal.user.role_names)
    return TokenResponse(
        access_token=token,
        kind=principal.kind,
        member_id=principal.member.id if principal.member else None,
    )


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    principal = authenticate_user(db, payload.email, payload.password)
    return _issue_token(principal)


@router.post("/member-login", response_model=TokenResponse)
def member_login(payload: MemberLoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    principal = authenticate_member(db, payload.identifier, payload.password)
    return _issue_token(principal)
