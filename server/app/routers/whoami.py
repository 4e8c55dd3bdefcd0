from fastapi import APIRouter, Depends

from app.auth.deps import get_current_principal
from app.schemas.auth import WhoAmIResponse
from app.services.identity import Principal

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/whoami", response_model=WhoAmIResponse)
def whoami(principal: Principal = Depends(get_current_principal)) -> WhoAmIResponse:
    user = principal.user
    return WhoAmIResponse(
        id=user.id,
        user=user.email,
        full_name=user.full_name,
        roles=user.role_names,
        kind=principal.kind,
        member_id=principal.member.id if principal.member else None,
    )
