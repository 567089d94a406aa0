from fastapi import APIRouter, Depends
from src.auth import AuthContext, get_current_auth
from src.models.auth import MeResponse

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.get("/me", response_model=MeResponse)
async def get_me(auth: AuthContext = Depends(get_current_auth)):
    """Get current actor claims and the operations its role allows."""
    return MeResponse(
        user_id=auth.user_id,
        org_id=auth.org_id,
        role=auth.role,
        permissions=list(auth.permissions),
    )
