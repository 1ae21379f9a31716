from fastapi import APIRouter, Depends, Path

from partnerapi.core.auth_middleware import get_current_active_user, require_admin
from partnerapi.deps import get_user_service
from partnerapi.schemas.user import User as UserSchema, UserStats
from partnerapi.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserSchema)
async def get_me(current_user: UserSchema = Depends(get_current_active_user)) -> UserSchema:
    return current_user


@router.get("/me/stats", response_model=UserStats)
async def get_my_stats(
    current_user: UserSchema = Depends(get_current_active_user),
    user_service: UserService = Depends(get_user_service),
) -> UserStats:
    """대시보드 통계"""
    return user_service.get_user_stats(current_user.id)


@router.get("/{user_id}/stats", response_model=UserStats)
async def get_user_stats(
    user_id: int = Path(..., description="사용자 ID"),
    current_user: UserSchema = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> UserStats:
    return user_service.get_user_stats(user_id)
