"""
포인트 원장 API 라우터

- GET /points/balance: 내 포인트 잔액 (원장 합계, 0 미만은 0)
- GET /points/history: 내 포인트 내역 (최신순)
"""

from fastapi import APIRouter, Depends, Query

from partnerapi.core.auth_middleware import get_current_active_user
from partnerapi.deps import get_point_service
from partnerapi.schemas.pagination import PaginationLimits
from partnerapi.schemas.points import PointsBalanceResponse, PointsHistoryResponse
from partnerapi.schemas.user import User as UserSchema
from partnerapi.services.point_service import PointService

router = APIRouter(prefix="/points", tags=["points"])


@router.get("/balance", response_model=PointsBalanceResponse)
async def get_my_balance(
    current_user: UserSchema = Depends(get_current_active_user),
    point_service: PointService = Depends(get_point_service),
) -> PointsBalanceResponse:
    return point_service.get_balance_response(current_user.id)


@router.get("/history", response_model=PointsHistoryResponse)
async def get_my_history(
    limit: int = Query(
        PaginationLimits.POINTS_HISTORY["default"],
        ge=PaginationLimits.POINTS_HISTORY["min"],
        le=PaginationLimits.POINTS_HISTORY["max"],
        description="조회할 항목 수",
    ),
    offset: int = Query(0, ge=0, description="시작 위치"),
    current_user: UserSchema = Depends(get_current_active_user),
    point_service: PointService = Depends(get_point_service),
) -> PointsHistoryResponse:
    return point_service.get_history(current_user.id, limit=limit, offset=offset)
