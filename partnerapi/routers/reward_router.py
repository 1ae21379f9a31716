"""
리워드 API 라우터

사용자용 엔드포인트:
- GET /rewards: 활성 리워드 카탈로그
- POST /rewards/{reward_id}/redeem: 교환 요청 (승인 시 포인트 차감)
- GET /rewards/redemptions/me: 내 교환 요청 목록

관리자용 엔드포인트:
- GET/POST /rewards/admin/items: 카탈로그 관리
- PUT/DELETE /rewards/admin/items/{reward_id}: 수정 / 비활성화
- GET /rewards/admin/redemptions: 교환 요청 목록
- POST /rewards/admin/redemptions/{id}/approve|reject
- PUT /rewards/admin/redemptions/{id}/shipment: 배송 상태 변경
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from partnerapi.core.auth_middleware import get_current_active_user, require_admin
from partnerapi.core.exceptions import BaseAPIException
from partnerapi.deps import get_reward_service
from partnerapi.models.rewards import RedemptionStatus
from partnerapi.schemas.pagination import PaginationLimits
from partnerapi.schemas.rewards import (
    Redemption,
    RedemptionListResponse,
    RedemptionRejectRequest,
    RedemptionRequest,
    Reward,
    RewardCreate,
    RewardUpdate,
    ShipmentUpdateRequest,
)
from partnerapi.schemas.user import User as UserSchema
from partnerapi.services.reward_service import RewardService
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rewards", tags=["rewards"])


# ============================================================================
# 카탈로그
# ============================================================================


@router.get("", response_model=List[Reward])
async def get_rewards(
    current_user: UserSchema = Depends(get_current_active_user),
    reward_service: RewardService = Depends(get_reward_service),
) -> List[Reward]:
    return reward_service.get_rewards(active_only=True)


@router.get("/admin/items", response_model=List[Reward])
async def get_all_rewards(
    current_user: UserSchema = Depends(require_admin),
    reward_service: RewardService = Depends(get_reward_service),
) -> List[Reward]:
    return reward_service.get_rewards(active_only=False)


@router.post("/admin/items", response_model=Reward, status_code=status.HTTP_201_CREATED)
async def create_reward(
    request: RewardCreate,
    current_user: UserSchema = Depends(require_admin),
    reward_service: RewardService = Depends(get_reward_service),
) -> Reward:
    return reward_service.create_reward(request)


@router.put("/admin/items/{reward_id}", response_model=Reward)
async def update_reward(
    request: RewardUpdate,
    reward_id: int = Path(..., description="리워드 ID"),
    current_user: UserSchema = Depends(require_admin),
    reward_service: RewardService = Depends(get_reward_service),
) -> Reward:
    return reward_service.update_reward(reward_id, request)


@router.delete("/admin/items/{reward_id}", response_model=Reward)
async def deactivate_reward(
    reward_id: int = Path(..., description="리워드 ID"),
    current_user: UserSchema = Depends(require_admin),
    reward_service: RewardService = Depends(get_reward_service),
) -> Reward:
    """카탈로그에서 내리기 (교환 이력은 유지)"""
    return reward_service.deactivate_reward(reward_id)


# ============================================================================
# 교환 요청
# ============================================================================


@router.post(
    "/{reward_id}/redeem",
    response_model=Redemption,
    status_code=status.HTTP_201_CREATED,
)
async def redeem_reward(
    reward_id: int = Path(..., description="리워드 ID"),
    request: Optional[RedemptionRequest] = None,
    current_user: UserSchema = Depends(get_current_active_user),
    reward_service: RewardService = Depends(get_reward_service),
) -> Redemption:
    """리워드 교환 요청

    잔액이 부족하면 400, 같은 리워드에 대기 중인 요청이 있으면 409.
    포인트는 관리자 승인 시점에 차감됩니다.
    """
    delivery_address = request.delivery_address if request else None
    try:
        return reward_service.request_redemption(
            current_user.id, reward_id, delivery_address=delivery_address
        )
    except BaseAPIException:
        raise
    except Exception as e:
        logger.error(f"Failed to redeem reward {reward_id} for user {current_user.id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to request redemption")


@router.get("/redemptions/me", response_model=RedemptionListResponse)
async def get_my_redemptions(
    limit: int = Query(
        PaginationLimits.REDEMPTIONS["default"],
        ge=PaginationLimits.REDEMPTIONS["min"],
        le=PaginationLimits.REDEMPTIONS["max"],
    ),
    offset: int = Query(0, ge=0),
    current_user: UserSchema = Depends(get_current_active_user),
    reward_service: RewardService = Depends(get_reward_service),
) -> RedemptionListResponse:
    return reward_service.get_user_redemptions(current_user.id, limit=limit, offset=offset)


@router.get("/admin/redemptions", response_model=RedemptionListResponse)
async def get_redemptions(
    redemption_status: Optional[RedemptionStatus] = Query(None, alias="status"),
    limit: int = Query(
        PaginationLimits.REDEMPTIONS["default"],
        ge=PaginationLimits.REDEMPTIONS["min"],
        le=PaginationLimits.REDEMPTIONS["max"],
    ),
    offset: int = Query(0, ge=0),
    current_user: UserSchema = Depends(require_admin),
    reward_service: RewardService = Depends(get_reward_service),
) -> RedemptionListResponse:
    return reward_service.get_redemptions(
        status=redemption_status, limit=limit, offset=offset
    )


@router.post("/admin/redemptions/{redemption_id}/approve", response_model=Redemption)
async def approve_redemption(
    redemption_id: int = Path(..., description="교환 요청 ID"),
    current_user: UserSchema = Depends(require_admin),
    reward_service: RewardService = Depends(get_reward_service),
) -> Redemption:
    try:
        return reward_service.approve_redemption(redemption_id, current_user.id)
    except BaseAPIException:
        raise
    except Exception as e:
        logger.error(f"Failed to approve redemption {redemption_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to approve redemption")


@router.post("/admin/redemptions/{redemption_id}/reject", response_model=Redemption)
async def reject_redemption(
    redemption_id: int = Path(..., description="교환 요청 ID"),
    request: Optional[RedemptionRejectRequest] = None,
    current_user: UserSchema = Depends(require_admin),
    reward_service: RewardService = Depends(get_reward_service),
) -> Redemption:
    reason = request.reason if request else None
    return reward_service.reject_redemption(redemption_id, current_user.id, reason=reason)


@router.put("/admin/redemptions/{redemption_id}/shipment", response_model=Redemption)
async def update_shipment(
    request: ShipmentUpdateRequest,
    redemption_id: int = Path(..., description="교환 요청 ID"),
    current_user: UserSchema = Depends(require_admin),
    reward_service: RewardService = Depends(get_reward_service),
) -> Redemption:
    """배송 상태 변경 (pending -> shipped -> delivered, 역방향 불가)"""
    return reward_service.update_shipment(
        redemption_id, request.shipment_status, current_user.id
    )
