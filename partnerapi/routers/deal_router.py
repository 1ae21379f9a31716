"""
딜 API 라우터

사용자용 엔드포인트:
- POST /deals: 딜 등록 (pending)
- GET /deals/me: 내 딜 목록
- GET /deals/{deal_id}: 딜 조회 (본인 또는 관리자)

관리자용 엔드포인트:
- GET /deals/admin/pending: 승인 대기 딜
- GET /deals/admin/all: 전체 딜 (페이지)
- POST /deals/admin/{deal_id}/approve: 딜 승인 + 포인트 적립
- POST /deals/admin/{deal_id}/reject: 딜 거절
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from partnerapi.core.auth_middleware import get_current_active_user, require_admin
from partnerapi.core.exceptions import AuthorizationError, BaseAPIException
from partnerapi.deps import get_deal_service
from partnerapi.models.deal import DealStatus
from partnerapi.schemas.deal import Deal, DealCreate, DealListResponse
from partnerapi.schemas.pagination import PaginationLimits
from partnerapi.schemas.user import User as UserSchema
from partnerapi.services.deal_service import DealService
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/deals", tags=["deals"])


@router.post("", response_model=Deal, status_code=status.HTTP_201_CREATED)
async def create_deal(
    request: DealCreate,
    current_user: UserSchema = Depends(get_current_active_user),
    deal_service: DealService = Depends(get_deal_service),
) -> Deal:
    """딜 등록 - 관리자 승인 전까지 포인트는 0"""
    return deal_service.create_deal(current_user.id, request)


@router.get("/me", response_model=List[Deal])
async def get_my_deals(
    current_user: UserSchema = Depends(get_current_active_user),
    deal_service: DealService = Depends(get_deal_service),
) -> List[Deal]:
    return deal_service.get_user_deals(current_user.id)


@router.get("/admin/pending", response_model=List[Deal])
async def get_pending_deals(
    current_user: UserSchema = Depends(require_admin),
    deal_service: DealService = Depends(get_deal_service),
) -> List[Deal]:
    return deal_service.get_pending_deals()


@router.get("/admin/all", response_model=DealListResponse)
async def get_all_deals(
    page: int = Query(1, ge=1, description="페이지 번호"),
    limit: int = Query(
        PaginationLimits.DEALS["default"],
        ge=PaginationLimits.DEALS["min"],
        le=PaginationLimits.DEALS["max"],
        description="페이지 크기",
    ),
    deal_status: Optional[DealStatus] = Query(None, alias="status"),
    current_user: UserSchema = Depends(require_admin),
    deal_service: DealService = Depends(get_deal_service),
) -> DealListResponse:
    return deal_service.get_all_deals(page=page, limit=limit, status=deal_status)


@router.get("/{deal_id}", response_model=Deal)
async def get_deal(
    deal_id: int = Path(..., description="딜 ID"),
    current_user: UserSchema = Depends(get_current_active_user),
    deal_service: DealService = Depends(get_deal_service),
) -> Deal:
    deal = deal_service.get_deal(deal_id)
    if deal.user_id != current_user.id and not current_user.is_admin:
        raise AuthorizationError("You can only view your own deals")
    return deal


@router.post("/admin/{deal_id}/approve", response_model=Deal)
async def approve_deal(
    deal_id: int = Path(..., description="딜 ID"),
    current_user: UserSchema = Depends(require_admin),
    deal_service: DealService = Depends(get_deal_service),
) -> Deal:
    """딜 승인

    현재 요율표로 포인트를 계산해 원장에 적립합니다. 이미 승인된 딜은 변화 없이
    그대로 반환하며, 거절된 딜은 409.
    """
    try:
        return deal_service.approve_deal(deal_id, current_user.id)
    except BaseAPIException:
        raise
    except Exception as e:
        logger.error(f"Failed to approve deal {deal_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to approve deal")


@router.post("/admin/{deal_id}/reject", response_model=Deal)
async def reject_deal(
    deal_id: int = Path(..., description="딜 ID"),
    current_user: UserSchema = Depends(require_admin),
    deal_service: DealService = Depends(get_deal_service),
) -> Deal:
    try:
        return deal_service.reject_deal(deal_id, current_user.id)
    except BaseAPIException:
        raise
    except Exception as e:
        logger.error(f"Failed to reject deal {deal_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to reject deal")
