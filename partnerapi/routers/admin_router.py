"""
관리자 API 라우터

- POST /admin/points/recalculate: 전체 딜 포인트 재계산
- GET /admin/rate-tables: 요율표 목록
- GET/PUT /admin/rate-tables/default, /admin/rate-tables/{region}: 요율표 조회/수정
- /admin/users: 가입 승인, 거절, 권한 변경, 삭제, 초대
- /admin/support-tickets: 문의 티켓 목록, 응답
- POST /admin/imports/deals, /admin/imports/users: 일괄 등록

모든 엔드포인트는 관리자 권한 필요
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from partnerapi.core.auth_middleware import require_admin, require_role
from partnerapi.core.exceptions import BaseAPIException
from partnerapi.deps import (
    get_deal_service,
    get_rate_table_service,
    get_recalculation_service,
    get_support_service,
    get_user_service,
)
from partnerapi.models.support_ticket import TicketStatus
from partnerapi.models.user import UserRole
from partnerapi.schemas.auth import MessageResponse
from partnerapi.schemas.deal import BatchImportResult, DealImportRow
from partnerapi.schemas.pagination import PaginationLimits
from partnerapi.schemas.points import RecalculationResult
from partnerapi.schemas.rate_table import RateTable, RateTableUpdate
from partnerapi.schemas.support import (
    SupportTicket,
    SupportTicketListResponse,
    SupportTicketUpdate,
)
from partnerapi.schemas.user import (
    User as UserSchema,
    UserCreate,
    UserInvite,
    UserInviteBulk,
    UserRoleUpdate,
)
from partnerapi.services.deal_service import DealService
from partnerapi.services.rate_table_service import RateTableService
from partnerapi.services.recalculation_service import RecalculationService
from partnerapi.services.support_service import SupportService
from partnerapi.services.user_service import UserService
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

DEFAULT_REGION = "default"


def _region_or_none(region: str):
    return None if region == DEFAULT_REGION else region


# ============================================================================
# 포인트 재계산 / 요율표
# ============================================================================


@router.post("/points/recalculate", response_model=RecalculationResult)
async def recalculate_points(
    current_user: UserSchema = Depends(require_admin),
    recalculation_service: RecalculationService = Depends(get_recalculation_service),
) -> RecalculationResult:
    """현재 요율표 기준으로 모든 딜 포인트와 원장 적립 항목을 다시 맞춤

    딜 단위로 커밋하므로 일부 실패해도 나머지는 반영되며, 실패 목록은 errors 로 반환.
    """
    try:
        logger.info(f"Recalculation triggered by admin {current_user.id}")
        return recalculation_service.recalculate_all_deals()
    except BaseAPIException:
        raise
    except Exception as e:
        logger.error(f"Recalculation failed: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to recalculate points")


@router.get("/rate-tables", response_model=List[RateTable])
async def list_rate_tables(
    current_user: UserSchema = Depends(require_admin),
    rate_table_service: RateTableService = Depends(get_rate_table_service),
) -> List[RateTable]:
    return rate_table_service.list_rate_tables()


@router.get("/rate-tables/{region}", response_model=RateTable)
async def get_rate_table(
    region: str = Path(..., description="지역 코드 (기본 요율표는 default)"),
    current_user: UserSchema = Depends(require_admin),
    rate_table_service: RateTableService = Depends(get_rate_table_service),
) -> RateTable:
    return rate_table_service.get_rate_table(_region_or_none(region))


@router.put("/rate-tables/{region}", response_model=RateTable)
async def update_rate_table(
    request: RateTableUpdate,
    region: str = Path(..., description="지역 코드 (기본 요율표는 default)"),
    current_user: UserSchema = Depends(require_admin),
    rate_table_service: RateTableService = Depends(get_rate_table_service),
) -> RateTable:
    """요율 변경은 기존 딜에 자동 반영되지 않음 (재계산 필요)"""
    return rate_table_service.update_rate_table(
        request, current_user.id, region=_region_or_none(region)
    )


# ============================================================================
# 사용자 관리
# ============================================================================


@router.get("/users", response_model=List[UserSchema])
async def list_users(
    limit: int = Query(
        PaginationLimits.USER_LIST["default"],
        ge=PaginationLimits.USER_LIST["min"],
        le=PaginationLimits.USER_LIST["max"],
    ),
    offset: int = Query(0, ge=0),
    current_user: UserSchema = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> List[UserSchema]:
    return user_service.get_users(limit=limit, offset=offset)


@router.post("/users", response_model=UserSchema, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: UserCreate,
    current_user: UserSchema = Depends(require_role(UserRole.ADMIN)),
    user_service: UserService = Depends(get_user_service),
) -> UserSchema:
    """관리자가 만든 사용자는 바로 승인 상태"""
    return user_service.create_user(request, actor=current_user)


@router.get("/users/pending", response_model=List[UserSchema])
async def list_pending_users(
    current_user: UserSchema = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> List[UserSchema]:
    return user_service.get_pending_users()


@router.post(
    "/users/invite", response_model=UserSchema, status_code=status.HTTP_201_CREATED
)
async def invite_user(
    request: UserInvite,
    current_user: UserSchema = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> UserSchema:
    """초대 토큰 발급 - 초대받은 사용자는 가입 완료 시 승인됨"""
    return user_service.invite_user(request, current_user)


@router.post("/users/invite-bulk", response_model=BatchImportResult)
async def invite_users(
    request: UserInviteBulk,
    current_user: UserSchema = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> BatchImportResult:
    return user_service.invite_users(request.users, current_user)


@router.post("/users/{user_id}/approve", response_model=UserSchema)
async def approve_user(
    user_id: int = Path(..., description="사용자 ID"),
    current_user: UserSchema = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> UserSchema:
    return user_service.approve_user(user_id, current_user.id)


@router.post("/users/{user_id}/reject", response_model=UserSchema)
async def reject_user(
    user_id: int = Path(..., description="사용자 ID"),
    current_user: UserSchema = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> UserSchema:
    return user_service.reject_user(user_id)


@router.put("/users/{user_id}/role", response_model=UserSchema)
async def update_user_role(
    request: UserRoleUpdate,
    user_id: int = Path(..., description="사용자 ID"),
    current_user: UserSchema = Depends(require_role(UserRole.ADMIN)),
    user_service: UserService = Depends(get_user_service),
) -> UserSchema:
    return user_service.update_user_role(user_id, request.role, current_user)


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int = Path(..., description="사용자 ID"),
    current_user: UserSchema = Depends(require_role(UserRole.ADMIN)),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """사용자와 원장/교환/딜/알림/문의 티켓 삭제 (본인 계정은 삭제 불가)"""
    user_service.delete_user(user_id, current_user.id)
    return MessageResponse(message=f"User {user_id} deleted")


# ============================================================================
# 일괄 등록
# ============================================================================


@router.post("/imports/deals", response_model=BatchImportResult)
async def import_deals(
    rows: List[DealImportRow],
    current_user: UserSchema = Depends(require_admin),
    deal_service: DealService = Depends(get_deal_service),
) -> BatchImportResult:
    return deal_service.import_deals(rows, current_user.id)


@router.post("/imports/users", response_model=BatchImportResult)
async def import_users(
    rows: List[UserCreate],
    current_user: UserSchema = Depends(require_role(UserRole.ADMIN)),
    user_service: UserService = Depends(get_user_service),
) -> BatchImportResult:
    return user_service.import_users(rows, current_user)


# ============================================================================
# 문의 티켓
# ============================================================================


@router.get("/support-tickets", response_model=SupportTicketListResponse)
async def list_support_tickets(
    ticket_status: Optional[TicketStatus] = Query(None, alias="status"),
    current_user: UserSchema = Depends(require_admin),
    support_service: SupportService = Depends(get_support_service),
) -> SupportTicketListResponse:
    return support_service.get_all_tickets(status=ticket_status)


@router.patch("/support-tickets/{ticket_id}", response_model=SupportTicket)
async def update_support_ticket(
    request: SupportTicketUpdate,
    ticket_id: int = Path(..., description="티켓 ID"),
    current_user: UserSchema = Depends(require_admin),
    support_service: SupportService = Depends(get_support_service),
) -> SupportTicket:
    return support_service.update_ticket(ticket_id, current_user.id, request)
