"""
리포트 API 라우터

- GET /reports/leaderboard: 순 포인트 상위 사용자 (인증 사용자 누구나)
- GET /reports/summary: 사용자/딜/매출/교환 요약 (관리자)
- GET /reports/user-ranking: 사용자 포인트 순위 (관리자)
- GET /reports/deals-per-user: 사용자별 딜 건수/매출 (관리자)
- GET /reports/redemptions: 교환 요청 현황 (관리자)
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from partnerapi.core.auth_middleware import get_current_active_user, require_admin
from partnerapi.deps import get_report_service
from partnerapi.models.rewards import RedemptionStatus
from partnerapi.schemas.pagination import PaginationLimits
from partnerapi.schemas.reports import (
    DealsPerUserEntry,
    LeaderboardResponse,
    RedemptionReportEntry,
    ReportSummary,
    UserRankingEntry,
)
from partnerapi.schemas.user import User as UserSchema
from partnerapi.services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    limit: Optional[int] = Query(
        None,
        ge=PaginationLimits.LEADERBOARD["min"],
        le=PaginationLimits.LEADERBOARD["max"],
        description="상위 N명 (기본값은 설정의 LEADERBOARD_DEFAULT_LIMIT)",
    ),
    current_user: UserSchema = Depends(get_current_active_user),
    report_service: ReportService = Depends(get_report_service),
) -> LeaderboardResponse:
    return report_service.get_leaderboard(limit=limit)


@router.get("/summary", response_model=ReportSummary)
async def get_summary(
    country: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    current_user: UserSchema = Depends(require_admin),
    report_service: ReportService = Depends(get_report_service),
) -> ReportSummary:
    return report_service.get_summary(country, start_date, end_date)


@router.get("/user-ranking", response_model=List[UserRankingEntry])
async def get_user_ranking(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    current_user: UserSchema = Depends(require_admin),
    report_service: ReportService = Depends(get_report_service),
) -> List[UserRankingEntry]:
    return report_service.get_user_ranking(start_date, end_date)


@router.get("/deals-per-user", response_model=List[DealsPerUserEntry])
async def get_deals_per_user(
    country: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    current_user: UserSchema = Depends(require_admin),
    report_service: ReportService = Depends(get_report_service),
) -> List[DealsPerUserEntry]:
    return report_service.get_deals_per_user(country, start_date, end_date)


@router.get("/redemptions", response_model=List[RedemptionReportEntry])
async def get_redemptions_report(
    redemption_status: Optional[RedemptionStatus] = Query(None, alias="status"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    current_user: UserSchema = Depends(require_admin),
    report_service: ReportService = Depends(get_report_service),
) -> List[RedemptionReportEntry]:
    return report_service.get_redemptions_report(redemption_status, start_date, end_date)
