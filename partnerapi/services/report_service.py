from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from partnerapi.config import Settings
from partnerapi.models.rewards import RedemptionStatus
from partnerapi.repositories.report_repository import ReportRepository
from partnerapi.schemas.reports import (
    DealsPerUserEntry,
    LeaderboardEntry,
    LeaderboardResponse,
    RedemptionReportEntry,
    ReportSummary,
    UserRankingEntry,
)
import logging

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENTS, rounding=ROUND_HALF_UP)


class ReportService:
    """원장/딜 기반 읽기 전용 리포트"""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.report_repo = ReportRepository(db)

    def get_leaderboard(self, limit: Optional[int] = None) -> LeaderboardResponse:
        limit = limit or self.settings.LEADERBOARD_DEFAULT_LIMIT
        rows = self.report_repo.get_leaderboard(limit=limit)
        return LeaderboardResponse(entries=[LeaderboardEntry(**row) for row in rows])

    def get_summary(
        self,
        country: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> ReportSummary:
        data = self.report_repo.get_summary(country, start_date, end_date)
        data["total_revenue"] = _money(data["total_revenue"])
        return ReportSummary(**data)

    def get_user_ranking(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[UserRankingEntry]:
        rows = self.report_repo.get_user_ranking(start_date, end_date)
        return [
            UserRankingEntry(**{**row, "total_sales": _money(row["total_sales"])})
            for row in rows
        ]

    def get_deals_per_user(
        self,
        country: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[DealsPerUserEntry]:
        entries = []
        for row in self.report_repo.get_deals_per_user(country, start_date, end_date):
            total_sales = _money(row["total_sales"])
            average = (
                (total_sales / row["total_deals"]).quantize(CENTS, rounding=ROUND_HALF_UP)
                if row["total_deals"]
                else Decimal("0.00")
            )
            entries.append(
                DealsPerUserEntry(
                    **{**row, "total_sales": total_sales, "average_deal_size": average}
                )
            )
        return entries

    def get_redemptions_report(
        self,
        status: Optional[RedemptionStatus] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[RedemptionReportEntry]:
        rows = self.report_repo.get_redemptions(
            RedemptionStatus(status).value if status else None, start_date, end_date
        )
        return [RedemptionReportEntry(**row) for row in rows]
