from typing import Optional
from sqlalchemy.orm import Session

from partnerapi.config import Settings
from partnerapi.repositories.points_repository import PointsRepository
from partnerapi.schemas.points import (
    LedgerEntry,
    PointsBalanceResponse,
    PointsHistoryResponse,
)
import logging

logger = logging.getLogger(__name__)


class PointService:
    """포인트 원장 관련 비즈니스 로직을 담당하는 서비스

    append 는 commit 하지 않습니다. 딜 승인/교환 승인 등 호출한 서비스의
    트랜잭션과 함께 commit 되어야 합니다.
    """

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.points_repo = PointsRepository(db)

    def append(
        self,
        user_id: int,
        points: int,
        description: str,
        deal_id: Optional[int] = None,
        reward_id: Optional[int] = None,
    ) -> LedgerEntry:
        """원장 항목 추가

        Args:
            user_id: 사용자 ID
            points: 포인트 변화량 (+적립 / -사용)
            description: 항목 설명
            deal_id: 적립 원천 딜 (reward_id 와 동시 지정 불가)
            reward_id: 사용한 리워드

        Returns:
            LedgerEntry: 추가된 원장 항목
        """
        entry = self.points_repo.append(
            user_id=user_id,
            points=points,
            description=description,
            deal_id=deal_id,
            reward_id=reward_id,
        )
        logger.info(
            f"Ledger entry {entry.id} for user {user_id}: {points:+d} (deal={deal_id}, reward={reward_id})"
        )
        return entry

    def get_total_earned(self, user_id: int) -> int:
        """원장 합계 (음수 보정 없음)"""
        return self.points_repo.get_points_sum(user_id)

    def get_balance(self, user_id: int) -> int:
        """사용 가능 포인트 = max(0, 원장 합계)"""
        return max(0, self.get_total_earned(user_id))

    def get_balance_response(self, user_id: int) -> PointsBalanceResponse:
        total = self.get_total_earned(user_id)
        return PointsBalanceResponse(
            user_id=user_id, balance=max(0, total), total_earned=total
        )

    def get_history(
        self, user_id: int, limit: int = 50, offset: int = 0
    ) -> PointsHistoryResponse:
        """사용자 포인트 내역 조회 (최신순)

        Args:
            user_id: 사용자 ID
            limit: 페이지 크기 (최대 100)
            offset: 오프셋
        """
        if limit > 100:
            limit = 100

        entries = self.points_repo.get_user_entries(user_id, limit=limit, offset=offset)
        total_count = self.points_repo.count_user_entries(user_id)
        return PointsHistoryResponse(
            balance=self.get_balance(user_id),
            entries=entries,
            total_count=total_count,
            has_next=offset + len(entries) < total_count,
        )
