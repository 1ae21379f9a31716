from typing import Dict, Optional

from sqlalchemy.orm import Session

from partnerapi.config import Settings
from partnerapi.models.deal import DealStatus
from partnerapi.repositories.deal_repository import DealRepository
from partnerapi.repositories.points_repository import PointsRepository
from partnerapi.schemas.points import RecalculationResult
from partnerapi.schemas.rate_table import RateSnapshot
from partnerapi.services.deal_service import calculate_deal_points
from partnerapi.services.rate_table_service import RateTableService
from partnerapi.repositories.user_repository import UserRepository
import logging

logger = logging.getLogger(__name__)


class RecalculationService:
    """요율 변경 후 승인된 딜의 포인트를 현재 요율로 다시 맞추는 배치 작업

    - 딜 하나가 하나의 트랜잭션 (잠금 -> 원장 삭제 -> 재삽입 -> commit)
    - 한 딜의 실패는 해당 딜만 롤백하고 오류로 기록한 뒤 계속 진행
    - 알림 등 승인 부수효과는 다시 실행하지 않음
    - 요율 변화가 없으면 두 번째 실행의 updated 는 0
    """

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.deal_repo = DealRepository(db)
        self.points_repo = PointsRepository(db)
        self.user_repo = UserRepository(db)
        self.rate_service = RateTableService(db, settings)

    def _snapshot_for(
        self,
        user_id: int,
        rates: Optional[RateSnapshot],
        cache: Dict[Optional[str], RateSnapshot],
    ) -> RateSnapshot:
        if rates is not None:
            return rates
        user = self.user_repo.get_by_id(user_id)
        region = user.region if user else None
        if region not in cache:
            cache[region] = self.rate_service.get_snapshot(region)
        return cache[region]

    def recalculate_all_deals(
        self, rates: Optional[RateSnapshot] = None
    ) -> RecalculationResult:
        """모든 대상 딜 재계산

        Args:
            rates: 모든 딜에 적용할 요율 스냅샷 (없으면 딜 소유자 지역의 현재 요율)

        Returns:
            RecalculationResult: 변경된 딜 수와 딜별 오류 메시지
        """
        result = RecalculationResult()
        snapshots: Dict[Optional[str], RateSnapshot] = {}

        deal_ids = self.deal_repo.ids_for_recalculation()
        # 대상 조회로 열린 읽기 트랜잭션 종료
        self.db.commit()
        logger.info(f"Recalculating points for {len(deal_ids)} deals")

        for deal_id in deal_ids:
            try:
                if self._recalculate_deal(deal_id, rates, snapshots):
                    result.updated += 1
                self.db.commit()
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to recalculate deal {deal_id}: {str(e)}")
                result.errors.append(f"Deal {deal_id}: {str(e)}")

        logger.info(
            f"Recalculation finished: {result.updated} updated, {len(result.errors)} errors"
        )
        return result

    def _recalculate_deal(
        self,
        deal_id: int,
        rates: Optional[RateSnapshot],
        snapshots: Dict[Optional[str], RateSnapshot],
    ) -> bool:
        """딜 하나를 원장과 맞춤, 변경이 있었으면 True (commit 은 호출자)"""
        deal = self.deal_repo.get_model_for_update(deal_id)
        if deal is None:
            return False

        entries = self.points_repo.get_deal_entries(deal_id)

        if deal.status != DealStatus.APPROVED.value:
            # 승인되지 않은 딜에 남은 포인트/원장 정리
            if deal.points_earned == 0 and not entries:
                return False
            self.deal_repo.set_points_earned(deal_id, 0)
            self.points_repo.delete_deal_entries(deal_id)
            logger.info(f"Cleared stray points on {deal.status} deal {deal_id}")
            return True

        snapshot = self._snapshot_for(deal.user_id, rates, snapshots)
        new_points = calculate_deal_points(deal, snapshot)

        expected_entries = [new_points] if new_points > 0 else []
        ledger_matches = [entry.points for entry in entries] == expected_entries
        if new_points == deal.points_earned and ledger_matches:
            return False

        self.deal_repo.set_points_earned(deal_id, new_points)
        self.points_repo.delete_deal_entries(deal_id)
        if new_points > 0:
            self.points_repo.append(
                user_id=deal.user_id,
                points=new_points,
                description=f"Points recalculated for deal: {deal.product_name}",
                deal_id=deal_id,
            )
        logger.info(
            f"Deal {deal_id} recalculated: {deal.points_earned} -> {new_points} points (rates v{snapshot.version})"
        )
        return True
