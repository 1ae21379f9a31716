from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from partnerapi.models.rewards import (
    RedemptionStatus,
    Reward as RewardModel,
    ShipmentStatus,
    UserReward,
)
from partnerapi.repositories.base import BaseRepository
from partnerapi.schemas.rewards import Redemption, Reward as RewardSchema


class RewardsRepository(BaseRepository[RewardModel, RewardSchema]):
    """리워드 카탈로그 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(RewardModel, RewardSchema, db)

    def list_rewards(self, active_only: bool = True) -> List[RewardSchema]:
        query = self.db.query(RewardModel)
        if active_only:
            query = query.filter(RewardModel.is_active.is_(True))
        rewards = query.order_by(RewardModel.points_cost, RewardModel.id).all()
        return self._to_schemas(rewards)


class RedemptionRepository(BaseRepository[UserReward, Redemption]):
    """리워드 교환 요청 리포지토리

    승인/거절/배송 상태 변경은 현재 상태를 조건으로 건 UPDATE 로만 수행합니다.
    """

    def __init__(self, db: Session):
        super().__init__(UserReward, Redemption, db)

    def has_pending(self, user_id: int, reward_id: int) -> bool:
        return self.exists(
            {
                "user_id": user_id,
                "reward_id": reward_id,
                "status": RedemptionStatus.PENDING.value,
            }
        )

    def create_pending(
        self,
        user_id: int,
        reward_id: int,
        delivery_address: Optional[str] = None,
        commit: bool = True,
    ) -> Optional[Redemption]:
        return self.create(
            commit=commit,
            user_id=user_id,
            reward_id=reward_id,
            status=RedemptionStatus.PENDING.value,
            shipment_status=ShipmentStatus.PENDING.value,
            delivery_address=delivery_address,
        )

    def mark_approved(
        self, redemption_id: int, approved_by: int, approved_at: datetime
    ) -> bool:
        updated = (
            self.db.query(UserReward)
            .filter(
                UserReward.id == redemption_id,
                UserReward.status == RedemptionStatus.PENDING.value,
            )
            .update(
                {
                    UserReward.status: RedemptionStatus.APPROVED.value,
                    UserReward.approved_by: approved_by,
                    UserReward.approved_at: approved_at,
                },
                synchronize_session=False,
            )
        )
        return updated > 0

    def mark_rejected(
        self,
        redemption_id: int,
        rejected_by: int,
        rejected_at: datetime,
        reason: Optional[str] = None,
    ) -> bool:
        updated = (
            self.db.query(UserReward)
            .filter(
                UserReward.id == redemption_id,
                UserReward.status == RedemptionStatus.PENDING.value,
            )
            .update(
                {
                    UserReward.status: RedemptionStatus.REJECTED.value,
                    UserReward.approved_by: rejected_by,
                    UserReward.approved_at: rejected_at,
                    UserReward.rejection_reason: reason,
                },
                synchronize_session=False,
            )
        )
        return updated > 0

    def advance_shipment(
        self,
        redemption_id: int,
        current_status: ShipmentStatus,
        values: dict,
    ) -> bool:
        """승인된 요청의 배송 상태가 current_status 일 때만 변경"""
        updated = (
            self.db.query(UserReward)
            .filter(
                UserReward.id == redemption_id,
                UserReward.status == RedemptionStatus.APPROVED.value,
                UserReward.shipment_status == ShipmentStatus(current_status).value,
            )
            .update(
                {getattr(UserReward, key): value for key, value in values.items()},
                synchronize_session=False,
            )
        )
        return updated > 0

    def list_redemptions(
        self,
        user_id: Optional[int] = None,
        status: Optional[RedemptionStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple:
        """(redemptions, total_count) 반환, 최신순"""
        query = self.db.query(UserReward)
        if user_id is not None:
            query = query.filter(UserReward.user_id == user_id)
        if status is not None:
            query = query.filter(UserReward.status == RedemptionStatus(status).value)

        total = query.count()
        items = (
            query.order_by(UserReward.redeemed_at.desc(), UserReward.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return self._to_schemas(items), total
