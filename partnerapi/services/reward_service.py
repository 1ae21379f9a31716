from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from partnerapi.config import Settings
from partnerapi.core.exceptions import (
    BaseAPIException,
    DuplicateRequestError,
    InsufficientPointsError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from partnerapi.models.rewards import RedemptionStatus, ShipmentStatus
from partnerapi.repositories.rewards_repository import (
    RedemptionRepository,
    RewardsRepository,
)
from partnerapi.repositories.user_repository import UserRepository
from partnerapi.schemas.rewards import (
    Redemption,
    RedemptionListResponse,
    Reward,
    RewardCreate,
    RewardUpdate,
)
from partnerapi.services.notification_service import (
    NotificationEvent,
    NotificationService,
)
from partnerapi.services.point_service import PointService
import logging

logger = logging.getLogger(__name__)

# description, image_url 은 null 로 비울 수 있음
REQUIRED_REWARD_FIELDS = ("name", "points_cost", "category", "is_active")


class RewardService:
    """리워드 카탈로그와 교환 승인 상태 머신

    교환 요청 시에는 포인트를 차감하지 않고, 승인 시점에 잔액을 재검증한 뒤
    원장에 차감 항목을 남깁니다.
    """

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.rewards_repo = RewardsRepository(db)
        self.redemption_repo = RedemptionRepository(db)
        self.user_repo = UserRepository(db)
        self.point_service = PointService(db, settings)
        self.notification_service = NotificationService(db, settings)

    # ------------------------------------------------------------------
    # 카탈로그
    # ------------------------------------------------------------------

    def get_rewards(self, active_only: bool = True) -> List[Reward]:
        return self.rewards_repo.list_rewards(active_only=active_only)

    def get_reward(self, reward_id: int) -> Reward:
        reward = self.rewards_repo.get_by_id(reward_id)
        if reward is None:
            raise NotFoundError(f"Reward {reward_id} not found")
        return reward

    def create_reward(self, data: RewardCreate) -> Reward:
        try:
            reward = self.rewards_repo.create(commit=True, **data.model_dump())
            logger.info(f"Reward {reward.id} created: {reward.name} ({reward.points_cost} points)")
            return reward
        except Exception as e:
            logger.error(f"Failed to create reward: {str(e)}")
            raise

    def update_reward(self, reward_id: int, data: RewardUpdate) -> Reward:
        values = data.model_dump(exclude_unset=True)
        if not values:
            raise ValidationError("No fields to update")
        cleared = sorted(k for k in REQUIRED_REWARD_FIELDS if k in values and values[k] is None)
        if cleared:
            raise ValidationError(f"Fields cannot be null: {', '.join(cleared)}")
        reward = self.rewards_repo.update(reward_id, commit=True, **values)
        if reward is None:
            raise NotFoundError(f"Reward {reward_id} not found")
        return reward

    def deactivate_reward(self, reward_id: int) -> Reward:
        """카탈로그에서 내리기 (교환 이력 보존을 위해 삭제하지 않음)"""
        reward = self.rewards_repo.update(reward_id, commit=True, is_active=False)
        if reward is None:
            raise NotFoundError(f"Reward {reward_id} not found")
        logger.info(f"Reward {reward_id} deactivated")
        return reward

    # ------------------------------------------------------------------
    # 교환 요청
    # ------------------------------------------------------------------

    def get_redemption(self, redemption_id: int) -> Redemption:
        redemption = self.redemption_repo.get_by_id(redemption_id)
        if redemption is None:
            raise NotFoundError(f"Redemption {redemption_id} not found")
        return redemption

    def get_user_redemptions(
        self, user_id: int, limit: int = 50, offset: int = 0
    ) -> RedemptionListResponse:
        items, total = self.redemption_repo.list_redemptions(
            user_id=user_id, limit=limit, offset=offset
        )
        return RedemptionListResponse(redemptions=items, total_count=total)

    def get_redemptions(
        self,
        status: Optional[RedemptionStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> RedemptionListResponse:
        items, total = self.redemption_repo.list_redemptions(
            status=status, limit=limit, offset=offset
        )
        return RedemptionListResponse(redemptions=items, total_count=total)

    def request_redemption(
        self, user_id: int, reward_id: int, delivery_address: Optional[str] = None
    ) -> Redemption:
        """리워드 교환 요청 (pending 생성, 포인트는 아직 차감하지 않음)

        Raises:
            NotFoundError: 리워드가 없거나 비활성
            DuplicateRequestError: 같은 리워드에 대기중인 요청이 이미 있음
            InsufficientPointsError: 현재 잔액 < 필요 포인트
        """
        reward = self.rewards_repo.get_by_id(reward_id)
        if reward is None or not reward.is_active:
            raise NotFoundError(f"Reward {reward_id} not found")

        if self.redemption_repo.has_pending(user_id, reward_id):
            raise DuplicateRequestError(
                "You already have a pending redemption for this reward"
            )

        balance = self.point_service.get_balance(user_id)
        if balance < reward.points_cost:
            raise InsufficientPointsError(
                f"Insufficient points. Required: {reward.points_cost}, Available: {balance}",
                details={"required": reward.points_cost, "available": balance},
            )

        try:
            redemption = self.redemption_repo.create_pending(
                user_id=user_id,
                reward_id=reward_id,
                delivery_address=delivery_address,
                commit=True,
            )
        except IntegrityError:
            # 동시 요청이 부분 유니크 인덱스에 걸린 경우
            raise DuplicateRequestError(
                "You already have a pending redemption for this reward"
            )

        logger.info(f"Redemption {redemption.id} requested by user {user_id} for reward {reward_id}")
        self.notification_service.notify(
            user_id,
            NotificationEvent.REDEMPTION_REQUESTED,
            {"reward_name": reward.name},
        )
        return redemption

    def approve_redemption(self, redemption_id: int, admin_id: int) -> Redemption:
        """교환 승인 - 잔액 재검증, 상태 변경, 원장 차감을 하나의 트랜잭션으로 처리"""
        try:
            redemption = self.redemption_repo.get_model_for_update(redemption_id)
            if redemption is None:
                raise NotFoundError(f"Redemption {redemption_id} not found")
            if redemption.status != RedemptionStatus.PENDING.value:
                raise InvalidStateError(
                    f"Redemption {redemption_id} is {redemption.status} and cannot be approved"
                )

            reward = self.rewards_repo.get_model(redemption.reward_id)
            if reward is None:
                raise NotFoundError(f"Reward {redemption.reward_id} not found")

            # 같은 사용자에 대한 동시 승인을 직렬화
            self.user_repo.lock(redemption.user_id)

            if self.settings.REDEMPTION_REVALIDATE_BALANCE:
                balance = self.point_service.get_balance(redemption.user_id)
                if balance < reward.points_cost:
                    raise InsufficientPointsError(
                        f"Insufficient points. Required: {reward.points_cost}, Available: {balance}",
                        details={"required": reward.points_cost, "available": balance},
                    )

            if not self.redemption_repo.mark_approved(
                redemption_id, admin_id, datetime.now(timezone.utc)
            ):
                raise InvalidStateError(f"Redemption {redemption_id} is no longer pending")

            self.point_service.append(
                user_id=redemption.user_id,
                points=-reward.points_cost,
                description=f"Points redeemed for: {reward.name}",
                reward_id=reward.id,
            )

            self.db.commit()
            approved = self.redemption_repo.reload(redemption)
            reward_name, points_cost = reward.name, reward.points_cost
            logger.info(
                f"Redemption {redemption_id} approved by {admin_id}: -{points_cost} points"
            )
        except BaseAPIException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to approve redemption {redemption_id}: {str(e)}")
            raise

        self.notification_service.notify(
            approved.user_id,
            NotificationEvent.REDEMPTION_APPROVED,
            {"reward_name": reward_name, "points_cost": points_cost},
        )
        return approved

    def reject_redemption(
        self, redemption_id: int, admin_id: int, reason: Optional[str] = None
    ) -> Redemption:
        """교환 거절 - 차감한 적이 없으므로 원장 변화 없음"""
        try:
            redemption = self.redemption_repo.get_model_for_update(redemption_id)
            if redemption is None:
                raise NotFoundError(f"Redemption {redemption_id} not found")
            if redemption.status != RedemptionStatus.PENDING.value:
                raise InvalidStateError(
                    f"Redemption {redemption_id} is {redemption.status} and cannot be rejected"
                )

            if not self.redemption_repo.mark_rejected(
                redemption_id, admin_id, datetime.now(timezone.utc), reason
            ):
                raise InvalidStateError(f"Redemption {redemption_id} is no longer pending")

            self.db.commit()
            rejected = self.redemption_repo.reload(redemption)
            reward = self.rewards_repo.get_by_id(rejected.reward_id)
            logger.info(f"Redemption {redemption_id} rejected by {admin_id}: {reason}")
        except BaseAPIException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to reject redemption {redemption_id}: {str(e)}")
            raise

        self.notification_service.notify(
            rejected.user_id,
            NotificationEvent.REDEMPTION_REJECTED,
            {
                "reward_name": reward.name if reward else rejected.reward_id,
                "reason": reason or "",
            },
        )
        return rejected

    def update_shipment(
        self, redemption_id: int, new_status: ShipmentStatus, admin_id: int
    ) -> Redemption:
        """배송 상태 변경 (승인된 요청만, pending -> shipped -> delivered 순방향만)"""
        new_status = ShipmentStatus(new_status)
        try:
            redemption = self.redemption_repo.get_model_for_update(redemption_id)
            if redemption is None:
                raise NotFoundError(f"Redemption {redemption_id} not found")
            if redemption.status != RedemptionStatus.APPROVED.value:
                raise InvalidStateError(
                    f"Redemption {redemption_id} is {redemption.status}; shipment can only be updated after approval"
                )

            current_status = ShipmentStatus(redemption.shipment_status)
            if new_status.rank <= current_status.rank:
                raise InvalidStateError(
                    f"Shipment status cannot move from {current_status.value} to {new_status.value}"
                )

            now = datetime.now(timezone.utc)
            values = {"shipment_status": new_status.value}
            if new_status == ShipmentStatus.SHIPPED or redemption.shipped_at is None:
                values["shipped_at"] = now
                values["shipped_by"] = admin_id
            if new_status == ShipmentStatus.DELIVERED:
                values["delivered_at"] = now

            if not self.redemption_repo.advance_shipment(redemption_id, current_status, values):
                raise InvalidStateError(
                    f"Shipment status of redemption {redemption_id} changed concurrently"
                )

            self.db.commit()
            updated = self.redemption_repo.reload(redemption)
            reward = self.rewards_repo.get_by_id(updated.reward_id)
            logger.info(
                f"Redemption {redemption_id} shipment {current_status.value} -> {new_status.value} by {admin_id}"
            )
        except BaseAPIException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update shipment for redemption {redemption_id}: {str(e)}")
            raise

        self.notification_service.notify(
            updated.user_id,
            NotificationEvent.SHIPMENT_UPDATED,
            {
                "reward_name": reward.name if reward else updated.reward_id,
                "shipment_status": new_status.value,
            },
        )
        return updated
