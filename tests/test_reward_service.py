from unittest.mock import patch

import pytest

from partnerapi.core.exceptions import (
    DuplicateRequestError,
    InsufficientPointsError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from partnerapi.models.points import PointsHistory
from partnerapi.models.rewards import RedemptionStatus, ShipmentStatus, UserReward
from partnerapi.models.user import UserRole
from partnerapi.schemas.rewards import RewardCreate, RewardUpdate
from partnerapi.services.reward_service import RewardService


@pytest.fixture
def reward_service(db_session, settings):
    return RewardService(db_session, settings)


@pytest.fixture
def admin(make_user):
    return make_user(role=UserRole.ADMIN, username="admin")


def balance_of(db_session, user_id):
    entries = db_session.query(PointsHistory).filter(PointsHistory.user_id == user_id).all()
    return sum(entry.points for entry in entries)


class TestRewardCatalog:
    def test_catalog_is_ordered_by_cost_and_hides_inactive(self, reward_service, make_reward):
        make_reward(points_cost=30, name="Headphones")
        make_reward(points_cost=5, name="Sticker Pack")
        make_reward(points_cost=10, name="Retired Hoodie", is_active=False)

        active = reward_service.get_rewards()
        everything = reward_service.get_rewards(active_only=False)

        assert [r.name for r in active] == ["Sticker Pack", "Headphones"]
        assert len(everything) == 3

    def test_create_update_deactivate(self, reward_service):
        reward = reward_service.create_reward(
            RewardCreate(name="Backpack", points_cost=80, category="accessories")
        )

        updated = reward_service.update_reward(reward.id, RewardUpdate(points_cost=90))
        deactivated = reward_service.deactivate_reward(reward.id)

        assert updated.points_cost == 90
        assert updated.name == "Backpack"
        assert deactivated.is_active is False

    def test_update_without_fields_raises(self, reward_service, make_reward):
        reward = make_reward()

        with pytest.raises(ValidationError):
            reward_service.update_reward(reward.id, RewardUpdate())

    def test_explicit_null_on_required_field_raises(self, reward_service, make_reward):
        reward = make_reward(points_cost=3)

        with pytest.raises(ValidationError) as exc_info:
            reward_service.update_reward(
                reward.id, RewardUpdate.model_validate({"points_cost": None, "name": None})
            )

        assert exc_info.value.message == "Fields cannot be null: name, points_cost"
        assert reward_service.get_reward(reward.id).points_cost == 3

    def test_optional_fields_can_be_cleared(self, reward_service):
        reward = reward_service.create_reward(
            RewardCreate(
                name="Backpack",
                points_cost=80,
                category="accessories",
                description="Water resistant",
            )
        )

        updated = reward_service.update_reward(
            reward.id, RewardUpdate.model_validate({"description": None})
        )

        assert updated.description is None
        assert updated.points_cost == 80


class TestRequestRedemption:
    def test_request_creates_pending_without_debit(
        self, reward_service, db_session, make_user, make_reward, add_points
    ):
        """교환 요청 시점에는 원장 변화 없음"""
        # Given
        user = make_user()
        reward = make_reward(points_cost=3)
        add_points(user, 5)

        # When
        redemption = reward_service.request_redemption(
            user.id, reward.id, delivery_address="1 Main St"
        )

        # Then
        assert redemption.status == RedemptionStatus.PENDING
        assert redemption.shipment_status == ShipmentStatus.PENDING
        assert redemption.delivery_address == "1 Main St"
        assert balance_of(db_session, user.id) == 5

    def test_duplicate_pending_request_rejected(
        self, reward_service, make_user, make_reward, add_points
    ):
        user = make_user()
        reward = make_reward(points_cost=3)
        add_points(user, 10)
        reward_service.request_redemption(user.id, reward.id)

        with pytest.raises(DuplicateRequestError) as exc_info:
            reward_service.request_redemption(user.id, reward.id)

        assert exc_info.value.status_code == 409

    def test_insufficient_points(self, reward_service, db_session, make_user, make_reward, add_points):
        user = make_user()
        reward = make_reward(points_cost=10)
        add_points(user, 4)

        with pytest.raises(InsufficientPointsError) as exc_info:
            reward_service.request_redemption(user.id, reward.id)

        assert "Required: 10, Available: 4" in exc_info.value.message
        assert exc_info.value.details == {"required": 10, "available": 4}
        assert db_session.query(UserReward).count() == 0

    def test_inactive_reward_not_found(self, reward_service, make_user, make_reward, add_points):
        user = make_user()
        reward = make_reward(is_active=False)
        add_points(user, 100)

        with pytest.raises(NotFoundError):
            reward_service.request_redemption(user.id, reward.id)

    def test_negative_ledger_sum_reads_as_zero_balance(
        self, reward_service, make_user, make_reward, add_points
    ):
        user = make_user()
        reward = make_reward(points_cost=1)
        add_points(user, -5)

        with pytest.raises(InsufficientPointsError) as exc_info:
            reward_service.request_redemption(user.id, reward.id)

        assert exc_info.value.details["available"] == 0


class TestApproveRedemption:
    def test_approve_debits_exactly_once(
        self, reward_service, db_session, make_user, make_reward, add_points, admin
    ):
        """잔액 5, 비용 3 -> 승인 후 잔액 2, 재승인 시 409"""
        # Given
        user = make_user()
        reward = make_reward(points_cost=3, name="Coffee Mug")
        add_points(user, 5)
        redemption = reward_service.request_redemption(user.id, reward.id)

        # When
        approved = reward_service.approve_redemption(redemption.id, admin.id)

        # Then
        assert approved.status == RedemptionStatus.APPROVED
        assert approved.approved_by == admin.id
        assert balance_of(db_session, user.id) == 2

        spend = (
            db_session.query(PointsHistory)
            .filter(PointsHistory.reward_id == reward.id)
            .one()
        )
        assert spend.points == -3
        assert spend.deal_id is None
        assert spend.description == "Points redeemed for: Coffee Mug"

        with pytest.raises(InvalidStateError):
            reward_service.approve_redemption(redemption.id, admin.id)
        assert balance_of(db_session, user.id) == 2

    def test_approve_revalidates_balance(
        self, reward_service, db_session, make_user, make_reward, add_points, admin
    ):
        """요청 후 잔액이 줄었으면 승인 거부, 요청은 pending 유지"""
        user = make_user()
        reward = make_reward(points_cost=3)
        add_points(user, 5)
        redemption = reward_service.request_redemption(user.id, reward.id)
        add_points(user, -4, description="Manual correction")

        with pytest.raises(InsufficientPointsError):
            reward_service.approve_redemption(redemption.id, admin.id)

        assert reward_service.get_redemption(redemption.id).status == RedemptionStatus.PENDING
        assert balance_of(db_session, user.id) == 1

    def test_approve_skips_revalidation_when_disabled(
        self, db_session, settings, make_user, make_reward, add_points, admin
    ):
        settings.REDEMPTION_REVALIDATE_BALANCE = False
        service = RewardService(db_session, settings)
        user = make_user()
        reward = make_reward(points_cost=3)
        add_points(user, 5)
        redemption = service.request_redemption(user.id, reward.id)
        add_points(user, -4)

        approved = service.approve_redemption(redemption.id, admin.id)

        assert approved.status == RedemptionStatus.APPROVED
        assert balance_of(db_session, user.id) == -2

    def test_approve_missing_redemption(self, reward_service, admin):
        with pytest.raises(NotFoundError):
            reward_service.approve_redemption(999, admin.id)

    def test_approve_locks_user_row(
        self, reward_service, make_user, make_reward, add_points, admin
    ):
        user = make_user()
        reward = make_reward(points_cost=3)
        add_points(user, 5)
        redemption = reward_service.request_redemption(user.id, reward.id)

        with patch.object(
            reward_service.user_repo, "lock", wraps=reward_service.user_repo.lock
        ) as lock:
            reward_service.approve_redemption(redemption.id, admin.id)

        lock.assert_called_once_with(user.id)

    def test_drain_to_zero_then_reject_other_request(
        self, reward_service, db_session, make_user, make_reward, add_points, admin
    ):
        """잔액 100 -> 100 짜리 승인 -> 0, 다른 대기 요청 거절 시 원장 변화 없음"""
        # Given
        user = make_user()
        laptop = make_reward(points_cost=100, name="Laptop")
        hoodie = make_reward(points_cost=50, name="Hoodie")
        add_points(user, 100)
        laptop_request = reward_service.request_redemption(user.id, laptop.id)
        hoodie_request = reward_service.request_redemption(user.id, hoodie.id)

        # When
        reward_service.approve_redemption(laptop_request.id, admin.id)
        entries_after_approval = db_session.query(PointsHistory).count()
        rejected = reward_service.reject_redemption(hoodie_request.id, admin.id)

        # Then
        assert reward_service.point_service.get_balance(user.id) == 0
        assert rejected.status == RedemptionStatus.REJECTED
        assert db_session.query(PointsHistory).count() == entries_after_approval == 2
        assert balance_of(db_session, user.id) == 0


class TestRejectRedemption:
    def test_reject_leaves_ledger_untouched(
        self, reward_service, db_session, make_user, make_reward, add_points, admin
    ):
        user = make_user()
        reward = make_reward(points_cost=3)
        add_points(user, 5)
        redemption = reward_service.request_redemption(user.id, reward.id)

        rejected = reward_service.reject_redemption(redemption.id, admin.id, reason="Out of stock")

        assert rejected.status == RedemptionStatus.REJECTED
        assert rejected.rejection_reason == "Out of stock"
        assert balance_of(db_session, user.id) == 5

    def test_reject_frees_slot_for_new_request(
        self, reward_service, make_user, make_reward, add_points, admin
    ):
        user = make_user()
        reward = make_reward(points_cost=3)
        add_points(user, 5)
        first = reward_service.request_redemption(user.id, reward.id)
        reward_service.reject_redemption(first.id, admin.id)

        second = reward_service.request_redemption(user.id, reward.id)

        assert second.id != first.id
        assert second.status == RedemptionStatus.PENDING

    def test_reject_approved_raises(
        self, reward_service, make_user, make_reward, add_points, admin
    ):
        user = make_user()
        reward = make_reward(points_cost=3)
        add_points(user, 5)
        redemption = reward_service.request_redemption(user.id, reward.id)
        reward_service.approve_redemption(redemption.id, admin.id)

        with pytest.raises(InvalidStateError):
            reward_service.reject_redemption(redemption.id, admin.id)


class TestShipment:
    @pytest.fixture
    def approved_redemption(self, reward_service, make_user, make_reward, add_points, admin):
        user = make_user()
        reward = make_reward(points_cost=3)
        add_points(user, 5)
        redemption = reward_service.request_redemption(user.id, reward.id)
        return reward_service.approve_redemption(redemption.id, admin.id)

    def test_forward_transitions(self, reward_service, approved_redemption, admin):
        shipped = reward_service.update_shipment(
            approved_redemption.id, ShipmentStatus.SHIPPED, admin.id
        )
        delivered = reward_service.update_shipment(
            approved_redemption.id, ShipmentStatus.DELIVERED, admin.id
        )

        assert shipped.shipment_status == ShipmentStatus.SHIPPED
        assert shipped.shipped_at is not None
        assert shipped.shipped_by == admin.id
        assert delivered.shipment_status == ShipmentStatus.DELIVERED
        assert delivered.delivered_at is not None

    def test_deliver_directly_stamps_shipped(self, reward_service, approved_redemption, admin):
        delivered = reward_service.update_shipment(
            approved_redemption.id, ShipmentStatus.DELIVERED, admin.id
        )

        assert delivered.shipped_at is not None
        assert delivered.delivered_at is not None

    def test_backward_transition_raises(self, reward_service, approved_redemption, admin):
        reward_service.update_shipment(
            approved_redemption.id, ShipmentStatus.DELIVERED, admin.id
        )

        with pytest.raises(InvalidStateError):
            reward_service.update_shipment(
                approved_redemption.id, ShipmentStatus.SHIPPED, admin.id
            )

    def test_same_status_raises(self, reward_service, approved_redemption, admin):
        with pytest.raises(InvalidStateError):
            reward_service.update_shipment(
                approved_redemption.id, ShipmentStatus.PENDING, admin.id
            )

    def test_shipment_requires_approval(
        self, reward_service, make_user, make_reward, add_points, admin
    ):
        user = make_user()
        reward = make_reward(points_cost=3)
        add_points(user, 5)
        redemption = reward_service.request_redemption(user.id, reward.id)

        with pytest.raises(InvalidStateError):
            reward_service.update_shipment(redemption.id, ShipmentStatus.SHIPPED, admin.id)

        reward_service.reject_redemption(redemption.id, admin.id)
        with pytest.raises(InvalidStateError):
            reward_service.update_shipment(redemption.id, ShipmentStatus.SHIPPED, admin.id)
