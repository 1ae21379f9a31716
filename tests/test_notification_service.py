import pytest
from unittest.mock import patch

from partnerapi.core.exceptions import NotFoundError
from partnerapi.models.user import UserRole
from partnerapi.services.deal_service import DealService
from partnerapi.services.notification_service import NotificationEvent, NotificationService


@pytest.fixture
def notification_service(db_session, settings):
    return NotificationService(db_session, settings)


class TestNotificationService:
    def test_notify_and_read(self, notification_service, make_user):
        user = make_user()
        notification_service.notify(
            user.id, NotificationEvent.DEAL_REJECTED, {"product_name": "Firewall"}
        )
        notification_service.notify(
            user.id,
            NotificationEvent.SHIPMENT_UPDATED,
            {"reward_name": "Cap", "shipment_status": "shipped"},
        )

        inbox = notification_service.get_notifications(user.id)
        assert inbox.unread_count == 2
        assert {n.title for n in inbox.notifications} == {"Deal rejected", "Shipment update"}

        notification_service.mark_as_read(inbox.notifications[0].id, user.id)
        assert notification_service.get_notifications(user.id, unread_only=True).unread_count == 1

        assert notification_service.mark_all_as_read(user.id) == 1
        assert notification_service.get_notifications(user.id).unread_count == 0

    def test_mark_other_users_notification(self, notification_service, make_user):
        owner = make_user()
        stranger = make_user()
        notification_service.notify(owner.id, NotificationEvent.USER_APPROVED)
        notification = notification_service.get_notifications(owner.id).notifications[0]

        with pytest.raises(NotFoundError):
            notification_service.mark_as_read(notification.id, stranger.id)

    def test_disabled_notifications_are_not_stored(self, db_session, settings, make_user):
        settings.NOTIFICATIONS_ENABLED = False
        service = NotificationService(db_session, settings)
        user = make_user()

        service.notify(user.id, NotificationEvent.USER_APPROVED)

        assert service.get_notifications(user.id).notifications == []

    def test_notify_failure_is_swallowed(self, notification_service, make_user):
        user = make_user()
        with patch.object(
            notification_service.notification_repo, "create", side_effect=RuntimeError("smtp down")
        ):
            notification_service.notify(user.id, NotificationEvent.USER_APPROVED)

    def test_missing_template_field_is_swallowed(self, notification_service, make_user):
        user = make_user()

        notification_service.notify(user.id, NotificationEvent.DEAL_APPROVED, {})

        assert notification_service.get_notifications(user.id).notifications == []

    def test_approval_survives_notifier_failure(
        self, db_session, settings, make_user, make_deal
    ):
        """알림 실패는 이미 commit 된 승인에 영향 없음"""
        admin = make_user(role=UserRole.ADMIN)
        user = make_user()
        deal = make_deal(user, deal_value="3000.00")
        deal_service = DealService(db_session, settings)

        with patch.object(
            deal_service.notification_service.notification_repo,
            "create",
            side_effect=RuntimeError("queue unavailable"),
        ):
            approved = deal_service.approve_deal(deal.id, admin.id)

        assert approved.points_earned == 3
        assert deal_service.point_service.get_balance(user.id) == 3
