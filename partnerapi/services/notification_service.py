import logging
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from partnerapi.config import Settings
from partnerapi.core.exceptions import NotFoundError
from partnerapi.repositories.notification_repository import NotificationRepository
from partnerapi.schemas.notification import NotificationListResponse

logger = logging.getLogger(__name__)


class NotificationEvent(str, Enum):
    DEAL_APPROVED = "deal_approved"
    DEAL_REJECTED = "deal_rejected"
    REDEMPTION_REQUESTED = "redemption_requested"
    REDEMPTION_APPROVED = "redemption_approved"
    REDEMPTION_REJECTED = "redemption_rejected"
    SHIPMENT_UPDATED = "shipment_updated"
    USER_APPROVED = "user_approved"
    USER_INVITED = "user_invited"
    TICKET_UPDATED = "ticket_updated"


TEMPLATES = {
    NotificationEvent.DEAL_APPROVED: (
        "Deal approved",
        "Your deal '{product_name}' was approved and earned {points} points.",
    ),
    NotificationEvent.DEAL_REJECTED: (
        "Deal rejected",
        "Your deal '{product_name}' was rejected.",
    ),
    NotificationEvent.REDEMPTION_REQUESTED: (
        "Redemption requested",
        "Your request for '{reward_name}' is pending approval.",
    ),
    NotificationEvent.REDEMPTION_APPROVED: (
        "Redemption approved",
        "Your redemption of '{reward_name}' was approved. {points_cost} points were deducted.",
    ),
    NotificationEvent.REDEMPTION_REJECTED: (
        "Redemption rejected",
        "Your redemption of '{reward_name}' was rejected. {reason}",
    ),
    NotificationEvent.SHIPMENT_UPDATED: (
        "Shipment update",
        "Your reward '{reward_name}' is now {shipment_status}.",
    ),
    NotificationEvent.USER_APPROVED: (
        "Account approved",
        "Your account has been approved. Welcome aboard!",
    ),
    NotificationEvent.USER_INVITED: (
        "You are invited",
        "{invited_by} invited you to the partner program. Complete your registration at {invite_url}",
    ),
    NotificationEvent.TICKET_UPDATED: (
        "Support ticket update",
        "Your ticket '{subject}' is now {status}. {admin_response}",
    ),
}


class NotificationService:
    """상태 전이 후 호출되는 fire-and-forget 알림 싱크

    notify 는 어떤 경우에도 예외를 전파하지 않습니다. 호출 시점에는 이미
    상태 전이 트랜잭션이 commit 된 상태여야 합니다.
    """

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.notification_repo = NotificationRepository(db)

    def notify(
        self,
        user_id: int,
        event: NotificationEvent,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        if not self.settings.NOTIFICATIONS_ENABLED:
            return

        try:
            title, template = TEMPLATES[NotificationEvent(event)]
            message = template.format(**(payload or {})).strip()
            self.notification_repo.create(
                commit=True,
                user_id=user_id,
                title=title,
                message=message,
                type=NotificationEvent(event).value,
                is_read=False,
            )
            logger.info(f"Notified user {user_id}: {event}")
        except Exception as e:
            # 알림 실패는 상태 전이에 영향을 주지 않음
            logger.error(f"Failed to notify user {user_id} ({event}): {str(e)}")

    def get_notifications(
        self, user_id: int, unread_only: bool = False, limit: int = 20, offset: int = 0
    ) -> NotificationListResponse:
        notifications = self.notification_repo.list_for_user(
            user_id, unread_only=unread_only, limit=limit, offset=offset
        )
        return NotificationListResponse(
            notifications=notifications,
            unread_count=self.notification_repo.count_unread(user_id),
        )

    def mark_as_read(self, notification_id: int, user_id: int) -> None:
        if not self.notification_repo.mark_read(notification_id, user_id):
            raise NotFoundError(f"Notification {notification_id} not found")

    def mark_all_as_read(self, user_id: int) -> int:
        updated = self.notification_repo.mark_all_read(user_id)
        logger.info(f"Marked {updated} notifications as read for user {user_id}")
        return updated
