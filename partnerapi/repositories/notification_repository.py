from typing import List

from sqlalchemy.orm import Session

from partnerapi.models.notification import Notification as NotificationModel
from partnerapi.repositories.base import BaseRepository
from partnerapi.schemas.notification import Notification as NotificationSchema


class NotificationRepository(BaseRepository[NotificationModel, NotificationSchema]):
    def __init__(self, db: Session):
        super().__init__(NotificationModel, NotificationSchema, db)

    def list_for_user(
        self, user_id: int, unread_only: bool = False, limit: int = 20, offset: int = 0
    ) -> List[NotificationSchema]:
        query = self.db.query(NotificationModel).filter(
            NotificationModel.user_id == user_id
        )
        if unread_only:
            query = query.filter(NotificationModel.is_read.is_(False))
        rows = (
            query.order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return self._to_schemas(rows)

    def count_unread(self, user_id: int) -> int:
        return self.count({"user_id": user_id, "is_read": False})

    def mark_read(self, notification_id: int, user_id: int) -> bool:
        updated = (
            self.db.query(NotificationModel)
            .filter(
                NotificationModel.id == notification_id,
                NotificationModel.user_id == user_id,
            )
            .update({NotificationModel.is_read: True}, synchronize_session=False)
        )
        self.db.commit()
        return updated > 0

    def mark_all_read(self, user_id: int) -> int:
        updated = (
            self.db.query(NotificationModel)
            .filter(
                NotificationModel.user_id == user_id,
                NotificationModel.is_read.is_(False),
            )
            .update({NotificationModel.is_read: True}, synchronize_session=False)
        )
        self.db.commit()
        return updated
