from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class Notification(BaseModel):
    id: int
    user_id: int
    title: str
    message: str
    type: str
    is_read: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    notifications: List[Notification]
    unread_count: int
