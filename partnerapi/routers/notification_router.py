from fastapi import APIRouter, Depends, Path, Query

from partnerapi.core.auth_middleware import get_current_active_user
from partnerapi.deps import get_notification_service
from partnerapi.schemas.auth import MessageResponse
from partnerapi.schemas.notification import NotificationListResponse
from partnerapi.schemas.pagination import PaginationLimits
from partnerapi.schemas.user import User as UserSchema
from partnerapi.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def get_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(
        PaginationLimits.NOTIFICATIONS["default"],
        ge=PaginationLimits.NOTIFICATIONS["min"],
        le=PaginationLimits.NOTIFICATIONS["max"],
    ),
    offset: int = Query(0, ge=0),
    current_user: UserSchema = Depends(get_current_active_user),
    notification_service: NotificationService = Depends(get_notification_service),
) -> NotificationListResponse:
    return notification_service.get_notifications(
        current_user.id, unread_only=unread_only, limit=limit, offset=offset
    )


@router.post("/read-all", response_model=MessageResponse)
async def mark_all_as_read(
    current_user: UserSchema = Depends(get_current_active_user),
    notification_service: NotificationService = Depends(get_notification_service),
) -> MessageResponse:
    updated = notification_service.mark_all_as_read(current_user.id)
    return MessageResponse(message=f"{updated} notifications marked as read")


@router.post("/{notification_id}/read", response_model=MessageResponse)
async def mark_as_read(
    notification_id: int = Path(..., description="알림 ID"),
    current_user: UserSchema = Depends(get_current_active_user),
    notification_service: NotificationService = Depends(get_notification_service),
) -> MessageResponse:
    notification_service.mark_as_read(notification_id, current_user.id)
    return MessageResponse(message="Notification marked as read")
