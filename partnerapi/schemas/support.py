from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from partnerapi.models.support_ticket import TicketPriority, TicketStatus


class SupportTicketCreate(BaseModel):
    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1, max_length=5000)
    priority: TicketPriority = TicketPriority.MEDIUM


class SupportTicketUpdate(BaseModel):
    """관리자 티켓 처리 (지정한 필드만 반영)"""

    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None
    admin_response: Optional[str] = Field(None, min_length=1, max_length=5000)
    assigned_to: Optional[int] = None


class SupportTicket(BaseModel):
    id: int
    user_id: int
    subject: str
    message: str
    status: TicketStatus
    priority: TicketPriority
    assigned_to: Optional[int] = None
    admin_response: Optional[str] = None
    responded_at: Optional[datetime] = None
    responded_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SupportTicketWithUser(SupportTicket):
    """관리자 목록용 - 요청자 정보 포함"""

    username: Optional[str] = None
    user_email: Optional[str] = None


class SupportTicketListResponse(BaseModel):
    tickets: List[SupportTicketWithUser]
    total_count: int
