from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from partnerapi.config import Settings
from partnerapi.core.exceptions import (
    BaseAPIException,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from partnerapi.models.support_ticket import TicketStatus
from partnerapi.repositories.support_ticket_repository import SupportTicketRepository
from partnerapi.schemas.support import (
    SupportTicket,
    SupportTicketCreate,
    SupportTicketListResponse,
    SupportTicketUpdate,
)
from partnerapi.services.notification_service import (
    NotificationEvent,
    NotificationService,
)
import logging

logger = logging.getLogger(__name__)


class SupportService:
    """파트너 문의 티켓 접수 및 관리자 응답"""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.ticket_repo = SupportTicketRepository(db)
        self.notification_service = NotificationService(db, settings)

    def create_ticket(self, user_id: int, data: SupportTicketCreate) -> SupportTicket:
        ticket = self.ticket_repo.create(
            commit=True,
            user_id=user_id,
            subject=data.subject,
            message=data.message,
            priority=data.priority.value,
            status=TicketStatus.OPEN.value,
        )
        logger.info(f"Support ticket {ticket.id} opened by user {user_id}")
        return ticket

    def get_ticket(self, ticket_id: int) -> SupportTicket:
        ticket = self.ticket_repo.get_by_id(ticket_id)
        if ticket is None:
            raise NotFoundError(f"Support ticket {ticket_id} not found")
        return ticket

    def get_user_tickets(self, user_id: int) -> List[SupportTicket]:
        return self.ticket_repo.list_for_user(user_id)

    def get_all_tickets(
        self, status: Optional[TicketStatus] = None
    ) -> SupportTicketListResponse:
        tickets = self.ticket_repo.list_with_user(status=status)
        return SupportTicketListResponse(tickets=tickets, total_count=len(tickets))

    def update_ticket(
        self, ticket_id: int, admin_id: int, data: SupportTicketUpdate
    ) -> SupportTicket:
        """관리자 응답/상태 변경

        답변이 달린 open 티켓은 상태를 지정하지 않으면 in_progress 로 이동.
        closed 티켓은 변경 불가.
        """
        values = data.model_dump(exclude_unset=True, exclude_none=True)
        if not values:
            raise ValidationError("No fields to update")

        try:
            ticket = self.ticket_repo.get_model_for_update(ticket_id)
            if ticket is None:
                raise NotFoundError(f"Support ticket {ticket_id} not found")
            if ticket.status == TicketStatus.CLOSED.value:
                raise InvalidStateError(f"Support ticket {ticket_id} is closed")

            previous_status = ticket.status
            if "status" in values:
                ticket.status = TicketStatus(values["status"]).value
            if "priority" in values:
                ticket.priority = values["priority"].value
            if "assigned_to" in values:
                ticket.assigned_to = values["assigned_to"]
            if "admin_response" in values:
                ticket.admin_response = values["admin_response"]
                ticket.responded_at = datetime.now(timezone.utc)
                ticket.responded_by = admin_id
                if "status" not in values and previous_status == TicketStatus.OPEN.value:
                    ticket.status = TicketStatus.IN_PROGRESS.value

            self.db.commit()
            updated = self.ticket_repo.reload(ticket)
            logger.info(
                f"Support ticket {ticket_id} updated by {admin_id}: {previous_status} -> {updated.status.value}"
            )
        except BaseAPIException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update support ticket {ticket_id}: {str(e)}")
            raise

        if "admin_response" in values or updated.status.value != previous_status:
            self.notification_service.notify(
                updated.user_id,
                NotificationEvent.TICKET_UPDATED,
                {
                    "subject": updated.subject,
                    "status": updated.status.value,
                    "admin_response": updated.admin_response or "",
                },
            )
        return updated
