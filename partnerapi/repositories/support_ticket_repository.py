from typing import List, Optional

from sqlalchemy.orm import Session

from partnerapi.models.support_ticket import SupportTicket as TicketModel, TicketStatus
from partnerapi.models.user import User as UserModel
from partnerapi.repositories.base import BaseRepository
from partnerapi.schemas.support import (
    SupportTicket as TicketSchema,
    SupportTicketWithUser,
)


class SupportTicketRepository(BaseRepository[TicketModel, TicketSchema]):
    def __init__(self, db: Session):
        super().__init__(TicketModel, TicketSchema, db)

    def list_for_user(self, user_id: int) -> List[TicketSchema]:
        rows = (
            self.db.query(TicketModel)
            .filter(TicketModel.user_id == user_id)
            .order_by(TicketModel.created_at.desc(), TicketModel.id.desc())
            .all()
        )
        return self._to_schemas(rows)

    def list_with_user(
        self, status: Optional[TicketStatus] = None
    ) -> List[SupportTicketWithUser]:
        """전체 티켓 + 요청자 username/email (최신순)"""
        query = self.db.query(
            TicketModel, UserModel.username, UserModel.email
        ).outerjoin(UserModel, UserModel.id == TicketModel.user_id)
        if status is not None:
            query = query.filter(TicketModel.status == TicketStatus(status).value)
        rows = query.order_by(TicketModel.created_at.desc(), TicketModel.id.desc()).all()

        tickets = []
        for ticket, username, email in rows:
            data = TicketSchema.model_validate(ticket).model_dump()
            tickets.append(
                SupportTicketWithUser(**data, username=username, user_email=email)
            )
        return tickets
