from typing import List

from fastapi import APIRouter, Depends, status

from partnerapi.core.auth_middleware import get_current_active_user
from partnerapi.deps import get_support_service
from partnerapi.schemas.support import SupportTicket, SupportTicketCreate
from partnerapi.schemas.user import User as UserSchema
from partnerapi.services.support_service import SupportService

router = APIRouter(prefix="/support-tickets", tags=["support"])


@router.post("", response_model=SupportTicket, status_code=status.HTTP_201_CREATED)
async def create_support_ticket(
    request: SupportTicketCreate,
    current_user: UserSchema = Depends(get_current_active_user),
    support_service: SupportService = Depends(get_support_service),
) -> SupportTicket:
    return support_service.create_ticket(current_user.id, request)


@router.get("/me", response_model=List[SupportTicket])
async def get_my_support_tickets(
    current_user: UserSchema = Depends(get_current_active_user),
    support_service: SupportService = Depends(get_support_service),
) -> List[SupportTicket]:
    return support_service.get_user_tickets(current_user.id)
