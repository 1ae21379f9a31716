import pytest

from partnerapi.core.exceptions import InvalidStateError, NotFoundError, ValidationError
from partnerapi.models.notification import Notification
from partnerapi.models.support_ticket import TicketPriority, TicketStatus
from partnerapi.models.user import UserRole
from partnerapi.schemas.support import SupportTicketCreate, SupportTicketUpdate
from partnerapi.services.support_service import SupportService


@pytest.fixture
def support_service(db_session, settings):
    return SupportService(db_session, settings)


@pytest.fixture
def admin(make_user):
    return make_user(role=UserRole.ADMIN, username="admin")


def open_ticket(service, user, subject="Missing points"):
    return service.create_ticket(
        user.id,
        SupportTicketCreate(subject=subject, message="Deal 12 shows 0 points"),
    )


class TestCreateTicket:
    def test_create_defaults(self, support_service, make_user):
        user = make_user()

        ticket = open_ticket(support_service, user)

        assert ticket.status == TicketStatus.OPEN
        assert ticket.priority == TicketPriority.MEDIUM
        assert ticket.admin_response is None

    def test_user_sees_only_own_tickets(self, support_service, make_user):
        user = make_user()
        other = make_user()
        first = open_ticket(support_service, user, "First")
        second = open_ticket(support_service, user, "Second")
        open_ticket(support_service, other, "Not mine")

        tickets = support_service.get_user_tickets(user.id)

        assert {t.id for t in tickets} == {first.id, second.id}

    def test_admin_listing_includes_requester(self, support_service, make_user):
        user = make_user(username="requester")
        open_ticket(support_service, user)

        listing = support_service.get_all_tickets()

        assert listing.total_count == 1
        assert listing.tickets[0].username == "requester"
        assert listing.tickets[0].user_email == "requester@example.com"


class TestUpdateTicket:
    def test_response_moves_open_ticket_to_in_progress(
        self, support_service, db_session, make_user, admin
    ):
        # Given
        user = make_user()
        ticket = open_ticket(support_service, user)

        # When
        updated = support_service.update_ticket(
            ticket.id, admin.id, SupportTicketUpdate(admin_response="Looking into it")
        )

        # Then
        assert updated.status == TicketStatus.IN_PROGRESS
        assert updated.responded_by == admin.id
        assert updated.responded_at is not None
        notification = db_session.query(Notification).filter(Notification.user_id == user.id).one()
        assert notification.type == "ticket_updated"
        assert "Looking into it" in notification.message

    def test_explicit_status_wins(self, support_service, make_user, admin):
        ticket = open_ticket(support_service, make_user())

        updated = support_service.update_ticket(
            ticket.id,
            admin.id,
            SupportTicketUpdate(admin_response="Fixed", status=TicketStatus.RESOLVED),
        )

        assert updated.status == TicketStatus.RESOLVED

    def test_priority_only_change_does_not_notify(
        self, support_service, db_session, make_user, admin
    ):
        user = make_user()
        ticket = open_ticket(support_service, user)

        updated = support_service.update_ticket(
            ticket.id, admin.id, SupportTicketUpdate(priority=TicketPriority.HIGH)
        )

        assert updated.priority == TicketPriority.HIGH
        assert updated.status == TicketStatus.OPEN
        assert db_session.query(Notification).count() == 0

    def test_closed_ticket_is_frozen(self, support_service, make_user, admin):
        ticket = open_ticket(support_service, make_user())
        support_service.update_ticket(
            ticket.id, admin.id, SupportTicketUpdate(status=TicketStatus.CLOSED)
        )

        with pytest.raises(InvalidStateError):
            support_service.update_ticket(
                ticket.id, admin.id, SupportTicketUpdate(status=TicketStatus.OPEN)
            )

    def test_empty_update_raises(self, support_service, make_user, admin):
        ticket = open_ticket(support_service, make_user())

        with pytest.raises(ValidationError):
            support_service.update_ticket(ticket.id, admin.id, SupportTicketUpdate())

    def test_missing_ticket(self, support_service, admin):
        with pytest.raises(NotFoundError):
            support_service.update_ticket(
                404, admin.id, SupportTicketUpdate(status=TicketStatus.RESOLVED)
            )
