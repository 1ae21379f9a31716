from datetime import datetime, timezone
from decimal import Decimal

import pytest

from partnerapi.core.exceptions import InvalidStateError, NotFoundError
from partnerapi.models.deal import DealStatus, ProductType
from partnerapi.models.notification import Notification
from partnerapi.models.points import PointsHistory
from partnerapi.models.user import UserRole
from partnerapi.schemas.deal import DealCreate, DealImportRow
from partnerapi.schemas.rate_table import RateSnapshot
from partnerapi.services.deal_service import DealService, calculate_deal_points


@pytest.fixture
def deal_service(db_session, settings):
    return DealService(db_session, settings)


@pytest.fixture
def admin(make_user):
    return make_user(role=UserRole.ADMIN, username="admin")


def ledger_for(db_session, user_id):
    return (
        db_session.query(PointsHistory)
        .filter(PointsHistory.user_id == user_id)
        .order_by(PointsHistory.id)
        .all()
    )


class TestCalculateDealPoints:
    def test_floor_division_by_category_rate(self):
        rates = RateSnapshot(software_rate=1000, hardware_rate=5000, equipment_rate=10000)
        deal = type("D", (), {"id": 1, "product_type": "hardware", "deal_value": Decimal("14999.99")})

        assert calculate_deal_points(deal, rates) == 2

    def test_unknown_category_earns_zero(self):
        rates = RateSnapshot(software_rate=1000, hardware_rate=5000, equipment_rate=10000)
        deal = type("D", (), {"id": 1, "product_type": "consulting", "deal_value": Decimal("50000")})

        assert calculate_deal_points(deal, rates) == 0

    def test_zero_value_earns_zero(self):
        rates = RateSnapshot(software_rate=1000, hardware_rate=5000, equipment_rate=10000)
        deal = type("D", (), {"id": 1, "product_type": "software", "deal_value": Decimal("0")})

        assert calculate_deal_points(deal, rates) == 0


class TestCreateDeal:
    def test_create_deal_is_pending_with_zero_points(self, deal_service, make_user):
        """딜 등록 시 pending, 포인트 0"""
        # Given
        user = make_user()
        request = DealCreate(
            product_type=ProductType.SOFTWARE,
            product_name="CRM License",
            deal_value=Decimal("2500.00"),
            close_date=datetime(2024, 3, 1, tzinfo=timezone.utc),
        )

        # When
        deal = deal_service.create_deal(user.id, request)

        # Then
        assert deal.status == DealStatus.PENDING
        assert deal.points_earned == 0
        assert deal.user_id == user.id
        assert deal_service.get_pending_deals()[0].id == deal.id

    def test_create_deal_unknown_user(self, deal_service):
        request = DealCreate(
            product_type=ProductType.SOFTWARE,
            product_name="CRM License",
            deal_value=Decimal("100"),
            close_date=datetime(2024, 3, 1, tzinfo=timezone.utc),
        )

        with pytest.raises(NotFoundError):
            deal_service.create_deal(9999, request)


class TestApproveDeal:
    def test_approve_awards_points_and_single_ledger_entry(
        self, deal_service, db_session, make_user, make_deal, admin
    ):
        """2500 USD 소프트웨어 딜, 요율 1000 -> 2포인트"""
        # Given
        user = make_user()
        deal = make_deal(user, deal_value="2500.00")

        # When
        approved = deal_service.approve_deal(deal.id, admin.id)

        # Then
        assert approved.status == DealStatus.APPROVED
        assert approved.points_earned == 2
        assert approved.approved_by == admin.id
        assert approved.approved_at is not None

        entries = ledger_for(db_session, user.id)
        assert len(entries) == 1
        assert entries[0].points == 2
        assert entries[0].deal_id == deal.id
        assert entries[0].description == "Points earned for deal: Office Suite"

    def test_approve_twice_is_noop(self, deal_service, db_session, make_user, make_deal, admin):
        """이미 승인된 딜 재승인 시 원장 중복 없음"""
        user = make_user()
        deal = make_deal(user, deal_value="2500.00")
        deal_service.approve_deal(deal.id, admin.id)

        again = deal_service.approve_deal(deal.id, admin.id)

        assert again.status == DealStatus.APPROVED
        assert again.points_earned == 2
        assert len(ledger_for(db_session, user.id)) == 1

    def test_approve_with_injected_rates(self, deal_service, make_user, make_deal, admin):
        user = make_user()
        deal = make_deal(user, deal_value="2500.00")
        rates = RateSnapshot(software_rate=500, hardware_rate=5000, equipment_rate=10000)

        approved = deal_service.approve_deal(deal.id, admin.id, rates=rates)

        assert approved.points_earned == 5

    def test_approve_below_rate_creates_no_entry(
        self, deal_service, db_session, make_user, make_deal, admin
    ):
        user = make_user()
        deal = make_deal(user, deal_value="999.99")

        approved = deal_service.approve_deal(deal.id, admin.id)

        assert approved.status == DealStatus.APPROVED
        assert approved.points_earned == 0
        assert ledger_for(db_session, user.id) == []

    def test_approve_rejected_deal_raises(self, deal_service, make_user, make_deal, admin):
        user = make_user()
        deal = make_deal(user, status=DealStatus.REJECTED)

        with pytest.raises(InvalidStateError):
            deal_service.approve_deal(deal.id, admin.id)

    def test_approve_missing_deal(self, deal_service, admin):
        with pytest.raises(NotFoundError):
            deal_service.approve_deal(12345, admin.id)

    def test_approve_uses_regional_rates(
        self, deal_service, make_user, make_deal, admin
    ):
        from partnerapi.schemas.rate_table import RateTableUpdate

        deal_service.rate_service.update_rate_table(
            RateTableUpdate(software_rate=250), admin.id, region="NOLA"
        )
        user = make_user(region="NOLA")
        deal = make_deal(user, deal_value="1000.00")

        approved = deal_service.approve_deal(deal.id, admin.id)

        assert approved.points_earned == 4

    def test_approve_sends_notification(
        self, deal_service, db_session, make_user, make_deal, admin
    ):
        user = make_user()
        deal = make_deal(user, deal_value="5000.00")

        deal_service.approve_deal(deal.id, admin.id)

        notifications = (
            db_session.query(Notification).filter(Notification.user_id == user.id).all()
        )
        assert len(notifications) == 1
        assert notifications[0].type == "deal_approved"
        assert "5 points" in notifications[0].message


class TestRejectDeal:
    def test_reject_pending_deal(self, deal_service, db_session, make_user, make_deal, admin):
        user = make_user()
        deal = make_deal(user)

        rejected = deal_service.reject_deal(deal.id, admin.id)

        assert rejected.status == DealStatus.REJECTED
        assert rejected.points_earned == 0
        assert rejected.approved_by == admin.id
        assert ledger_for(db_session, user.id) == []

    def test_reject_twice_is_noop(self, deal_service, make_user, make_deal, admin):
        user = make_user()
        deal = make_deal(user)
        deal_service.reject_deal(deal.id, admin.id)

        again = deal_service.reject_deal(deal.id, admin.id)

        assert again.status == DealStatus.REJECTED

    def test_reject_approved_deal_raises(self, deal_service, make_user, make_deal, admin):
        user = make_user()
        deal = make_deal(user)
        deal_service.approve_deal(deal.id, admin.id)

        with pytest.raises(InvalidStateError):
            deal_service.reject_deal(deal.id, admin.id)


class TestDealQueries:
    def test_get_all_deals_paginates_and_filters(
        self, deal_service, make_user, make_deal, admin
    ):
        user = make_user()
        for _ in range(3):
            make_deal(user)
        make_deal(user, status=DealStatus.REJECTED)

        first_page = deal_service.get_all_deals(page=1, limit=2)
        pending = deal_service.get_all_deals(status=DealStatus.PENDING)

        assert first_page.total_count == 4
        assert len(first_page.deals) == 2
        assert first_page.has_next is True
        assert pending.total_count == 3
        assert pending.has_next is False


class TestImportDeals:
    def test_import_runs_transitions_and_collects_errors(
        self, deal_service, db_session, make_user, admin
    ):
        """행 상태가 approved 이면 일반 승인 경로로 포인트 적립"""
        # Given
        user = make_user(username="importer")
        rows = [
            DealImportRow(
                username="importer",
                product_type=ProductType.HARDWARE,
                deal_value=Decimal("10000"),
                status=DealStatus.APPROVED,
            ),
            DealImportRow(
                username="importer",
                product_type=ProductType.SOFTWARE,
                deal_value=Decimal("3000"),
                status=DealStatus.REJECTED,
            ),
            DealImportRow(
                username="ghost",
                product_type=ProductType.SOFTWARE,
                deal_value=Decimal("3000"),
            ),
        ]

        # When
        result = deal_service.import_deals(rows, admin.id)

        # Then
        assert result.imported == 2
        assert len(result.errors) == 1
        assert "ghost" in result.errors[0]

        deals = deal_service.get_user_deals(user.id)
        statuses = sorted(d.status.value for d in deals)
        assert statuses == ["approved", "rejected"]
        assert [e.points for e in ledger_for(db_session, user.id)] == [2]
