from decimal import Decimal

import pytest

from partnerapi.models.deal import DealStatus
from partnerapi.models.rewards import RedemptionStatus
from partnerapi.models.user import UserRole
from partnerapi.services.report_service import ReportService
from partnerapi.services.reward_service import RewardService


@pytest.fixture
def report_service(db_session, settings):
    return ReportService(db_session, settings)


class TestLeaderboard:
    def test_net_sum_ordering_and_zero_excluded(self, report_service, make_user, add_points):
        """순 합계 내림차순, 0 이하 사용자 제외"""
        # Given
        alice = make_user(username="alice")
        bob = make_user(username="bob")
        carol = make_user(username="carol")
        add_points(alice, 10)
        add_points(alice, -8)
        add_points(bob, 5)
        add_points(carol, 3)
        add_points(carol, -3)

        # When
        board = report_service.get_leaderboard()

        # Then
        assert [(e.username, e.total_points) for e in board.entries] == [("bob", 5), ("alice", 2)]

    def test_limit_defaults_to_setting(self, report_service, settings, make_user, add_points):
        for i in range(7):
            add_points(make_user(), i + 1)

        assert len(report_service.get_leaderboard().entries) == settings.LEADERBOARD_DEFAULT_LIMIT
        assert len(report_service.get_leaderboard(limit=2).entries) == 2


class TestAdminReports:
    def test_summary(self, report_service, make_user, make_deal, make_reward, add_points):
        us_user = make_user(country="US")
        br_user = make_user(country="Brazil")
        make_deal(us_user, deal_value="1000.50", status=DealStatus.APPROVED)
        make_deal(br_user, deal_value="2000.00", status=DealStatus.APPROVED)
        make_deal(br_user, deal_value="9999.00", status=DealStatus.PENDING)
        reward = make_reward()
        add_points(br_user, -1, reward_id=reward.id)

        summary = report_service.get_summary()
        brazil = report_service.get_summary(country="Brazil")

        assert summary.user_count == 2
        assert summary.deal_count == 2
        assert summary.total_revenue == Decimal("3000.50")
        assert summary.redeemed_rewards == 1
        assert brazil.user_count == 1
        assert brazil.deal_count == 1
        assert brazil.total_revenue == Decimal("2000.00")

    def test_user_ranking_counts_positive_entries_for_partners(
        self, report_service, make_user, make_deal, add_points
    ):
        partner = make_user(username="partner")
        make_user(role=UserRole.ADMIN, username="boss")
        make_deal(partner, deal_value="1500.00", status=DealStatus.APPROVED)
        add_points(partner, 7)
        add_points(partner, -4)

        ranking = report_service.get_user_ranking()

        assert len(ranking) == 1
        assert ranking[0].username == "partner"
        assert ranking[0].total_points == 7
        assert ranking[0].total_deals == 1
        assert ranking[0].total_sales == Decimal("1500.00")

    def test_deals_per_user_average(self, report_service, make_user, make_deal):
        user = make_user()
        make_deal(user, deal_value="1000.00", status=DealStatus.APPROVED)
        make_deal(user, deal_value="2000.01", status=DealStatus.APPROVED)
        make_deal(user, deal_value="5000.00", status=DealStatus.REJECTED)

        rows = report_service.get_deals_per_user()

        assert len(rows) == 1
        assert rows[0].total_deals == 2
        assert rows[0].total_sales == Decimal("3000.01")
        assert rows[0].average_deal_size == Decimal("1500.01")

    def test_redemptions_report_filters_by_status(
        self, report_service, db_session, settings, make_user, make_reward, add_points
    ):
        user = make_user()
        add_points(user, 20)
        mug = make_reward(points_cost=3, name="Coffee Mug")
        cap = make_reward(points_cost=4, name="Cap")
        reward_service = RewardService(db_session, settings)
        reward_service.request_redemption(user.id, mug.id)
        reward_service.request_redemption(user.id, cap.id)

        everything = report_service.get_redemptions_report()
        pending = report_service.get_redemptions_report(status=RedemptionStatus.PENDING)
        approved = report_service.get_redemptions_report(status=RedemptionStatus.APPROVED)

        assert len(everything) == 2
        assert len(pending) == 2
        assert approved == []
        assert {row.reward_name for row in everything} == {"Coffee Mug", "Cap"}
