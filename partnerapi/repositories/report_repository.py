"""
리포트 집계 리포지토리

원장과 딜 테이블 위의 읽기 전용 롤업입니다. 별도 상태를 갖지 않습니다.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from partnerapi.models.deal import Deal as DealModel, DealStatus
from partnerapi.models.points import PointsHistory
from partnerapi.models.rewards import Reward as RewardModel, UserReward
from partnerapi.models.user import User as UserModel, UserRole


def _date_conditions(column, start_date: Optional[datetime], end_date: Optional[datetime]) -> list:
    conditions = []
    if start_date is not None:
        conditions.append(column >= start_date)
    if end_date is not None:
        conditions.append(column <= end_date)
    return conditions


class ReportRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_leaderboard(self, limit: int = 5) -> List[Dict[str, Any]]:
        """원장 합계 상위 사용자 (합계 0 이하 제외)"""
        total = func.sum(PointsHistory.points)
        rows = (
            self.db.query(UserModel.id, UserModel.username, total.label("total_points"))
            .join(PointsHistory, PointsHistory.user_id == UserModel.id)
            .group_by(UserModel.id, UserModel.username)
            .having(total > 0)
            .order_by(total.desc(), UserModel.id)
            .limit(limit)
            .all()
        )
        return [
            {"user_id": row[0], "username": row[1], "total_points": int(row[2])}
            for row in rows
        ]

    def get_summary(
        self,
        country: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        user_query = self.db.query(func.count(UserModel.id))
        if country:
            user_query = user_query.filter(UserModel.country == country)
        user_count = user_query.scalar() or 0

        deal_query = self.db.query(
            func.count(DealModel.id), func.coalesce(func.sum(DealModel.deal_value), 0)
        ).filter(
            DealModel.status == DealStatus.APPROVED.value,
            *_date_conditions(DealModel.created_at, start_date, end_date),
        )
        redeemed_query = self.db.query(func.count(PointsHistory.id)).filter(
            PointsHistory.reward_id.isnot(None),
            *_date_conditions(PointsHistory.created_at, start_date, end_date),
        )
        if country:
            deal_query = deal_query.join(UserModel, UserModel.id == DealModel.user_id).filter(
                UserModel.country == country
            )
            redeemed_query = redeemed_query.join(
                UserModel, UserModel.id == PointsHistory.user_id
            ).filter(UserModel.country == country)

        deal_count, revenue = deal_query.one()
        return {
            "user_count": int(user_count),
            "deal_count": int(deal_count or 0),
            "total_revenue": revenue or 0,
            "redeemed_rewards": int(redeemed_query.scalar() or 0),
        }

    def _approved_deals_subquery(self, start_date, end_date):
        return (
            self.db.query(
                DealModel.user_id.label("user_id"),
                func.count(DealModel.id).label("total_deals"),
                func.sum(DealModel.deal_value).label("total_sales"),
            )
            .filter(
                DealModel.status == DealStatus.APPROVED.value,
                *_date_conditions(DealModel.created_at, start_date, end_date),
            )
            .group_by(DealModel.user_id)
            .subquery()
        )

    def get_user_ranking(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        """일반 사용자별 적립 포인트(양수 항목만) + 승인 딜 수/매출"""
        points_sq = (
            self.db.query(
                PointsHistory.user_id.label("user_id"),
                func.sum(PointsHistory.points).label("total_points"),
            )
            .filter(
                PointsHistory.points > 0,
                *_date_conditions(PointsHistory.created_at, start_date, end_date),
            )
            .group_by(PointsHistory.user_id)
            .subquery()
        )
        deals_sq = self._approved_deals_subquery(start_date, end_date)

        total_points = func.coalesce(points_sq.c.total_points, 0)
        rows = (
            self.db.query(
                UserModel,
                total_points,
                func.coalesce(deals_sq.c.total_deals, 0),
                func.coalesce(deals_sq.c.total_sales, 0),
            )
            .outerjoin(points_sq, points_sq.c.user_id == UserModel.id)
            .outerjoin(deals_sq, deals_sq.c.user_id == UserModel.id)
            .filter(UserModel.role == UserRole.USER.value)
            .order_by(total_points.desc(), UserModel.id)
            .all()
        )
        return [
            {
                "user_id": user.id,
                "username": user.username,
                "first_name": user.first_name,
                "last_name": user.last_name,
                "email": user.email,
                "country": user.country,
                "total_points": int(points or 0),
                "total_deals": int(deals or 0),
                "total_sales": sales or 0,
            }
            for user, points, deals, sales in rows
        ]

    def get_deals_per_user(
        self,
        country: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        """승인 딜이 있는 사용자별 딜 수/매출"""
        deals_sq = self._approved_deals_subquery(start_date, end_date)
        query = (
            self.db.query(UserModel, deals_sq.c.total_deals, deals_sq.c.total_sales)
            .join(deals_sq, deals_sq.c.user_id == UserModel.id)
        )
        if country:
            query = query.filter(UserModel.country == country)
        rows = query.order_by(
            deals_sq.c.total_deals.desc(), deals_sq.c.total_sales.desc(), UserModel.id
        ).all()
        return [
            {
                "user_id": user.id,
                "username": user.username,
                "first_name": user.first_name,
                "last_name": user.last_name,
                "country": user.country,
                "total_deals": int(deals or 0),
                "total_sales": sales or 0,
            }
            for user, deals, sales in rows
        ]

    def get_redemptions(
        self,
        status: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        query = (
            self.db.query(UserReward, UserModel.username, RewardModel.name, RewardModel.points_cost)
            .join(UserModel, UserModel.id == UserReward.user_id)
            .join(RewardModel, RewardModel.id == UserReward.reward_id)
            .filter(*_date_conditions(UserReward.redeemed_at, start_date, end_date))
        )
        if status:
            query = query.filter(UserReward.status == status)
        rows = query.order_by(UserReward.redeemed_at.desc(), UserReward.id.desc()).all()
        return [
            {
                "redemption_id": redemption.id,
                "user_id": redemption.user_id,
                "username": username,
                "reward_id": redemption.reward_id,
                "reward_name": reward_name,
                "points_cost": points_cost,
                "status": redemption.status,
                "shipment_status": redemption.shipment_status,
                "redeemed_at": redemption.redeemed_at,
                "approved_at": redemption.approved_at,
            }
            for redemption, username, reward_name, points_cost in rows
        ]
