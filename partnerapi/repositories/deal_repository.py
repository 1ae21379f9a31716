from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from partnerapi.models.deal import Deal as DealModel, DealStatus
from partnerapi.models.points import PointsHistory
from partnerapi.repositories.base import BaseRepository
from partnerapi.schemas.deal import Deal as DealSchema


class DealRepository(BaseRepository[DealModel, DealSchema]):
    """딜 리포지토리

    상태 전이는 모두 "status = pending 인 경우에만" 조건부 UPDATE 로 수행하여
    동시에 들어온 승인 요청 중 하나만 성공하도록 합니다.
    """

    def __init__(self, db: Session):
        super().__init__(DealModel, DealSchema, db)

    def create_deal(self, user_id: int, commit: bool = True, **fields) -> Optional[DealSchema]:
        return self.create(
            commit=commit,
            user_id=user_id,
            status=DealStatus.PENDING.value,
            points_earned=0,
            **fields,
        )

    def mark_approved(
        self, deal_id: int, points: int, approved_by: int, approved_at: datetime
    ) -> bool:
        updated = (
            self.db.query(DealModel)
            .filter(
                DealModel.id == deal_id,
                DealModel.status == DealStatus.PENDING.value,
            )
            .update(
                {
                    DealModel.status: DealStatus.APPROVED.value,
                    DealModel.points_earned: points,
                    DealModel.approved_by: approved_by,
                    DealModel.approved_at: approved_at,
                },
                synchronize_session=False,
            )
        )
        return updated > 0

    def mark_rejected(
        self, deal_id: int, rejected_by: int, rejected_at: datetime
    ) -> bool:
        updated = (
            self.db.query(DealModel)
            .filter(
                DealModel.id == deal_id,
                DealModel.status == DealStatus.PENDING.value,
            )
            .update(
                {
                    DealModel.status: DealStatus.REJECTED.value,
                    DealModel.points_earned: 0,
                    DealModel.approved_by: rejected_by,
                    DealModel.approved_at: rejected_at,
                },
                synchronize_session=False,
            )
        )
        return updated > 0

    def set_points_earned(self, deal_id: int, points: int) -> None:
        """재계산 전용 - 상태는 건드리지 않음"""
        self.db.query(DealModel).filter(DealModel.id == deal_id).update(
            {DealModel.points_earned: points}, synchronize_session=False
        )

    def list_by_user(self, user_id: int) -> List[DealSchema]:
        deals = (
            self.db.query(DealModel)
            .filter(DealModel.user_id == user_id)
            .order_by(DealModel.created_at.desc(), DealModel.id.desc())
            .all()
        )
        return self._to_schemas(deals)

    def list_pending(self) -> List[DealSchema]:
        deals = (
            self.db.query(DealModel)
            .filter(DealModel.status == DealStatus.PENDING.value)
            .order_by(DealModel.created_at.desc(), DealModel.id.desc())
            .all()
        )
        return self._to_schemas(deals)

    def list_paginated(
        self, page: int = 1, limit: int = 20, status: Optional[DealStatus] = None
    ) -> tuple:
        """(deals, total_count) 반환"""
        query = self.db.query(DealModel)
        if status is not None:
            query = query.filter(DealModel.status == DealStatus(status).value)

        total = query.count()
        deals = (
            query.order_by(DealModel.created_at.desc(), DealModel.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return self._to_schemas(deals), total

    def count_by_user(self, user_id: int, status: Optional[DealStatus] = None) -> int:
        query = self.db.query(DealModel).filter(DealModel.user_id == user_id)
        if status is not None:
            query = query.filter(DealModel.status == DealStatus(status).value)
        return query.count()

    def ids_for_recalculation(self) -> List[int]:
        """재계산 대상 딜 ID

        승인된 딜 전체 + 승인되지 않았는데 포인트나 원장 항목이 남아있는 딜
        """
        stray_ledger = select(PointsHistory.deal_id).where(
            PointsHistory.deal_id.isnot(None)
        )
        rows = (
            self.db.query(DealModel.id)
            .filter(
                or_(
                    DealModel.status == DealStatus.APPROVED.value,
                    DealModel.points_earned != 0,
                    DealModel.id.in_(stray_ledger),
                )
            )
            .order_by(DealModel.id)
            .all()
        )
        return [row[0] for row in rows]
