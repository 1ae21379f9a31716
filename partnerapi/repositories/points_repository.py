from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from partnerapi.models.points import PointsHistory
from partnerapi.repositories.base import BaseRepository
from partnerapi.schemas.points import LedgerEntry


class PointsRepository(BaseRepository[PointsHistory, LedgerEntry]):
    """포인트 원장 리포지토리

    원장 항목은 추가와 deal_id 기준 삭제만 제공합니다 (수정 없음).
    모든 쓰기는 commit=False 로 서비스의 트랜잭션에 참여합니다.
    """

    def __init__(self, db: Session):
        super().__init__(PointsHistory, LedgerEntry, db)

    def append(
        self,
        user_id: int,
        points: int,
        description: str,
        deal_id: Optional[int] = None,
        reward_id: Optional[int] = None,
    ) -> LedgerEntry:
        """원장 항목 추가 (flush 만 수행, commit 은 호출자)"""
        if user_id is None or points is None:
            raise ValueError("user_id and points are required")
        if deal_id is not None and reward_id is not None:
            raise ValueError("ledger entry cannot reference both a deal and a reward")

        entry = PointsHistory(
            user_id=user_id,
            points=points,
            deal_id=deal_id,
            reward_id=reward_id,
            description=description,
        )
        self.db.add(entry)
        self.db.flush()
        self.db.refresh(entry)
        return self._to_schema(entry)

    def get_points_sum(self, user_id: int) -> int:
        """사용자 원장 합계 (보정 없음)"""
        total = (
            self.db.query(func.coalesce(func.sum(PointsHistory.points), 0))
            .filter(PointsHistory.user_id == user_id)
            .scalar()
        )
        return int(total or 0)

    def get_user_entries(
        self, user_id: int, limit: int = 50, offset: int = 0
    ) -> List[LedgerEntry]:
        entries = (
            self.db.query(PointsHistory)
            .filter(PointsHistory.user_id == user_id)
            .order_by(PointsHistory.created_at.desc(), PointsHistory.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return self._to_schemas(entries)

    def count_user_entries(self, user_id: int) -> int:
        return self.count({"user_id": user_id})

    def get_deal_entries(self, deal_id: int) -> List[LedgerEntry]:
        entries = (
            self.db.query(PointsHistory)
            .filter(PointsHistory.deal_id == deal_id)
            .order_by(PointsHistory.id)
            .all()
        )
        return self._to_schemas(entries)

    def delete_deal_entries(self, deal_id: int) -> int:
        """딜에 연결된 원장 항목 삭제 (재계산의 delete-then-insert 정정)"""
        return (
            self.db.query(PointsHistory)
            .filter(PointsHistory.deal_id == deal_id)
            .delete(synchronize_session=False)
        )

    def count_spend_entries(self, user_id: int) -> int:
        """리워드 교환으로 차감된 항목 수"""
        return (
            self.db.query(PointsHistory)
            .filter(
                PointsHistory.user_id == user_id,
                PointsHistory.reward_id.isnot(None),
            )
            .count()
        )
