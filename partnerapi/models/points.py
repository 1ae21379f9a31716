"""
포인트 원장 데이터 모델

사용자 포인트의 모든 적립/사용 내역을 저장하는 원장(Ledger) 테이블입니다.
잔액은 별도 컬럼 없이 항목 합계로 계산합니다.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from partnerapi.models.base import Base, BigIntPK


class PointsHistory(Base):
    """
    포인트 원장 테이블

    이 테이블은 다음 원칙을 따릅니다:
    1. 불변성(Immutable): 한번 생성된 레코드는 수정되지 않음
    2. 정정은 deal_id 기준 삭제 후 재삽입으로만 수행 (재계산 작업)
    3. deal_id(적립)와 reward_id(사용)는 동시에 설정될 수 없음
    4. 잔액 = SUM(points), 음수 합계는 표시할 때만 0으로 보정
    """

    __tablename__ = "points_history"
    __table_args__ = (
        CheckConstraint(
            "deal_id IS NULL OR reward_id IS NULL",
            name="ck_points_history_single_source",
        ),
        Index("idx_points_history_user", "user_id"),
        Index("idx_points_history_deal", "deal_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )

    # 포인트 변동량 - 양수면 적립, 음수면 사용
    points: Mapped[int] = mapped_column(Integer, nullable=False)

    deal_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("deals.id"), nullable=True
    )
    reward_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("rewards.id"), nullable=True
    )

    description: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
