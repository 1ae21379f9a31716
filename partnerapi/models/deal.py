"""
딜(Deal) 데이터 모델

파트너 사용자가 등록한 판매 실적. 관리자 승인 시점의 요율표로 포인트가 계산됩니다.
상태 전이: pending -> approved | rejected (일반 흐름에서 되돌리지 않음)
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from partnerapi.models.base import BaseModel, BigIntPK


class ProductType(str, Enum):
    SOFTWARE = "software"
    HARDWARE = "hardware"
    EQUIPMENT = "equipment"


class DealStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Deal(BaseModel):
    __tablename__ = "deals"
    __table_args__ = (
        Index("idx_deals_user_status", "user_id", "status"),
        Index("idx_deals_status", "status"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    product_type: Mapped[str] = mapped_column(String(20), nullable=False)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # 금액은 부동소수점이 아닌 고정 소수점으로 저장
    deal_value: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    close_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    client_info: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    license_agreement_number: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(20), default=DealStatus.PENDING.value, nullable=False
    )
    points_earned: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    approved_by: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self):
        return f"<Deal(id={self.id}, user_id={self.user_id}, status={self.status}, points={self.points_earned})>"
