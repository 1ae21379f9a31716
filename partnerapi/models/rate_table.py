from typing import Optional

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from partnerapi.models.base import BaseModel, BigIntPK


class PointsConfig(BaseModel):
    """
    포인트 요율표 (USD 몇 달러당 1포인트인지)

    region 별로 한 행, region 이 NULL 인 행이 전역 기본값.
    수정할 때마다 version 을 올려 승인/재계산에 사용된 요율을 식별합니다.
    """

    __tablename__ = "points_config"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    region: Mapped[Optional[str]] = mapped_column(String(50), unique=True, nullable=True)
    software_rate: Mapped[int] = mapped_column(Integer, nullable=False)
    hardware_rate: Mapped[int] = mapped_column(Integer, nullable=False)
    equipment_rate: Mapped[int] = mapped_column(Integer, nullable=False)
    grand_prize_threshold: Mapped[int] = mapped_column(Integer, nullable=False)
    default_new_customer_goal_rate: Mapped[int] = mapped_column(Integer, nullable=False)
    default_renewal_goal_rate: Mapped[int] = mapped_column(Integer, nullable=False)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    updated_by: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
