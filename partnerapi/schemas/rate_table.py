from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from partnerapi.models.deal import ProductType


class RateTable(BaseModel):
    """요율표 응답 (저장 전 기본값이면 id 없음, version 0)"""

    id: Optional[int] = None
    region: Optional[str] = None
    software_rate: int
    hardware_rate: int
    equipment_rate: int
    grand_prize_threshold: int
    default_new_customer_goal_rate: int
    default_renewal_goal_rate: int
    version: int
    updated_by: Optional[int] = None

    class Config:
        from_attributes = True


class RateTableUpdate(BaseModel):
    """요율표 수정 요청 - 모든 요율은 양수"""

    software_rate: Optional[int] = Field(None, gt=0)
    hardware_rate: Optional[int] = Field(None, gt=0)
    equipment_rate: Optional[int] = Field(None, gt=0)
    grand_prize_threshold: Optional[int] = Field(None, gt=0)
    default_new_customer_goal_rate: Optional[int] = Field(None, gt=0)
    default_renewal_goal_rate: Optional[int] = Field(None, gt=0)


class RateSnapshot(BaseModel):
    """승인/재계산 시점에 주입되는 불변 요율 스냅샷"""

    region: Optional[str] = None
    version: int = 0
    software_rate: int = Field(..., gt=0)
    hardware_rate: int = Field(..., gt=0)
    equipment_rate: int = Field(..., gt=0)

    class Config:
        frozen = True

    def rate_for(self, product_type: ProductType) -> Optional[int]:
        """카테고리 요율, 매핑에 없는 카테고리는 None"""
        try:
            category = ProductType(product_type)
        except ValueError:
            return None
        return {
            ProductType.SOFTWARE: self.software_rate,
            ProductType.HARDWARE: self.hardware_rate,
            ProductType.EQUIPMENT: self.equipment_rate,
        }.get(category)

    def points_for(self, product_type: ProductType, deal_value: Decimal) -> int:
        """floor(deal_value / rate), 0 이하 금액은 0포인트"""
        rate = self.rate_for(product_type)
        if rate is None or deal_value is None or deal_value <= 0:
            return 0
        return int(Decimal(deal_value) // Decimal(rate))
