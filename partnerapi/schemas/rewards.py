from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from partnerapi.models.rewards import RedemptionStatus, ShipmentStatus


class Reward(BaseModel):
    """리워드 카탈로그 상품"""

    id: int
    name: str
    description: Optional[str] = None
    points_cost: int
    category: str
    image_url: Optional[str] = None
    is_active: bool = True

    class Config:
        from_attributes = True


class RewardCreate(BaseModel):
    """관리자 리워드 생성 요청"""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    points_cost: int = Field(..., gt=0, description="필요 포인트")
    category: str = Field(..., min_length=1, max_length=100)
    image_url: Optional[str] = None
    is_active: bool = True


class RewardUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    points_cost: Optional[int] = Field(None, gt=0)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    image_url: Optional[str] = None
    is_active: Optional[bool] = None


class RedemptionRequest(BaseModel):
    delivery_address: Optional[str] = Field(None, max_length=500)


class Redemption(BaseModel):
    """리워드 교환 요청 상태"""

    id: int
    user_id: int
    reward_id: int
    status: RedemptionStatus
    shipment_status: ShipmentStatus
    delivery_address: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    redeemed_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    shipped_by: Optional[int] = None
    delivered_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RedemptionRejectRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500, description="거절 사유")


class ShipmentUpdateRequest(BaseModel):
    shipment_status: ShipmentStatus


class RedemptionListResponse(BaseModel):
    redemptions: List[Redemption]
    total_count: int
