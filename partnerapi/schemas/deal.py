from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from partnerapi.models.deal import DealStatus, ProductType


class DealCreate(BaseModel):
    """딜 등록 요청"""

    product_type: ProductType = Field(..., description="제품 카테고리")
    product_name: str = Field(..., min_length=1, max_length=255)
    deal_value: Decimal = Field(
        ..., ge=0, max_digits=14, decimal_places=2, description="딜 금액 (USD)"
    )
    quantity: int = Field(1, ge=1)
    close_date: datetime
    client_info: Optional[str] = None
    license_agreement_number: Optional[str] = Field(None, max_length=100)


class Deal(BaseModel):
    id: int
    user_id: int
    product_type: ProductType
    product_name: str
    deal_value: Decimal
    quantity: int
    close_date: datetime
    client_info: Optional[str] = None
    license_agreement_number: Optional[str] = None
    status: DealStatus
    points_earned: int = 0
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DealListResponse(BaseModel):
    """딜 목록 (페이지)"""

    deals: List[Deal]
    total_count: int
    page: int
    limit: int
    has_next: bool


class DealImportRow(BaseModel):
    """일괄 등록용 행 (파싱/검증은 업로드 계층 담당)"""

    username: str
    product_type: ProductType
    deal_value: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)
    status: DealStatus = DealStatus.PENDING
    product_name: Optional[str] = None
    quantity: int = Field(1, ge=1)
    close_date: Optional[datetime] = None
    client_info: Optional[str] = None


class BatchImportResult(BaseModel):
    imported: int
    errors: List[str] = Field(default_factory=list)
