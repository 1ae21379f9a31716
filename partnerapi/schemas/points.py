from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class LedgerEntry(BaseModel):
    """포인트 원장 항목"""

    id: int = Field(..., description="원장 항목 ID")
    user_id: int
    points: int = Field(..., description="포인트 변화량 (+적립 / -사용)")
    deal_id: Optional[int] = Field(None, description="적립 원천 딜")
    reward_id: Optional[int] = Field(None, description="사용한 리워드")
    description: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PointsBalanceResponse(BaseModel):
    """포인트 잔액 응답"""

    user_id: int
    balance: int = Field(..., description="사용 가능 포인트 (0 이상)")
    total_earned: int = Field(..., description="원장 합계 (보정 없음)")


class PointsHistoryResponse(BaseModel):
    """포인트 내역 조회 응답"""

    balance: int = Field(..., description="현재 잔액")
    entries: List[LedgerEntry] = Field(..., description="원장 항목 목록 (최신순)")
    total_count: int = Field(..., description="전체 항목 수")
    has_next: bool = Field(..., description="다음 페이지 존재 여부")


class RecalculationResult(BaseModel):
    """포인트 재계산 결과"""

    updated: int = Field(0, description="포인트가 변경된 딜 수")
    errors: List[str] = Field(default_factory=list, description="딜별 오류 메시지")
