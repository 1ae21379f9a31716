"""Pydantic models for report endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from partnerapi.models.rewards import RedemptionStatus, ShipmentStatus


class LeaderboardEntry(BaseModel):
    user_id: int
    username: str
    total_points: int


class LeaderboardResponse(BaseModel):
    entries: List[LeaderboardEntry]


class ReportSummary(BaseModel):
    user_count: int
    deal_count: int
    total_revenue: Decimal
    redeemed_rewards: int


class UserRankingEntry(BaseModel):
    user_id: int
    username: str
    first_name: str
    last_name: str
    email: str
    country: str
    total_points: int
    total_deals: int
    total_sales: Decimal


class DealsPerUserEntry(BaseModel):
    user_id: int
    username: str
    first_name: str
    last_name: str
    country: str
    total_deals: int
    total_sales: Decimal
    average_deal_size: Decimal


class RedemptionReportEntry(BaseModel):
    redemption_id: int
    user_id: int
    username: str
    reward_id: int
    reward_name: str
    points_cost: int
    status: RedemptionStatus
    shipment_status: ShipmentStatus
    redeemed_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
