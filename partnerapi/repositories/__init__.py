# Repository layer - Data access with Pydantic responses

from .base import BaseRepository
from .user_repository import UserRepository
from .deal_repository import DealRepository
from .points_repository import PointsRepository
from .rewards_repository import RewardsRepository, RedemptionRepository
from .rate_table_repository import RateTableRepository
from .notification_repository import NotificationRepository
from .report_repository import ReportRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "DealRepository",
    "PointsRepository",
    "RewardsRepository",
    "RedemptionRepository",
    "RateTableRepository",
    "NotificationRepository",
    "ReportRepository",
]
