import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from partnerapi.config import Settings
from partnerapi.core.exceptions import ValidationError
from partnerapi.repositories.rate_table_repository import RateTableRepository
from partnerapi.schemas.rate_table import RateSnapshot, RateTable, RateTableUpdate

logger = logging.getLogger(__name__)

CATEGORY_RATE_FIELDS = ("software_rate", "hardware_rate", "equipment_rate")


class RateTableService:
    """포인트 요율표 관리 및 요율 스냅샷 제공

    승인/재계산은 get_snapshot() 으로 얻은 불변 스냅샷을 주입받아 사용합니다.
    """

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.rate_repo = RateTableRepository(db)

    def _defaults(self) -> Dict[str, Any]:
        return {
            "software_rate": self.settings.DEFAULT_SOFTWARE_RATE,
            "hardware_rate": self.settings.DEFAULT_HARDWARE_RATE,
            "equipment_rate": self.settings.DEFAULT_EQUIPMENT_RATE,
            "grand_prize_threshold": self.settings.DEFAULT_GRAND_PRIZE_THRESHOLD,
            "default_new_customer_goal_rate": self.settings.DEFAULT_NEW_CUSTOMER_GOAL_RATE,
            "default_renewal_goal_rate": self.settings.DEFAULT_RENEWAL_GOAL_RATE,
        }

    def get_rate_table(self, region: Optional[str] = None) -> RateTable:
        """region 요율표, 없으면 기본 요율표, 그것도 없으면 설정값 기본 요율"""
        table = None
        if region is not None:
            table = self.rate_repo.get_by_region(region)
        if table is None:
            table = self.rate_repo.get_by_region(None)
        if table is None:
            table = RateTable(region=None, version=0, **self._defaults())
        return table

    def list_rate_tables(self) -> List[RateTable]:
        return self.rate_repo.list_all()

    def get_snapshot(self, region: Optional[str] = None) -> RateSnapshot:
        """승인/재계산에 주입할 요율 스냅샷

        저장된 요율이 0 이하이면 나눗셈에 쓰지 않고 설정 기본값으로 대체합니다.
        """
        table = self.get_rate_table(region)
        defaults = self._defaults()
        rates = {}
        for field in CATEGORY_RATE_FIELDS:
            value = getattr(table, field)
            if value is None or value <= 0:
                logger.warning(
                    f"Rate table {table.region or 'default'} has non-positive {field}={value}, using default {defaults[field]}"
                )
                value = defaults[field]
            rates[field] = value
        return RateSnapshot(region=table.region, version=table.version, **rates)

    def update_rate_table(
        self,
        update: RateTableUpdate,
        admin_id: int,
        region: Optional[str] = None,
    ) -> RateTable:
        """요율표 수정 (없으면 기본값 기반으로 생성)"""
        values = update.model_dump(exclude_none=True)
        if not values:
            raise ValidationError("At least one rate must be provided")

        try:
            table = self.rate_repo.upsert(
                region=region,
                values=values,
                updated_by=admin_id,
                defaults=self._defaults(),
            )
            self.db.commit()
            logger.info(
                f"Rate table {region or 'default'} updated to version {table.version} by admin {admin_id}: {values}"
            )
            return table
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update rate table {region or 'default'}: {str(e)}")
            raise
