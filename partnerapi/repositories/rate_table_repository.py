from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from partnerapi.models.rate_table import PointsConfig
from partnerapi.repositories.base import BaseRepository
from partnerapi.schemas.rate_table import RateTable


class RateTableRepository(BaseRepository[PointsConfig, RateTable]):
    """포인트 요율표 리포지토리 (region 당 한 행, NULL = 기본값)"""

    def __init__(self, db: Session):
        super().__init__(PointsConfig, RateTable, db)

    def _query_region(self, region: Optional[str]):
        query = self.db.query(PointsConfig)
        if region is None:
            return query.filter(PointsConfig.region.is_(None))
        return query.filter(PointsConfig.region == region)

    def get_by_region(self, region: Optional[str]) -> Optional[RateTable]:
        return self._to_schema(self._query_region(region).order_by(PointsConfig.id).first())

    def list_all(self):
        rows = (
            self.db.query(PointsConfig)
            .order_by(PointsConfig.region.is_(None).desc(), PointsConfig.region)
            .all()
        )
        return self._to_schemas(rows)

    def upsert(
        self,
        region: Optional[str],
        values: Dict[str, Any],
        updated_by: Optional[int],
        defaults: Dict[str, Any],
    ) -> RateTable:
        """요율표 갱신, 없으면 defaults 로 생성 (수정마다 version 증가)

        commit 은 호출한 서비스가 수행합니다.
        """
        row = self._query_region(region).with_for_update().first()
        if row is None:
            row = PointsConfig(region=region, version=1, updated_by=updated_by, **defaults)
            for key, value in values.items():
                setattr(row, key, value)
            self.db.add(row)
        else:
            for key, value in values.items():
                setattr(row, key, value)
            row.version = (row.version or 0) + 1
            row.updated_by = updated_by
        self.db.flush()
        self.db.refresh(row)
        return self._to_schema(row)
