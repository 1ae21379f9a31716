from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from partnerapi.config import Settings
from partnerapi.core.exceptions import (
    BaseAPIException,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from partnerapi.models.deal import Deal as DealModel, DealStatus
from partnerapi.repositories.deal_repository import DealRepository
from partnerapi.repositories.user_repository import UserRepository
from partnerapi.schemas.deal import (
    BatchImportResult,
    Deal,
    DealCreate,
    DealImportRow,
    DealListResponse,
)
from partnerapi.schemas.rate_table import RateSnapshot
from partnerapi.services.notification_service import (
    NotificationEvent,
    NotificationService,
)
from partnerapi.services.point_service import PointService
from partnerapi.services.rate_table_service import RateTableService
import logging

logger = logging.getLogger(__name__)


def calculate_deal_points(deal, rates: RateSnapshot) -> int:
    """딜 포인트 = floor(deal_value / 카테고리 요율)

    요율 매핑에 없는 카테고리는 0포인트로 처리하고 경고를 남깁니다.
    """
    if rates.rate_for(deal.product_type) is None:
        logger.warning(
            f"No rate for product type '{deal.product_type}' on deal {deal.id}, awarding 0 points"
        )
        return 0
    return rates.points_for(deal.product_type, deal.deal_value)


class DealService:
    """딜 등록 및 승인 상태 머신 (pending -> approved | rejected)"""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.deal_repo = DealRepository(db)
        self.user_repo = UserRepository(db)
        self.point_service = PointService(db, settings)
        self.rate_service = RateTableService(db, settings)
        self.notification_service = NotificationService(db, settings)

    def create_deal(self, user_id: int, data: DealCreate) -> Deal:
        """딜 등록 (pending 상태로 생성)"""
        if self.user_repo.get_by_id(user_id) is None:
            raise NotFoundError(f"User {user_id} not found")
        if data.deal_value < 0:
            raise ValidationError("Deal value must not be negative")

        try:
            fields = data.model_dump()
            fields["product_type"] = data.product_type.value
            deal = self.deal_repo.create_deal(user_id, commit=True, **fields)
            logger.info(f"Deal {deal.id} created for user {user_id}: {data.deal_value} USD")
            return deal
        except Exception as e:
            logger.error(f"Failed to create deal for user {user_id}: {str(e)}")
            raise

    def get_deal(self, deal_id: int) -> Deal:
        deal = self.deal_repo.get_by_id(deal_id)
        if deal is None:
            raise NotFoundError(f"Deal {deal_id} not found")
        return deal

    def get_user_deals(self, user_id: int) -> List[Deal]:
        return self.deal_repo.list_by_user(user_id)

    def get_pending_deals(self) -> List[Deal]:
        return self.deal_repo.list_pending()

    def get_all_deals(
        self, page: int = 1, limit: int = 20, status: Optional[DealStatus] = None
    ) -> DealListResponse:
        deals, total = self.deal_repo.list_paginated(page=page, limit=limit, status=status)
        return DealListResponse(
            deals=deals,
            total_count=total,
            page=page,
            limit=limit,
            has_next=page * limit < total,
        )

    def rates_for_user(self, user_id: int) -> RateSnapshot:
        """사용자 지역 요율 스냅샷 (없으면 기본 요율)"""
        user = self.user_repo.get_by_id(user_id)
        return self.rate_service.get_snapshot(user.region if user else None)

    def approve_deal(
        self, deal_id: int, approver_id: int, rates: Optional[RateSnapshot] = None
    ) -> Deal:
        """딜 승인 - 상태 변경과 원장 적립을 하나의 트랜잭션으로 처리

        이미 승인된 딜은 아무것도 하지 않고 현재 상태를 반환합니다 (중복 적립 방지).
        거절된 딜은 InvalidStateError.

        Args:
            deal_id: 딜 ID
            approver_id: 승인 관리자 ID
            rates: 사용할 요율 스냅샷 (없으면 딜 소유자 지역의 현재 요율)
        """
        try:
            deal: Optional[DealModel] = self.deal_repo.get_model_for_update(deal_id)
            if deal is None:
                raise NotFoundError(f"Deal {deal_id} not found")

            if deal.status == DealStatus.APPROVED.value:
                logger.info(f"Deal {deal_id} already approved, skipping")
                current = self.deal_repo._to_schema(deal)
                self.db.rollback()
                return current
            if deal.status != DealStatus.PENDING.value:
                raise InvalidStateError(
                    f"Deal {deal_id} is {deal.status} and cannot be approved"
                )

            snapshot = rates or self.rates_for_user(deal.user_id)
            points = calculate_deal_points(deal, snapshot)

            if not self.deal_repo.mark_approved(
                deal_id, points, approver_id, datetime.now(timezone.utc)
            ):
                raise InvalidStateError(f"Deal {deal_id} is no longer pending")

            if points > 0:
                self.point_service.append(
                    user_id=deal.user_id,
                    points=points,
                    description=f"Points earned for deal: {deal.product_name}",
                    deal_id=deal.id,
                )

            self.db.commit()
            approved = self.deal_repo.reload(deal)
            logger.info(
                f"Deal {deal_id} approved by {approver_id}: {points} points (rates v{snapshot.version})"
            )
        except BaseAPIException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to approve deal {deal_id}: {str(e)}")
            raise

        self.notification_service.notify(
            approved.user_id,
            NotificationEvent.DEAL_APPROVED,
            {"product_name": approved.product_name, "points": approved.points_earned},
        )
        return approved

    def reject_deal(self, deal_id: int, approver_id: int) -> Deal:
        """딜 거절 - 원장 변화 없음, 이미 거절된 딜은 그대로 반환"""
        try:
            deal = self.deal_repo.get_model_for_update(deal_id)
            if deal is None:
                raise NotFoundError(f"Deal {deal_id} not found")

            if deal.status == DealStatus.REJECTED.value:
                current = self.deal_repo._to_schema(deal)
                self.db.rollback()
                return current
            if deal.status != DealStatus.PENDING.value:
                raise InvalidStateError(
                    f"Deal {deal_id} is {deal.status} and cannot be rejected"
                )

            if not self.deal_repo.mark_rejected(
                deal_id, approver_id, datetime.now(timezone.utc)
            ):
                raise InvalidStateError(f"Deal {deal_id} is no longer pending")

            self.db.commit()
            rejected = self.deal_repo.reload(deal)
            logger.info(f"Deal {deal_id} rejected by {approver_id}")
        except BaseAPIException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to reject deal {deal_id}: {str(e)}")
            raise

        self.notification_service.notify(
            rejected.user_id,
            NotificationEvent.DEAL_REJECTED,
            {"product_name": rejected.product_name},
        )
        return rejected

    def import_deals(self, rows: List[DealImportRow], admin_id: int) -> BatchImportResult:
        """검증된 행 배치를 딜로 등록

        각 행은 pending 으로 생성한 뒤, 행 상태가 approved/rejected 이면 일반
        승인/거절 전이를 거칩니다. 실패한 행은 건너뛰고 오류만 모읍니다.
        """
        imported = 0
        errors: List[str] = []
        now = datetime.now(timezone.utc)

        for index, row in enumerate(rows, start=1):
            user = self.user_repo.get_by_username(row.username)
            if user is None:
                errors.append(f"Row {index}: User '{row.username}' not found")
                continue

            try:
                deal = self.create_deal(
                    user.id,
                    DealCreate(
                        product_type=row.product_type,
                        product_name=row.product_name
                        or f"Imported Deal - {row.product_type.value}",
                        deal_value=row.deal_value,
                        quantity=row.quantity,
                        close_date=row.close_date or now,
                        client_info=row.client_info
                        or f"Bulk import on {now.isoformat()}",
                    ),
                )
            except BaseAPIException as e:
                errors.append(f"Row {index}: {e.message}")
                continue
            except Exception as e:
                logger.error(f"Failed to import deal row {index}: {str(e)}")
                errors.append(f"Row {index}: Failed to insert deal for user {row.username}")
                continue

            imported += 1
            try:
                if row.status == DealStatus.APPROVED:
                    self.approve_deal(deal.id, admin_id)
                elif row.status == DealStatus.REJECTED:
                    self.reject_deal(deal.id, admin_id)
            except Exception as e:
                logger.error(f"Imported deal {deal.id} left pending: {str(e)}")
                errors.append(f"Row {index}: Deal {deal.id} created but left pending ({str(e)})")

        logger.info(f"Imported {imported} deals with {len(errors)} errors")
        return BatchImportResult(imported=imported, errors=errors)
