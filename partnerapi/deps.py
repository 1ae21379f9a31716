"""
요청 단위 서비스 의존성

컨테이너의 서비스 팩토리에 요청별 DB 세션(get_db)을 넘겨 생성합니다.
테스트에서는 container.services.<name>.override(...) 로 교체할 수 있습니다.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from partnerapi.containers import Container
from partnerapi.database.session import get_db
from partnerapi.services.auth_service import AuthService
from partnerapi.services.deal_service import DealService
from partnerapi.services.notification_service import NotificationService
from partnerapi.services.point_service import PointService
from partnerapi.services.rate_table_service import RateTableService
from partnerapi.services.recalculation_service import RecalculationService
from partnerapi.services.report_service import ReportService
from partnerapi.services.reward_service import RewardService
from partnerapi.services.support_service import SupportService
from partnerapi.services.user_service import UserService


def _container(request: Request) -> Container:
    return request.app.container  # type: ignore[attr-defined]


def get_user_service(request: Request, db: Session = Depends(get_db)) -> UserService:
    return _container(request).services.user_service(db=db)


def get_point_service(request: Request, db: Session = Depends(get_db)) -> PointService:
    return _container(request).services.point_service(db=db)


def get_deal_service(request: Request, db: Session = Depends(get_db)) -> DealService:
    return _container(request).services.deal_service(db=db)


def get_reward_service(request: Request, db: Session = Depends(get_db)) -> RewardService:
    return _container(request).services.reward_service(db=db)


def get_rate_table_service(
    request: Request, db: Session = Depends(get_db)
) -> RateTableService:
    return _container(request).services.rate_table_service(db=db)


def get_recalculation_service(
    request: Request, db: Session = Depends(get_db)
) -> RecalculationService:
    return _container(request).services.recalculation_service(db=db)


def get_report_service(request: Request, db: Session = Depends(get_db)) -> ReportService:
    return _container(request).services.report_service(db=db)


def get_notification_service(
    request: Request, db: Session = Depends(get_db)
) -> NotificationService:
    return _container(request).services.notification_service(db=db)


def get_support_service(request: Request, db: Session = Depends(get_db)) -> SupportService:
    return _container(request).services.support_service(db=db)


def get_auth_service(request: Request, db: Session = Depends(get_db)) -> AuthService:
    return _container(request).services.auth_service(db=db)
