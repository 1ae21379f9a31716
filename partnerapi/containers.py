from dependency_injector import containers, providers

from partnerapi.database.session import get_db
from partnerapi.config import Settings
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


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(Settings)


class RepositoryModule(containers.DeclarativeContainer):
    """Database session (scripts). HTTP 요청은 deps.py 에서 요청별 세션을 주입."""

    get_db = providers.Resource(get_db)


class ServiceModule(containers.DeclarativeContainer):
    """Service layer dependencies."""

    config = providers.DependenciesContainer()
    repositories = providers.DependenciesContainer()

    auth_service = providers.Factory(AuthService, db=repositories.get_db, settings=config.config)
    user_service = providers.Factory(UserService, db=repositories.get_db, settings=config.config)
    point_service = providers.Factory(PointService, db=repositories.get_db, settings=config.config)
    deal_service = providers.Factory(DealService, db=repositories.get_db, settings=config.config)
    reward_service = providers.Factory(RewardService, db=repositories.get_db, settings=config.config)
    rate_table_service = providers.Factory(RateTableService, db=repositories.get_db, settings=config.config)
    recalculation_service = providers.Factory(RecalculationService, db=repositories.get_db, settings=config.config)
    report_service = providers.Factory(ReportService, db=repositories.get_db, settings=config.config)
    notification_service = providers.Factory(NotificationService, db=repositories.get_db, settings=config.config)
    support_service = providers.Factory(SupportService, db=repositories.get_db, settings=config.config)


class Container(containers.DeclarativeContainer):
    """Application container."""

    config = providers.Container(ConfigModule)
    repositories = providers.Container(RepositoryModule)
    services = providers.Container(
        ServiceModule, config=config, repositories=repositories
    )
