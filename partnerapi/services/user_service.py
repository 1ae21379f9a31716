import secrets
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from partnerapi.config import Settings
from partnerapi.core.exceptions import (
    AuthorizationError,
    BaseAPIException,
    DuplicateRequestError,
    NotFoundError,
    ValidationError,
)
from partnerapi.models.deal import DealStatus
from partnerapi.models.user import UserRole
from partnerapi.repositories.deal_repository import DealRepository
from partnerapi.repositories.points_repository import PointsRepository
from partnerapi.repositories.user_repository import UserRepository
from partnerapi.schemas.deal import BatchImportResult
from partnerapi.schemas.user import (
    InviteVerification,
    User as UserSchema,
    UserCreate,
    UserInvite,
    UserStats,
)
from partnerapi.services.notification_service import (
    NotificationEvent,
    NotificationService,
)
import logging

logger = logging.getLogger(__name__)


class UserService:
    """사용자 관리 및 가입 승인 워크플로우"""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.user_repo = UserRepository(db)
        self.deal_repo = DealRepository(db)
        self.points_repo = PointsRepository(db)
        self.notification_service = NotificationService(db, settings)

    def get_user(self, user_id: int) -> UserSchema:
        user = self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def get_users(self, limit: int = 20, offset: int = 0) -> List[UserSchema]:
        return self.user_repo.list_users(limit=limit, offset=offset)

    def get_pending_users(self) -> List[UserSchema]:
        return self.user_repo.list_pending_users()

    @staticmethod
    def _check_role_ceiling(actor: UserSchema, role: UserRole) -> None:
        """자신보다 높은 역할은 부여할 수 없음"""
        if UserRole.get_hierarchy_level(role) > UserRole.get_hierarchy_level(actor.role):
            raise AuthorizationError(
                f"Role '{UserRole(role).value}' is above your own role '{UserRole(actor.role).value}'"
            )

    def create_user(
        self, data: UserCreate, actor: Optional[UserSchema] = None
    ) -> UserSchema:
        """사용자 생성 - 관리자가 생성한 계정은 바로 승인 상태

        actor 가 없으면 (시드 스크립트) 승인 대기 상태로 생성.
        """
        if actor is not None:
            self._check_role_ceiling(actor, data.role)
        if self.user_repo.get_by_username(data.username):
            raise DuplicateRequestError(f"Username '{data.username}' is already taken")
        if self.user_repo.get_by_email(str(data.email)):
            raise DuplicateRequestError(f"Email '{data.email}' is already registered")

        approved = actor is not None
        try:
            user = self.user_repo.create_user(
                username=data.username,
                email=str(data.email),
                first_name=data.first_name,
                last_name=data.last_name,
                country=data.country,
                region=data.region,
                role=data.role.value,
                is_approved=approved,
                approved_by=actor.id if actor else None,
                approved_at=datetime.now(timezone.utc) if approved else None,
            )
        except IntegrityError:
            raise DuplicateRequestError("Username or email is already registered")

        logger.info(f"User {user.id} ({user.username}) created by {actor.id if actor else 'system'}")
        return user

    def approve_user(self, user_id: int, admin_id: int) -> UserSchema:
        self.get_user(user_id)
        user = self.user_repo.update(
            user_id,
            commit=True,
            is_approved=True,
            approved_by=admin_id,
            approved_at=datetime.now(timezone.utc),
        )
        logger.info(f"User {user_id} approved by {admin_id}")
        self.notification_service.notify(user_id, NotificationEvent.USER_APPROVED)
        return user

    def reject_user(self, user_id: int) -> UserSchema:
        """가입 거절 - 계정 비활성화"""
        self.get_user(user_id)
        user = self.user_repo.update(user_id, commit=True, is_active=False)
        logger.info(f"User {user_id} rejected")
        return user

    def update_user_role(
        self, user_id: int, role: UserRole, actor: UserSchema
    ) -> UserSchema:
        """역할 변경 - 대상의 현재 역할과 새 역할 모두 actor 이하여야 함"""
        target = self.get_user(user_id)
        self._check_role_ceiling(actor, target.role)
        self._check_role_ceiling(actor, role)
        user = self.user_repo.update(user_id, commit=True, role=UserRole(role).value)
        logger.info(f"User {user_id} role changed to {UserRole(role).value} by {actor.id}")
        return user

    def delete_user(self, user_id: int, actor_id: int) -> None:
        """사용자 및 원장/교환/딜/알림 일괄 삭제 (단일 트랜잭션)"""
        if user_id == actor_id:
            raise ValidationError("You cannot delete your own account")

        try:
            if not self.user_repo.delete_with_related(user_id):
                raise NotFoundError(f"User {user_id} not found")
            self.db.commit()
            logger.info(f"User {user_id} deleted by {actor_id}")
        except BaseAPIException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete user {user_id}: {str(e)}")
            raise

    def get_user_stats(self, user_id: int) -> UserStats:
        """대시보드 통계 (total_points 는 보정 없는 원장 합계)"""
        self.get_user(user_id)
        total = self.points_repo.get_points_sum(user_id)
        return UserStats(
            total_points=total,
            available_points=max(0, total),
            total_deals=self.deal_repo.count_by_user(user_id),
            pending_deals=self.deal_repo.count_by_user(user_id, DealStatus.PENDING),
            redeemed_rewards=self.points_repo.count_spend_entries(user_id),
        )

    def import_users(
        self, rows: List[UserCreate], actor: UserSchema
    ) -> BatchImportResult:
        """검증된 행 배치를 사용자로 생성, 실패 행은 오류로 모음"""
        imported = 0
        errors: List[str] = []
        for index, row in enumerate(rows, start=1):
            try:
                self.create_user(row, actor=actor)
                imported += 1
            except BaseAPIException as e:
                errors.append(f"Row {index}: {e.message}")
            except Exception as e:
                logger.error(f"Failed to import user row {index}: {str(e)}")
                errors.append(f"Row {index}: Failed to create user {row.username}")

        logger.info(f"Imported {imported} users with {len(errors)} errors")
        return BatchImportResult(imported=imported, errors=errors)

    # ------------------------------------------------------------------
    # 초대
    # ------------------------------------------------------------------

    def invite_user(self, data: UserInvite, inviter: UserSchema) -> UserSchema:
        """초대 토큰을 가진 미승인 사용자 생성 후 초대 알림

        사용자명은 가입 시 정하므로 그 전까지는 이메일을 임시로 사용.
        """
        email = str(data.email)
        if self.user_repo.get_by_email(email):
            raise DuplicateRequestError(f"Email '{email}' is already registered")
        if self.user_repo.get_by_username(email):
            raise DuplicateRequestError(f"Username '{email}' is already taken")

        invite_token = secrets.token_urlsafe(32)
        try:
            user = self.user_repo.create_user(
                username=email,
                email=email,
                first_name=data.first_name,
                last_name=data.last_name,
                country=data.country,
                region=data.region,
                role=UserRole.USER.value,
                is_approved=False,
                approved_by=inviter.id,
                invite_token=invite_token,
            )
        except IntegrityError:
            raise DuplicateRequestError("Username or email is already registered")

        logger.info(f"User {user.id} invited by {inviter.id}")
        self.notification_service.notify(
            user.id,
            NotificationEvent.USER_INVITED,
            {
                "invited_by": f"{inviter.first_name} {inviter.last_name}",
                "invite_url": f"{self.settings.APP_URL}/register?token={invite_token}",
            },
        )
        return user

    def invite_users(
        self, rows: List[UserInvite], inviter: UserSchema
    ) -> BatchImportResult:
        invited = 0
        errors: List[str] = []
        for index, row in enumerate(rows, start=1):
            try:
                self.invite_user(row, inviter)
                invited += 1
            except BaseAPIException as e:
                errors.append(f"Row {index}: {e.message}")
            except Exception as e:
                logger.error(f"Failed to invite row {index}: {str(e)}")
                errors.append(f"Row {index}: Failed to invite {row.email}")

        logger.info(f"Invited {invited} users with {len(errors)} errors")
        return BatchImportResult(imported=invited, errors=errors)

    def verify_invite(self, invite_token: str) -> InviteVerification:
        user = self.user_repo.get_by_invite_token(invite_token)
        if user is None or not user.is_active:
            return InviteVerification(
                valid=False, message="This invitation is invalid or was already used"
            )
        return InviteVerification(valid=True, user=user)

    def register_with_invite(self, invite_token: str, username: str) -> UserSchema:
        """초대 가입 완료 - 사용자명 확정, 토큰 폐기, 초대한 관리자 기준으로 승인"""
        invited = self.user_repo.get_by_invite_token(invite_token)
        if invited is None or not invited.is_active:
            raise NotFoundError("This invitation is invalid or was already used")

        existing = self.user_repo.get_by_username(username)
        if existing and existing.id != invited.id:
            raise DuplicateRequestError(f"Username '{username}' is already taken")

        try:
            user = self.user_repo.update(
                invited.id,
                commit=True,
                username=username,
                invite_token=None,
                is_approved=True,
                approved_at=datetime.now(timezone.utc),
            )
        except IntegrityError:
            raise DuplicateRequestError(f"Username '{username}' is already taken")

        logger.info(f"User {user.id} completed invite registration as {username}")
        return user
