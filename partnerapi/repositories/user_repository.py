from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from partnerapi.models.deal import Deal as DealModel
from partnerapi.models.notification import Notification as NotificationModel
from partnerapi.models.points import PointsHistory
from partnerapi.models.rewards import UserReward
from partnerapi.models.support_ticket import SupportTicket
from partnerapi.models.user import User as UserModel, UserRole
from partnerapi.repositories.base import BaseRepository
from partnerapi.schemas.user import User as UserSchema


class UserRepository(BaseRepository[UserModel, UserSchema]):
    """사용자 리포지토리 - Pydantic 응답 보장"""

    def __init__(self, db: Session):
        super().__init__(UserModel, UserSchema, db)

    def get_by_username(self, username: str) -> Optional[UserSchema]:
        return self.get_by_field("username", username)

    def get_by_email(self, email: str) -> Optional[UserSchema]:
        return self.get_by_field("email", email)

    def get_by_invite_token(self, invite_token: str) -> Optional[UserSchema]:
        return self.get_by_field("invite_token", invite_token)

    def lock(self, user_id: int) -> Optional[UserModel]:
        """사용자 행 잠금 - 같은 사용자에 대한 포인트 차감을 직렬화"""
        return self.get_model_for_update(user_id)

    def create_user(
        self,
        username: str,
        email: str,
        first_name: str,
        last_name: str,
        country: str,
        region: Optional[str] = None,
        role: str = UserRole.USER.value,
        is_approved: bool = False,
        approved_by: Optional[int] = None,
        approved_at: Optional[datetime] = None,
        invite_token: Optional[str] = None,
        commit: bool = True,
    ) -> Optional[UserSchema]:
        return self.create(
            commit=commit,
            username=username,
            email=email,
            first_name=first_name,
            last_name=last_name,
            country=country,
            region=region,
            role=role,
            is_active=True,
            is_approved=is_approved,
            approved_by=approved_by,
            approved_at=approved_at,
            invite_token=invite_token,
        )

    def list_pending_users(self) -> List[UserSchema]:
        """활성 상태이지만 아직 승인되지 않은 사용자 (가입 전 초대 제외)"""
        users = (
            self.db.query(UserModel)
            .filter(
                UserModel.is_active.is_(True),
                UserModel.is_approved.is_(False),
                UserModel.invite_token.is_(None),
            )
            .order_by(UserModel.created_at.desc(), UserModel.id.desc())
            .all()
        )
        return self._to_schemas(users)

    def list_users(self, limit: int = 20, offset: int = 0) -> List[UserSchema]:
        return self.find_all(order_by="id", limit=limit, offset=offset)

    def delete_with_related(self, user_id: int) -> bool:
        """사용자와 연관 데이터(원장, 교환 요청, 딜, 알림, 문의 티켓) 일괄 삭제

        commit 은 호출한 서비스가 수행합니다.
        """
        user = self.get_model(user_id)
        if not user:
            return False

        self.db.query(PointsHistory).filter(PointsHistory.user_id == user_id).delete(
            synchronize_session=False
        )
        self.db.query(UserReward).filter(UserReward.user_id == user_id).delete(
            synchronize_session=False
        )
        self.db.query(DealModel).filter(DealModel.user_id == user_id).delete(
            synchronize_session=False
        )
        self.db.query(NotificationModel).filter(
            NotificationModel.user_id == user_id
        ).delete(synchronize_session=False)
        self.db.query(SupportTicket).filter(SupportTicket.user_id == user_id).delete(
            synchronize_session=False
        )
        self.db.query(SupportTicket).filter(SupportTicket.assigned_to == user_id).update(
            {SupportTicket.assigned_to: None}, synchronize_session=False
        )
        self.db.query(SupportTicket).filter(SupportTicket.responded_by == user_id).update(
            {SupportTicket.responded_by: None}, synchronize_session=False
        )
        self.db.delete(user)
        self.db.flush()
        return True
