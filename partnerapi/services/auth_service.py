from typing import Optional
from sqlalchemy.orm import Session
from jose import jwt, JWTError

from partnerapi.config import Settings
from partnerapi.core.security import create_access_token
from partnerapi.repositories.user_repository import UserRepository
from partnerapi.schemas.auth import Token, TokenData
from partnerapi.schemas.user import User as UserSchema
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """Bearer 토큰 <-> 현재 사용자(actor) 변환

    로그인/비밀번호 처리는 외부 인증 계층 담당이며, 여기서는 발급된 JWT 의
    user_id 로 사용자를 조회만 합니다.
    """

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.user_repo = UserRepository(db)

    def issue_token(self, user: UserSchema) -> Token:
        access_token = create_access_token(
            data={"sub": user.username, "user_id": user.id, "role": user.role.value}
        )
        return Token(access_token=access_token, token_type="bearer")

    def verify_token(self, token: str) -> Optional[TokenData]:
        """JWT 토큰 검증"""
        try:
            payload = jwt.decode(
                token, self.settings.SECRET_KEY, algorithms=[self.settings.JWT_ALGORITHM]
            )
            username_val = payload.get("sub")
            user_id_val = payload.get("user_id")

            if not isinstance(username_val, str) or not isinstance(user_id_val, int):
                return None

            return TokenData(
                username=username_val, user_id=user_id_val, role=payload.get("role")
            )
        except JWTError as e:
            logger.warning(f"Invalid token: {str(e)}")
            return None

    def get_current_user(self, token: str) -> Optional[UserSchema]:
        """토큰으로 현재 사용자 조회 (비활성/미승인 사용자는 None)"""
        token_data = self.verify_token(token)
        if not token_data or not token_data.user_id:
            return None

        user = self.user_repo.get_by_id(token_data.user_id)
        if not user or not user.is_active:
            return None

        return user
