from datetime import datetime
from enum import Enum
from typing import Optional, Union

from sqlalchemy import BigInteger, Boolean, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from partnerapi.models.base import BaseModel, BigIntPK


class UserRole(str, Enum):
    """사용자 역할 정의"""

    USER = "user"  # 파트너 사용자
    REGIONAL_ADMIN = "regional_admin"  # 지역 관리자
    ADMIN = "admin"  # 관리자
    SUPER_ADMIN = "super_admin"  # 최고 관리자

    @classmethod
    def get_hierarchy_level(cls, role: Union[str, "UserRole"]) -> int:
        """역할의 계층 레벨을 반환 (숫자가 높을수록 높은 권한)"""
        if isinstance(role, cls):
            role = role.value

        hierarchy = {
            cls.USER.value: 1,
            cls.REGIONAL_ADMIN.value: 2,
            cls.ADMIN.value: 3,
            cls.SUPER_ADMIN.value: 4,
        }
        return hierarchy.get(str(role), 0)

    @classmethod
    def has_permission(
        cls, user_role: Union[str, "UserRole"], required_role: Union[str, "UserRole"]
    ) -> bool:
        """사용자 역할이 요구되는 역할 이상인지 확인"""
        return cls.get_hierarchy_level(user_role) >= cls.get_hierarchy_level(
            required_role
        )

    @classmethod
    def is_admin(cls, role: Union[str, "UserRole"]) -> bool:
        """지역 관리자 이상이면 관리자 엔드포인트 접근 가능"""
        return cls.has_permission(role, cls.REGIONAL_ADMIN)


class User(BaseModel):
    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_country", "country"),
        Index("idx_users_pending", "is_active", "is_approved"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(
        String(100), unique=True, nullable=False, index=True
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    # points_config.region 과 매칭, NULL 이면 기본 요율 사용
    region: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    role: Mapped[str] = mapped_column(
        String(20), default=UserRole.USER.value, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    approved_by: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    # 초대 후 가입 완료 전까지만 존재
    invite_token: Mapped[Optional[str]] = mapped_column(
        String(64), unique=True, nullable=True
    )

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username}, role={self.role})>"

    @property
    def is_admin(self) -> bool:
        return UserRole.is_admin(str(self.role))
