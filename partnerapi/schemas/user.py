from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import datetime
from typing import List, Optional

from partnerapi.models.user import UserRole


class User(BaseModel):
    id: int
    username: str
    email: EmailStr
    first_name: str
    last_name: str
    country: str
    region: Optional[str] = None
    role: UserRole = UserRole.USER
    is_active: bool = True
    is_approved: bool = False
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def is_admin(self) -> bool:
        return UserRole.is_admin(self.role)


class UserCreate(BaseModel):
    username: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    country: str = Field(..., min_length=2, max_length=100)
    region: Optional[str] = Field(None, max_length=50)
    role: UserRole = UserRole.USER

    @field_validator("username")
    @classmethod
    def username_must_not_be_blank(cls, v: str) -> str:
        if v.strip() == "":
            raise ValueError("Username cannot be empty")
        return v.strip()


class UserRoleUpdate(BaseModel):
    role: UserRole


class UserStats(BaseModel):
    """사용자 대시보드 통계"""

    total_points: int = Field(..., description="원장 합계 (음수 가능)")
    available_points: int = Field(..., description="사용 가능 포인트 (0 이상)")
    total_deals: int
    pending_deals: int
    redeemed_rewards: int = Field(..., description="포인트 사용 항목 수")


class UserInvite(BaseModel):
    """관리자 초대 - 사용자명은 초대받은 사람이 가입 시 정함"""

    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    country: str = Field(..., min_length=2, max_length=100)
    region: Optional[str] = Field(None, max_length=50)


class UserInviteBulk(BaseModel):
    users: List[UserInvite] = Field(..., min_length=1)


class InviteVerification(BaseModel):
    valid: bool
    user: Optional[User] = None
    message: Optional[str] = None


class InviteRegistration(BaseModel):
    invite_token: str = Field(..., min_length=1)
    username: str = Field(..., min_length=2, max_length=100)

    @field_validator("username")
    @classmethod
    def username_must_not_be_blank(cls, v: str) -> str:
        if v.strip() == "":
            raise ValueError("Username cannot be empty")
        return v.strip()
