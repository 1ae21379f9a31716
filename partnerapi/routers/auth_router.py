"""
초대 가입 API 라우터 (인증 불필요)

- GET /auth/verify-invite/{token}: 초대 토큰 확인
- POST /auth/register-with-invite: 사용자명 확정 후 액세스 토큰 발급
"""

from fastapi import APIRouter, Depends, Path, status

from partnerapi.deps import get_auth_service, get_user_service
from partnerapi.schemas.auth import Token
from partnerapi.schemas.user import InviteRegistration, InviteVerification
from partnerapi.services.auth_service import AuthService
from partnerapi.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/verify-invite/{invite_token}", response_model=InviteVerification)
async def verify_invite(
    invite_token: str = Path(..., description="초대 토큰"),
    user_service: UserService = Depends(get_user_service),
) -> InviteVerification:
    return user_service.verify_invite(invite_token)


@router.post(
    "/register-with-invite",
    response_model=Token,
    status_code=status.HTTP_201_CREATED,
)
async def register_with_invite(
    request: InviteRegistration,
    user_service: UserService = Depends(get_user_service),
    auth_service: AuthService = Depends(get_auth_service),
) -> Token:
    user = user_service.register_with_invite(request.invite_token, request.username)
    return auth_service.issue_token(user)
