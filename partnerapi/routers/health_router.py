from fastapi import APIRouter

from partnerapi.config import settings
from partnerapi.schemas.health import HealthCheckResponse

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """Liveness check with the running environment name."""

    return HealthCheckResponse(environment=settings.ENVIRONMENT)
