from functools import lru_cache
from typing import List, Optional
from urllib.parse import quote_plus

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="partnerapi/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "Partner Rewards API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    # Database
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USERNAME: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DATABASE: str = "partner_rewards"

    # 명시적으로 지정하면 POSTGRES_* 보다 우선 (sqlite 로컬 실행 포함)
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    @property
    def database_url(self) -> str:
        """Construct database URL from individual components"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        # URL encode the password to handle special characters
        encoded_password = quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql+psycopg2://{self.POSTGRES_USERNAME}:{encoded_password}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DATABASE}"

    # Security
    SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Rate table defaults (USD per point)
    DEFAULT_SOFTWARE_RATE: int = 1000
    DEFAULT_HARDWARE_RATE: int = 5000
    DEFAULT_EQUIPMENT_RATE: int = 10000
    DEFAULT_GRAND_PRIZE_THRESHOLD: int = 50000
    DEFAULT_NEW_CUSTOMER_GOAL_RATE: int = 1000
    DEFAULT_RENEWAL_GOAL_RATE: int = 2000

    # Business Rules
    LEADERBOARD_DEFAULT_LIMIT: int = 5
    REDEMPTION_REVALIDATE_BALANCE: bool = True  # 승인 시점 잔액 재검증 여부
    NOTIFICATIONS_ENABLED: bool = True

    # Invitations
    APP_URL: str = "http://localhost:5000"


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


settings = get_settings()
