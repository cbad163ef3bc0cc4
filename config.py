"""
Configuration for the Event Hub dashboard API.

Values load from environment variables or a local .env file. The demo
offsets (wallet base, registered users, revenue fallback) default to the
figures the dashboard has always shown.
"""
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=True
    )

    # Application
    APP_NAME: str = "Event Hub Dashboard API"
    APP_ENV: str = "development"
    APP_DEBUG: bool = False
    PORT: int = 8000
    CORS_ORIGINS: List[str] = ["*"]

    # Repository
    SEED_DATA: bool = True
    ADMIN_USERNAME: str = "admin"

    # Loans
    LOAN_ANNUAL_RATE: float = 8.5

    # Demo figures
    WALLET_BASE_BALANCE: int = 2500
    REGISTERED_USERS_OFFSET: int = 145
    FALLBACK_MONTHLY_REVENUE: int = 24800


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
