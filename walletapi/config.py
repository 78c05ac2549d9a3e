from decimal import Decimal
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="walletapi/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "Marketplace Wallet API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./walletapi.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    AUTO_CREATE_TABLES: bool = False

    # Security
    SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440

    # Wallet / ledger rules
    MIN_DEPOSIT_AMOUNT: Decimal = Decimal("1000")
    COMMISSION_RATE: Decimal = Decimal("0.02")  # 2% platform cut
    PLATFORM_ACCOUNT_ID: Optional[int] = None  # account that accrues commission
    DEFAULT_CURRENCY: str = "VND"
    PAGE_SIZE_MAX: int = 100

    # Logging / diagnostics
    LOG_LEVEL: str = "INFO"
    EXPOSE_ERROR_DETAILS: bool = False  # only for local diagnostics

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


settings = Settings()
