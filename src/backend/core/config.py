"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables or a local .env file.
"""

from functools import lru_cache
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "MarketVote"
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database - PostgreSQL
    # DATABASE_URL wins over the POSTGRES_* parts when set
    DATABASE_URL: str | None = None
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "marketvote"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "marketvote"
    DB_ECHO: bool = False

    @property
    def SQLALCHEMY_URL(self) -> str:
        """Construct the async SQLAlchemy connection URL."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # Chain oracle (particl-core JSON-RPC)
    CORE_RPC_URL: str = "http://127.0.0.1:51935"
    CORE_RPC_USER: str | None = None
    CORE_RPC_PASSWORD: str | None = None
    CORE_RPC_TIMEOUT_SECONDS: float = 10.0

    # Marketplace messaging
    MARKETPLACE_VERSION: str = "0.1.0.0"

    # Proposal / vote policy
    PROPOSAL_MIN_OPTIONS: int = 2
    VOTE_MIN_WEIGHT: int = 1  # Floor applied to balance-derived weights
    VOTE_REJECT_ZERO_BALANCE: bool = False  # Ignore zero-balance votes instead of clamping

    @field_validator("VOTE_MIN_WEIGHT", "PROPOSAL_MIN_OPTIONS")
    @classmethod
    def validate_positive_int(cls, v: int, info: Any) -> int:
        """Validate that policy counters are positive."""
        if v < 1:
            raise ValueError(f"{info.field_name} must be at least 1")
        return v

    @field_validator("CORE_RPC_TIMEOUT_SECONDS")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate that the RPC timeout is positive."""
        if v <= 0:
            raise ValueError("CORE_RPC_TIMEOUT_SECONDS must be positive")
        return v

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
