"""
Service configuration, read from the environment and an optional ``.env``.
"""

from typing import Annotated, List, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode

MIN_PRODUCTION_SALT_LENGTH = 16


class Settings(BaseSettings):
    # Application
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database; postgresql:// URLs are switched to asyncpg
    DATABASE_URL: str = "sqlite+aiosqlite:///./forum_access.db"
    DB_POOL_SIZE: int = Field(default=10, ge=1)
    DB_MAX_OVERFLOW: int = Field(default=20, ge=0)
    DB_POOL_TIMEOUT: int = Field(default=30, ge=1, description="Seconds to wait for a pooled connection")
    DB_POOL_RECYCLE: int = Field(default=3600, ge=1, description="Seconds before a connection is recycled")

    # Redis for system parameters; empty disables caching
    REDIS_URL: str = "redis://localhost:6379/0"

    # Bearer tokens are issued by the forum front end with this shared secret
    JWT_SECRET_KEY: str = Field(..., min_length=1)
    JWT_ALGORITHM: str = "HS256"

    # Monthly key
    MONTHLY_KEY_SALT: SecretStr = Field(..., description="Never logged or returned")
    MONTHLY_KEY_MAX_ATTEMPTS: int = Field(default=3, ge=1)
    MONTHLY_KEY_LOCK_MINUTES: int = Field(default=30, ge=1)
    MONTHLY_KEY_TIMEZONE: str = Field(default="UTC", description="Zone that decides the calendar month")
    MONTHLY_KEY_CAS_RETRIES: int = Field(default=3, ge=1, description="Attempts to win a concurrent record update")

    SYSTEM_PARAMETER_CACHE_SECONDS: int = Field(default=60, ge=0)

    # Comma-separated list
    CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(default_factory=list)

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v or []

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("MONTHLY_KEY_TIMEZONE")
    @classmethod
    def validate_timezone(cls, v):
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone: {v}")
        return v

    @model_validator(mode="after")
    def validate_production_salt(self):
        if self.ENVIRONMENT == "production" and len(self.MONTHLY_KEY_SALT.get_secret_value()) < MIN_PRODUCTION_SALT_LENGTH:
            raise ValueError(f"MONTHLY_KEY_SALT must be at least {MIN_PRODUCTION_SALT_LENGTH} characters in production")
        return self


settings = Settings()

DATABASE_CONFIG = {
    "pool_size": settings.DB_POOL_SIZE,
    "max_overflow": settings.DB_MAX_OVERFLOW,
    "pool_timeout": settings.DB_POOL_TIMEOUT,
    "pool_recycle": settings.DB_POOL_RECYCLE,
    "pool_pre_ping": True,
    "echo": settings.ENVIRONMENT == "development" and settings.DEBUG,
}

REDIS_CONFIG = {
    "url": settings.REDIS_URL,
    "decode_responses": True,
    "retry_on_timeout": True,
}
