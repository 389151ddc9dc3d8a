"""
Landing CMS - Configuration Management

Centralized configuration using Pydantic Settings.
All secrets and connection strings are loaded from environment variables.

Security: No secrets are hardcoded. Use .env for local development.
Access and refresh tokens are signed with independent secrets; a
configuration where both secrets match is rejected at load time.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import ValidationInfo, model_validator, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        DATABASE_URL: SQLAlchemy URL (SQLite for development, PostgreSQL in production)
        JWT_ACCESS_SECRET: HMAC key for access tokens
        JWT_REFRESH_SECRET: HMAC key for refresh tokens (must differ from access key)
        BCRYPT_COST: bcrypt work factor for password hashes
        LOCKOUT_MAX_ATTEMPTS: Consecutive failed logins before the account locks
        COOKIE_*: Refresh-token cookie attributes
        RATE_LIMIT_*: Per-IP limits applied to the auth routes
        ALLOWED_ORIGINS: CORS allowed origins for the admin frontend
    """

    # Application
    APP_NAME: str = "landing-cms-api"
    APP_ENV: str = "development"
    APP_VERSION: str = "1.0.0"

    # Database (PostgreSQL for production, SQLite for development)
    DATABASE_URL: str = "sqlite:///./landing_cms.db"

    # Tokens
    JWT_ACCESS_SECRET: str = ""  # Must be set via environment
    JWT_REFRESH_SECRET: str = ""  # Must be set via environment
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "landing-cms-api"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Login lockout
    LOCKOUT_MAX_ATTEMPTS: int = 5
    LOCKOUT_DURATION_MINUTES: int = 15

    # Password hashing
    BCRYPT_COST: int = 12

    # Refresh-token cookie
    COOKIE_DOMAIN: Optional[str] = None  # Host-only cookie when unset
    COOKIE_SECURE: bool = False
    COOKIE_SAMESITE: str = "strict"

    # Rate limiting (auth routes)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_AUTH_REQUESTS: int = 5
    RATE_LIMIT_AUTH_WINDOW_SECONDS: int = 60
    RATE_LIMIT_MAX_CLIENTS: int = 10000
    TRUST_PROXY_HEADERS: bool = False

    # Audit trail
    AUDIT_LOG_ENABLED: bool = True
    AUDIT_QUEUE_SIZE: int = 1000

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"

    @field_validator("BCRYPT_COST")
    @classmethod
    def bcrypt_cost_in_range(cls, v: int) -> int:
        if not 4 <= v <= 31:
            raise ValueError("BCRYPT_COST must be between 4 and 31")
        return v

    @field_validator(
        "ACCESS_TOKEN_EXPIRE_MINUTES",
        "REFRESH_TOKEN_EXPIRE_DAYS",
        "LOCKOUT_DURATION_MINUTES",
        "RATE_LIMIT_AUTH_REQUESTS",
        "RATE_LIMIT_AUTH_WINDOW_SECONDS",
        "RATE_LIMIT_MAX_CLIENTS",
        "AUDIT_QUEUE_SIZE",
    )
    @classmethod
    def positive(cls, v: int, info: ValidationInfo) -> int:
        if v < 1:
            raise ValueError(f"{info.field_name} must be at least 1")
        return v

    @field_validator("COOKIE_SAMESITE")
    @classmethod
    def samesite_mode(cls, v: str) -> str:
        v = v.lower()
        if v not in {"strict", "lax", "none"}:
            raise ValueError("COOKIE_SAMESITE must be one of: strict, lax, none")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def log_level_name(cls, v: str) -> str:
        v = v.upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown LOG_LEVEL: {v}")
        return v

    @model_validator(mode="after")
    def token_secrets_distinct(self) -> "Settings":
        """Refuse to start with missing or shared signing secrets."""
        if not self.JWT_ACCESS_SECRET:
            raise ValueError("JWT_ACCESS_SECRET is required")
        if not self.JWT_REFRESH_SECRET:
            raise ValueError("JWT_REFRESH_SECRET is required")
        if self.JWT_ACCESS_SECRET == self.JWT_REFRESH_SECRET:
            raise ValueError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be different")
        if self.LOCKOUT_MAX_ATTEMPTS < 1:
            raise ValueError("LOCKOUT_MAX_ATTEMPTS must be at least 1")
        return self

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"


@lru_cache
def get_settings() -> Settings:
    """Load settings once; later calls return the same instance."""
    return Settings()
