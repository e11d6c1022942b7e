"""Application settings, read from the environment and an optional .env file."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Folder Allocator"
    app_env: str = "development"  # development, testing, production
    debug: bool = False
    enable_openapi: bool = True

    # Allocation store (PostgreSQL)
    database_url: str
    database_migrations_url: str | None = None  # Falls back to database_url
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_ssl_mode: str = "prefer"  # disable, prefer, require, verify-ca, verify-full
    database_statement_cache_size: int = 100  # 0 behind pgbouncer in transaction mode

    # Claims
    # Lost races are retried against the remaining pool. None means one attempt
    # per folder in the project, which always suffices to reach a verdict.
    claim_max_attempts: int | None = Field(default=None, ge=1)
    claim_rate_limit: str = "30/minute"  # per caller, slowapi syntax
    max_project_capacity: int = Field(default=500, ge=1)

    # Identity provider tokens. The allocator verifies them, it never issues them.
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    admin_role: str = "admin"

    # HTTP edge
    trusted_proxy_ips: list[str] = []  # Only these may set X-Forwarded-For
    cors_origins: list[str] = ["http://localhost:3000"]
    csp_production: str = "default-src 'self'; frame-ancestors 'none'"
    metrics_api_key: str | None = None  # If set, /metrics requires X-Metrics-Key
    shutdown_grace_period: int = 30  # seconds to drain in-flight claims

    # Redis backs rate limiting only; the allocator runs without it
    redis_url: str | None = None  # e.g., "redis://localhost:6379/0"
    redis_pool_size: int = 10

    # Global per-IP token bucket
    global_rate_limit_per_second: int = 10
    global_rate_limit_burst: int = 20

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        if v == "change-this-to-a-secure-random-string":
            raise ValueError(
                "JWT_SECRET_KEY must be changed from default value. "
                "Use the secret shared with the identity provider."
            )
        if len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters")
        return v

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: list[str]) -> list[str]:
        """Reject the wildcard origin; CORS is configured with credentials."""
        if "*" in v:
            raise ValueError(
                "CORS wildcard '*' is not allowed when allow_credentials=True. "
                "Specify explicit origins instead."
            )
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
