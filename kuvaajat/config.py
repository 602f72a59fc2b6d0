"""Configuration settings for the Kuvaajat backend."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Supabase
    supabase_url: str | None = None
    # New key system (preferred)
    supabase_secret_key: str | None = None
    # Legacy key (deprecated, will be removed)
    supabase_service_role_key: str | None = None

    # Record store
    record_store: Literal["supabase", "memory"] = "supabase"
    records_table: str = "records"

    # JWT
    jwt_secret_key: str  # Required - no default for security
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7  # 1 week

    # Marketplace rules
    job_expiry_days: int = 90
    bids_require_open_job: bool = False
    strict_bid_transitions: bool = False

    # App
    debug: bool = False
    rate_limit_enabled: bool = True
    # CORS: Allowed origins for cross-origin requests
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env vars not in model


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
