"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Lookahead windows are positive day counts

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - academy_timezone decides what "today" means for one-time eligibility
      and for the start of the public booking window
"""

from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://academy:academy@db:5432/academy"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres provides postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Slot ledger: "memory" keeps slots and bookings in-process (dev only)
    ledger_backend: Literal["sql", "memory"] = "sql"

    # Scheduling
    academy_timezone: str = "Africa/Casablanca"
    default_lookahead_days: int = Field(30, ge=1, le=366)
    public_lookahead_days: int = Field(60, ge=1, le=366)
    admin_calendar_days: int = Field(45, ge=1, le=366)
    promotion_max_retries: int = Field(3, ge=0, le=10)

    @field_validator("academy_timezone")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone: {v}")
        return v

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
