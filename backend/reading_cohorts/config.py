"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - system_actor_id is the author of system-generated posts; there is no
      runtime "find an admin" lookup

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://cohorts:cohorts@db:5432/cohorts"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting platforms provide postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Cohorts
    program_name: str = "Bible Bus"
    cohort_name_suffix: str = "Travelers"
    default_capacity: int = 50
    bootstrap_start_date: str = "2025-10-01"
    legacy_cutoff_year: int = 2023
    registration_window_days: int = 17
    reminder_days: list[int] = [3, 7, 11, 15]
    baseline_past_quarters: int = 8
    baseline_future_quarters: int = 2

    # Scheduler
    scheduler_enabled: bool = True
    scheduler_interval_hours: int = 24
    scheduler_run_on_startup: bool = True

    # Identity
    system_actor_id: int | None = None
    admin_api_token: str = "change-me"

    # Mail
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_from_email: str | None = None
    smtp_from_name: str = "The Bible Bus"
    smtp_timeout_seconds: int = 15
    email_batch_size: int = 10
    email_batch_delay_seconds: float = 1.0
    email_max_failures: int = 3
    email_failure_backoff_days: int = 7

    # API
    frontend_url: str = "http://localhost:3000"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
