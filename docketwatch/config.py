"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - deadline_thresholds_days is always sorted descending and de-duplicated

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
    - cron_secret defaults to empty: an unconfigured secret rejects every cron call
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://docketwatch:docketwatch@db:5432/docketwatch"
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

    # Cache (optional; no URL means every read goes to the database)
    redis_url: str | None = None
    cache_default_ttl_seconds: int = 30 * 60
    cache_socket_timeout_seconds: float = 2.0

    # Cron trigger
    cron_secret: str = ""

    # Docketwise upstream
    docketwise_api_url: str = "https://app.docketwise.com/api/v1"
    docketwise_api_token: str = ""
    docketwise_tenant_tokens: dict[str, str] = {}
    docketwise_timeout_seconds: float = 30.0
    docketwise_max_retries: int = 3
    docketwise_base_delay_ms: int = 1000
    docketwise_max_delay_ms: int = 30_000
    docketwise_page_size: int = 200
    docketwise_rate_limit_delay_ms: int = 600

    # Sync
    sync_max_pages: int = 50
    sync_lock_ttl_seconds: int = 15 * 60

    # Deadline alerts
    deadline_thresholds_days: list[int] = [30, 14, 7, 3, 1, 0]
    app_base_url: str = "http://localhost:3000"

    @field_validator("deadline_thresholds_days")
    @classmethod
    def sort_thresholds(cls, v: list[int]) -> list[int]:
        if any(t < 0 for t in v):
            raise ValueError("thresholds must be non-negative day counts")
        return sorted(set(v), reverse=True)

    # Email (SMTP); no host means email delivery is recorded as failed
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_from: str = "DocketWatch <no-reply@docketwatch.local>"
    email_max_attempts: int = 3
    email_base_delay_ms: int = 1000
    email_max_delay_ms: int = 60_000
    email_workers: int = 3

    # Live updates
    sse_keepalive_seconds: float = 15.0

    # Identity collaborator (trusted headers from the auth proxy)
    identity_recipient_header: str = "X-Recipient-Id"
    identity_tenant_header: str = "X-Tenant-Id"

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
