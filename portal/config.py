"""Portal configuration: backend connection, cache windows and list sizes."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings read from the environment and an optional .env file."""

    # Application
    app_name: str = "Client Portal Dashboard"
    app_version: str = "0.1.0"
    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Backend REST API
    api_base_url: str = Field(default="http://localhost:5000")
    api_token: str | None = Field(default=None)
    request_timeout_s: float = Field(default=10.0, gt=0)
    fetch_retry_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts for GET requests that fail at the transport level",
    )

    # Query cache windows (milliseconds)
    stats_stale_ms: int = Field(default=60_000, ge=0)
    stats_cache_ms: int = Field(default=300_000, ge=0)
    notifications_stale_ms: int = Field(default=120_000, ge=0)
    default_cache_ms: int = Field(default=300_000, ge=0)

    # Dashboard and list sizes
    dashboard_projects_limit: int = Field(default=5, ge=1)
    dashboard_notifications_limit: int = Field(default=5, ge=1)
    users_page_size: int = Field(default=10, ge=1)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
