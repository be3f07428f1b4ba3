"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        default="sqlite:///./outage_notify.db",
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used for sending notification emails via the REST API",
    )
    sendgrid_sender: str | None = Field(
        default=None,
        description="Email address that will appear as the sender of notification emails",
        min_length=3,
    )
    sendgrid_timeout_seconds: float = Field(
        default=10,
        description="Socket timeout applied to SendGrid API requests",
        gt=0,
    )
    public_site_url: str = Field(
        default="http://localhost:8000",
        description="Public base URL used to build the status page link in messages",
    )
    threshold_cooldown_hours: float = Field(
        default=24,
        description="Hours before the same usage threshold may notify again",
        gt=0,
    )
    default_usage_thresholds: list[int] = Field(
        default_factory=lambda: [80, 90, 100],
        description="Usage percentages that trigger alerts when a cap defines none",
    )
    dispatch_max_workers: int = Field(
        default=8,
        description="Size of the worker pool used to fan out recipient deliveries",
        gt=0,
    )
    delivery_timeout_seconds: float = Field(
        default=10,
        description="Seconds a channel adapter may take before the delivery is marked failed",
        gt=0,
    )
    log_level: str = Field(default="INFO", description="Root logging level")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:4200"],
        description="Origins allowed to call the API from a browser",
    )

    @model_validator(mode="after")
    def _validate_sendgrid_pair(self) -> "Settings":
        if bool(self.sendgrid_api_key) ^ bool(self.sendgrid_sender):
            raise ValueError(
                "SENDGRID_API_KEY and SENDGRID_SENDER must both be provided to enable email"
            )
        if self.sendgrid_sender and "@" not in self.sendgrid_sender:
            raise ValueError("SENDGRID_SENDER must be a valid email address")
        return self

    @property
    def status_page_url(self) -> str:
        return f"{self.public_site_url.rstrip('/')}/status"


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
