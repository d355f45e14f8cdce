"""Application settings with Pydantic validation."""

from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ...constants import Intervals, Retries, Timeouts, UpstreamDefaults


class AutobookSettings(BaseSettings):
    """Application settings with validation and environment variable support."""

    # Environment
    env: str = Field(
        default="production", description="Environment (production, development, testing)"
    )

    @model_validator(mode="before")
    @classmethod
    def default_env_for_pytest(cls, data: Any) -> Any:
        """Auto-detect testing environment when running under pytest."""
        import sys

        if not isinstance(data, dict):
            return data

        if ("env" not in data or not data.get("env")) and "pytest" in sys.modules:
            data["env"] = "testing"

        return data

    # Persisted booking configuration (token, identifiers, API base)
    config_path: str = Field(
        default="config.json", description="Path of the persisted booking configuration file"
    )

    # Logging
    log_level: str = Field(
        default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_json: bool = Field(default=True, description="Write the log file as JSON lines")
    logs_dir: str = Field(default="logs", description="Directory for log files")

    # Upstream HTTP
    request_timeout: float = Field(
        default=Timeouts.HTTP_REQUEST_SECONDS, gt=0, description="Search/submit timeout (s)"
    )
    proxy_timeout: float = Field(
        default=Timeouts.PROXY_REQUEST_SECONDS, gt=0, description="Proxy search/status timeout (s)"
    )
    proxy_booking_timeout: float = Field(
        default=Timeouts.PROXY_BOOKING_SECONDS, gt=0, description="Proxy booking timeout (s)"
    )
    proxy_raw_timeout: float = Field(
        default=Timeouts.PROXY_RAW_BOOKING_SECONDS, gt=0, description="Raw booking timeout (s)"
    )
    diagnostic_timeout: float = Field(
        default=Timeouts.DIAGNOSTIC_SECONDS, gt=0, description="Connectivity check timeout (s)"
    )
    site_origin: str = Field(
        default=UpstreamDefaults.SITE_ORIGIN, description="Origin/Referer site for upstream calls"
    )
    booking_url_base: str = Field(
        default=UpstreamDefaults.BOOKING_URL_BASE,
        description="Base path of the user-facing booking link",
    )

    # Proxy booking retry
    proxy_max_attempts: int = Field(
        default=Retries.MAX_PROXY_BOOKING, ge=1, le=10, description="Proxy booking attempts"
    )
    proxy_initial_backoff: float = Field(
        default=Retries.BACKOFF_INITIAL_SECONDS, ge=0, description="First backoff delay (s)"
    )
    proxy_retry_on_rejection: bool = Field(
        default=True,
        description="Retry the proxy booking on any upstream rejection, not only network/5xx",
    )

    # Run behaviour
    status_poll_interval: float = Field(
        default=Intervals.STATUS_POLL, gt=0, description="Reservation status poll interval (s)"
    )
    booking_pacing: float = Field(
        default=Intervals.BOOKING_PACING, ge=0, description="Delay between candidate submissions"
    )
    header_variant_delay: float = Field(
        default=Intervals.HEADER_VARIANT_DELAY, ge=0, description="Delay between header variants"
    )

    # Web server
    host: str = Field(default="127.0.0.1", description="Control plane bind address")
    port: int = Field(default=3000, ge=1, le=65535, description="Control plane port")
    rate_limit_enabled: bool = Field(default=True, description="Enable rate limiting")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator("booking_url_base")
    @classmethod
    def ensure_trailing_slash(cls, v: str) -> str:
        """Booking references are appended directly to the base path."""
        return v if v.endswith("/") else f"{v}/"

    @property
    def is_development(self) -> bool:
        """Check whether the app runs in a development-like environment."""
        return self.env.lower() in {"development", "dev", "local", "testing", "test"}


@lru_cache(maxsize=1)
def get_settings() -> AutobookSettings:
    """Get cached application settings."""
    return AutobookSettings()


def reset_settings() -> None:
    """Clear the cached settings (for testing)."""
    get_settings.cache_clear()
