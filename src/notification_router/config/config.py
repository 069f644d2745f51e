# -*- coding: utf-8 -*-
"""Configuration loaded from environment via Pydantic Settings.

Nested env vars use <section>__<key>, e.g. LOGGING__CONSOLE_LEVEL, ROUTER__MAX_CONCURRENCY.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal, Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """General application configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    app_name: str = "notification-router"
    service_name: Optional[str] = None
    service_version: Optional[str] = None
    environment: Literal["development", "test", "production"] = "development"


class LoggingSettings(BaseSettings):
    """Structured logging configuration (env LOGGING__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    # Per-target levels
    console_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    logfire_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Local outputs
    log_to_console: bool = True
    log_to_file: bool = False
    log_file_path: str = "logs/notification_router.log"
    # TimedRotatingFileHandler: when to rotate (S/M/H/D/W0–W6/midnight), interval, backups to keep
    log_file_when: Literal[
        "S", "M", "H", "D", "W0", "W1", "W2", "W3", "W4", "W5", "W6", "midnight"
    ] = "midnight"
    log_file_interval: int = 1
    log_file_backup_count: int = 30
    log_file_utc: bool = True

    # Console output format (file output is always JSON)
    json_format: bool = False
    # Mask email local parts and webhook URL paths in recipient/address/user_id fields
    redact_recipients: bool = True

    # Logfire integration via structlog
    logfire_enabled: bool = False
    logfire_token: Optional[str] = None


class RouterSettings(BaseSettings):
    """Fan-out and default routing configuration (env ROUTER__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    max_concurrency: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Maximum number of channel deliveries in flight per router.",
    )
    # Raw strings from env so pydantic-settings does not try to JSON-decode them.
    default_channels_raw: str = Field(
        default="email,in_app",
        description="Channels used by scheduled notifications when no rule names any. Env: ROUTER__DEFAULT_CHANNELS.",
        validation_alias="default_channels",
    )
    default_recipients_raw: str = Field(
        default="admin@example.com",
        description="Recipients used by scheduled notifications when none are given. Env: ROUTER__DEFAULT_RECIPIENTS.",
        validation_alias="default_recipients",
    )

    @computed_field
    @property
    def default_channels(self) -> list[str]:
        """Parse comma-separated default_channels_raw into a list of stripped strings."""
        return [s.strip() for s in self.default_channels_raw.split(",") if s.strip()]

    @computed_field
    @property
    def default_recipients(self) -> list[str]:
        """Parse comma-separated default_recipients_raw into a list of stripped strings."""
        return [s.strip() for s in self.default_recipients_raw.split(",") if s.strip()]


class RateLimitSettings(BaseSettings):
    """Per (recipient, channel) sliding window (env RATE_LIMIT__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    capacity: int = Field(default=60, ge=1, description="Hits allowed per window.")
    window_seconds: float = Field(default=60.0, gt=0, description="Sliding window length.")


class EscalationSettings(BaseSettings):
    """Escalation timer configuration (env ESCALATION__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    enabled: bool = True
    delay_unit_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Seconds per escalation delay minute. Lower it to compress time in tests.",
    )


class DigestSettings(BaseSettings):
    """Digest accumulation defaults (env DIGEST__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    default_frequency: Literal["hourly", "daily", "weekly"] = "daily"


class RetentionSettings(BaseSettings):
    """In-memory history bounds (env RETENTION__*). Oldest entries are dropped first."""

    model_config = SettingsConfigDict(extra="ignore")

    max_outcome_records: int = Field(
        default=100_000,
        ge=1,
        description="Delivered/failed outcomes kept for metrics snapshots.",
    )
    max_deliveries: int = Field(
        default=100_000,
        ge=1,
        description="Deliveries kept in the in-memory repository. Pending deliveries are never evicted.",
    )


class EmailChannelSettings(BaseSettings):
    """SMTP email channel (env EMAIL__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    enabled: bool = False
    smtp_host: str = "localhost"
    smtp_port: int = Field(default=587, ge=1, le=65535)
    username: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    from_address: str = "noreply@example.com"
    timeout_seconds: float = Field(default=15.0, ge=1.0, le=120.0)


class WebhookChannelSettings(BaseSettings):
    """Slack, Teams and generic webhook channels (env WEBHOOKS__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    slack_enabled: bool = False
    slack_webhook_url: Optional[str] = None
    teams_enabled: bool = False
    teams_webhook_url: Optional[str] = None
    generic_enabled: bool = False
    timeout_seconds: float = Field(
        default=15.0,
        ge=1.0,
        le=120.0,
        description="HTTP request timeout in seconds.",
    )


class InAppChannelSettings(BaseSettings):
    """In-app inbox channel (env IN_APP__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    enabled: bool = True
    inbox_size: int = Field(default=200, ge=1, le=10000)


class SimulationSettings(BaseSettings):
    """Simulated channels standing in for real transports (env SIMULATION__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    enabled: bool = False
    email_failure_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    slack_failure_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    teams_failure_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    webhook_failure_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    delivery_delay_seconds: Optional[float] = Field(
        default=None,
        ge=0.0,
        description="Override every simulated channel delay. None keeps per-channel defaults.",
    )


class Settings(BaseSettings):
    """Root application configuration.

    Groups all sub-configurations so the rest of the code does not
    read environment variables directly. Nested overrides use
    <section>__<key>, e.g. LOGGING__CONSOLE_LEVEL, RATE_LIMIT__CAPACITY.
    """

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    router: RouterSettings = Field(default_factory=RouterSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    escalation: EscalationSettings = Field(default_factory=EscalationSettings)
    digest: DigestSettings = Field(default_factory=DigestSettings)
    retention: RetentionSettings = Field(default_factory=RetentionSettings)
    email: EmailChannelSettings = Field(default_factory=EmailChannelSettings)
    webhooks: WebhookChannelSettings = Field(default_factory=WebhookChannelSettings)
    in_app: InAppChannelSettings = Field(default_factory=InAppChannelSettings)
    simulation: SimulationSettings = Field(default_factory=SimulationSettings)

    @classmethod
    def from_env(cls, **overrides: Any) -> Settings:
        """Build settings from environment (and .env), with optional overrides.

        Nested overrides can be passed as nested dicts, e.g.:
        - from_env(router={"max_concurrency": 10})
        - from_env(escalation={"delay_unit_seconds": 0.01})

        Returns:
            A new Settings instance.
        """
        return cls(**overrides)


@lru_cache
def get_settings() -> Settings:
    """Return a single cached instance of Settings.

    Typical usage:

        from notification_router.config import get_settings

        settings = get_settings()
        capacity = settings.rate_limit.capacity
    """
    return Settings()
