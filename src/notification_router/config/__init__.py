"""Configuration subpackage."""

from notification_router.config.config import (
    AppSettings,
    DigestSettings,
    EmailChannelSettings,
    EscalationSettings,
    InAppChannelSettings,
    LoggingSettings,
    RateLimitSettings,
    RetentionSettings,
    RouterSettings,
    Settings,
    SimulationSettings,
    WebhookChannelSettings,
    get_settings,
)

__all__ = [
    "AppSettings",
    "DigestSettings",
    "EmailChannelSettings",
    "EscalationSettings",
    "InAppChannelSettings",
    "LoggingSettings",
    "RateLimitSettings",
    "RetentionSettings",
    "RouterSettings",
    "Settings",
    "SimulationSettings",
    "WebhookChannelSettings",
    "get_settings",
]
