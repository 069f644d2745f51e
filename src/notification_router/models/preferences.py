"""UserPreferences: per-user channel, notification type and global settings.

One record per user id. Unknown users get the defaults from
UserPreferences.defaults(); updates replace the whole record.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from notification_router.models.delivery import DeliveryChannel
from notification_router.models.payload import NotificationPriority, NotificationType


def _parse_hhmm(value: str) -> time:
    try:
        hours, minutes = value.split(":")
        return time(int(hours), int(minutes))
    except ValueError as e:
        raise ValueError(f"expected HH:MM, got {value!r}") from e


@dataclass(frozen=True, slots=True)
class QuietHours:
    """Daily window (HH:MM, in timezone) during which a channel holds back non-critical notifications."""

    start: str
    end: str
    timezone: str = "UTC"

    def __post_init__(self) -> None:
        _parse_hhmm(self.start)
        _parse_hhmm(self.end)
        try:
            ZoneInfo(self.timezone)
        except ZoneInfoNotFoundError as e:
            raise ValueError(f"unknown timezone {self.timezone!r}") from e

    def contains(self, moment: datetime) -> bool:
        """True if moment (aware) falls inside the window. Windows may wrap midnight."""
        local = moment.astimezone(ZoneInfo(self.timezone)).time()
        start = _parse_hhmm(self.start)
        end = _parse_hhmm(self.end)
        if start == end:
            return False
        if start < end:
            return start <= local < end
        return local >= start or local < end


@dataclass(frozen=True, slots=True)
class ChannelPreference:
    """Per-channel settings. enabled=False admits zero deliveries."""

    enabled: bool = False
    address: str | None = None
    """Channel-specific address (email, @handle, webhook URL). Defaults to the user id."""
    quiet_hours: QuietHours | None = None


@dataclass(frozen=True, slots=True)
class NotificationTypePreference:
    """Per-notification-type settings."""

    enabled: bool = True
    min_priority: NotificationPriority = NotificationPriority.LOW
    digest_enabled: bool = False


@dataclass(frozen=True, slots=True)
class GlobalPreferences:
    """Settings that apply across channels and types."""

    enable_digest: bool = True
    max_notifications_per_day: int = 100
    enable_escalation: bool = True

    def __post_init__(self) -> None:
        if self.max_notifications_per_day < 0:
            raise ValueError("max_notifications_per_day must be >= 0")


_DEFAULT_TYPE_PREFERENCES: dict[NotificationType, NotificationTypePreference] = {
    NotificationType.SECURITY_ALERT: NotificationTypePreference(
        enabled=True, min_priority=NotificationPriority.MEDIUM, digest_enabled=False
    ),
    NotificationType.COMPLIANCE_VIOLATION: NotificationTypePreference(
        enabled=True, min_priority=NotificationPriority.HIGH, digest_enabled=False
    ),
    NotificationType.WORKFLOW_FAILURE: NotificationTypePreference(
        enabled=True, min_priority=NotificationPriority.MEDIUM, digest_enabled=True
    ),
    NotificationType.SCAN_COMPLETED: NotificationTypePreference(
        enabled=True, min_priority=NotificationPriority.LOW, digest_enabled=True
    ),
    NotificationType.RATE_LIMIT_WARNING: NotificationTypePreference(
        enabled=True, min_priority=NotificationPriority.MEDIUM, digest_enabled=True
    ),
    NotificationType.SYSTEM_MAINTENANCE: NotificationTypePreference(
        enabled=True, min_priority=NotificationPriority.LOW, digest_enabled=True
    ),
}


@dataclass(frozen=True, slots=True)
class UserPreferences:
    """All notification settings for one user.

    A channel missing from `channels` is disabled; a type missing from
    `notification_types` is disabled.
    """

    user_id: str
    channels: dict[DeliveryChannel, ChannelPreference] = field(default_factory=dict)
    notification_types: dict[NotificationType, NotificationTypePreference] = field(
        default_factory=dict
    )
    global_settings: GlobalPreferences = field(default_factory=GlobalPreferences)

    def channel(self, channel: DeliveryChannel) -> ChannelPreference:
        return self.channels.get(channel) or ChannelPreference(enabled=False)

    def notification_type(self, type_: NotificationType) -> NotificationTypePreference:
        return self.notification_types.get(type_) or NotificationTypePreference(enabled=False)

    def address_for(self, channel: DeliveryChannel) -> str:
        """Address to deliver to on channel: the override if set, else the user id."""
        return self.channel(channel).address or self.user_id

    def is_digest_eligible(self, type_: NotificationType) -> bool:
        return self.global_settings.enable_digest and self.notification_type(type_).digest_enabled

    def with_channel(self, channel: DeliveryChannel, preference: ChannelPreference) -> UserPreferences:
        """Return a copy with one channel preference replaced."""
        return replace(self, channels={**self.channels, channel: preference})

    def with_notification_type(
        self,
        type_: NotificationType,
        preference: NotificationTypePreference,
    ) -> UserPreferences:
        """Return a copy with one notification type preference replaced."""
        return replace(self, notification_types={**self.notification_types, type_: preference})

    @classmethod
    def defaults(cls, user_id: str) -> UserPreferences:
        """Defaults for a user with no stored preferences.

        Email and in-app on, chat and webhook channels off; security and compliance
        alerts delivered immediately, the other types digest-eligible.
        """
        return cls(
            user_id=user_id,
            channels={
                DeliveryChannel.EMAIL: ChannelPreference(enabled=True),
                DeliveryChannel.IN_APP: ChannelPreference(enabled=True),
                DeliveryChannel.SLACK: ChannelPreference(enabled=False),
                DeliveryChannel.TEAMS: ChannelPreference(enabled=False),
                DeliveryChannel.WEBHOOK: ChannelPreference(enabled=False),
            },
            notification_types=dict(_DEFAULT_TYPE_PREFERENCES),
            global_settings=GlobalPreferences(),
        )
