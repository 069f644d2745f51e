# -*- coding: utf-8 -*-
"""Domain models."""

from notification_router.models.delivery import (
    DeliveryChannel,
    NotificationDelivery,
    NotificationState,
)
from notification_router.models.digest import (
    DigestFrequency,
    DigestState,
    NotificationDigest,
)
from notification_router.models.metrics import (
    ChannelMetrics,
    EscalationMetrics,
    NotificationMetrics,
)
from notification_router.models.payload import (
    NotificationPayload,
    NotificationPriority,
    NotificationType,
)
from notification_router.models.preferences import (
    ChannelPreference,
    GlobalPreferences,
    NotificationTypePreference,
    QuietHours,
    UserPreferences,
)
from notification_router.models.rule import (
    ConditionOperator,
    DigestConfig,
    EscalationConfig,
    NotificationCondition,
    NotificationRule,
    RateLimitConfig,
)

__all__ = [
    "ChannelMetrics",
    "ChannelPreference",
    "ConditionOperator",
    "DeliveryChannel",
    "DigestConfig",
    "DigestFrequency",
    "DigestState",
    "EscalationConfig",
    "EscalationMetrics",
    "GlobalPreferences",
    "NotificationCondition",
    "NotificationDelivery",
    "NotificationDigest",
    "NotificationMetrics",
    "NotificationPayload",
    "NotificationPriority",
    "NotificationRule",
    "NotificationState",
    "NotificationType",
    "NotificationTypePreference",
    "QuietHours",
    "RateLimitConfig",
    "UserPreferences",
]
