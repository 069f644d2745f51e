"""Persistence layer (repositories, etc.)."""

from notification_router.persistence.repositories import (
    IDeliveryRepository,
    INotificationRuleRepository,
    InMemoryDeliveryRepository,
    InMemoryNotificationRuleRepository,
    InMemoryUserPreferenceRepository,
    IUserPreferenceRepository,
)

__all__ = [
    "IDeliveryRepository",
    "INotificationRuleRepository",
    "IUserPreferenceRepository",
    "InMemoryDeliveryRepository",
    "InMemoryNotificationRuleRepository",
    "InMemoryUserPreferenceRepository",
]
