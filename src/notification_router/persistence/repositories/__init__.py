# -*- coding: utf-8 -*-
"""Repositories: interfaces (abstractions) and implementations (in_memory, etc.)."""

from notification_router.persistence.repositories.interfaces import (
    IDeliveryRepository,
    INotificationRuleRepository,
    IUserPreferenceRepository,
)
from notification_router.persistence.repositories.in_memory import (
    InMemoryDeliveryRepository,
    InMemoryNotificationRuleRepository,
    InMemoryUserPreferenceRepository,
)

__all__ = [
    "IDeliveryRepository",
    "INotificationRuleRepository",
    "IUserPreferenceRepository",
    "InMemoryDeliveryRepository",
    "InMemoryNotificationRuleRepository",
    "InMemoryUserPreferenceRepository",
]
