# -*- coding: utf-8 -*-
"""Repository interfaces (abstractions). Implementations live in in_memory/."""

from notification_router.persistence.repositories.interfaces.delivery_repository import (
    IDeliveryRepository,
)
from notification_router.persistence.repositories.interfaces.notification_rule_repository import (
    INotificationRuleRepository,
)
from notification_router.persistence.repositories.interfaces.user_preference_repository import (
    IUserPreferenceRepository,
)

__all__ = [
    "IDeliveryRepository",
    "INotificationRuleRepository",
    "IUserPreferenceRepository",
]
