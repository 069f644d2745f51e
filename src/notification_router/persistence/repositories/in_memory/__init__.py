"""In-memory repository implementations."""

from notification_router.persistence.repositories.in_memory.delivery_repository import (
    InMemoryDeliveryRepository,
)
from notification_router.persistence.repositories.in_memory.notification_rule_repository import (
    InMemoryNotificationRuleRepository,
)
from notification_router.persistence.repositories.in_memory.user_preference_repository import (
    InMemoryUserPreferenceRepository,
)

__all__ = [
    "InMemoryDeliveryRepository",
    "InMemoryNotificationRuleRepository",
    "InMemoryUserPreferenceRepository",
]
