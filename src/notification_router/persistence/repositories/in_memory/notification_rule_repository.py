"""In-memory notification rule repository (dict preserves insertion order)."""

from __future__ import annotations

from notification_router.models.rule import NotificationRule
from notification_router.persistence.repositories.interfaces.notification_rule_repository import (
    INotificationRuleRepository,
)


class InMemoryNotificationRuleRepository(INotificationRuleRepository):
    """In-memory implementation of INotificationRuleRepository."""

    def __init__(self) -> None:
        self._store: dict[str, NotificationRule] = {}

    async def get(self, rule_id: str) -> NotificationRule | None:
        return self._store.get(rule_id)

    async def save(self, rule: NotificationRule) -> None:
        """Replacing an existing id keeps its original position."""
        self._store[rule.id] = rule

    async def delete(self, rule_id: str) -> bool:
        return self._store.pop(rule_id, None) is not None

    async def list_all(self) -> list[NotificationRule]:
        return list(self._store.values())
