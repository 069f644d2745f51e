# -*- coding: utf-8 -*-
"""Abstract interface for notification rule storage (in-memory, DB, etc.)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from notification_router.models.payload import NotificationType
from notification_router.models.rule import NotificationRule


class INotificationRuleRepository(ABC):
    """Interface for persisting NotificationRule. Listing order is insertion order."""

    @abstractmethod
    async def get(self, rule_id: str) -> Optional[NotificationRule]:
        """Return the rule by id, or None if missing."""
        ...

    @abstractmethod
    async def save(self, rule: NotificationRule) -> None:
        """Insert a rule, or replace it in place if the id already exists."""
        ...

    @abstractmethod
    async def delete(self, rule_id: str) -> bool:
        """Remove the rule by id. Returns True if it existed."""
        ...

    @abstractmethod
    async def list_all(self) -> list[NotificationRule]:
        """Return all rules in insertion order."""
        ...

    async def list_by_type(self, notification_type: NotificationType) -> list[NotificationRule]:
        """Return rules bound to notification_type, in insertion order."""
        return [r for r in await self.list_all() if r.notification_type == notification_type]
