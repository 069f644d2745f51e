# -*- coding: utf-8 -*-
"""Abstract interface for delivery record storage (in-memory, DB, etc.)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from notification_router.models.delivery import NotificationDelivery, NotificationState


class IDeliveryRepository(ABC):
    """Interface for persisting NotificationDelivery records, grouped by notification id."""

    @abstractmethod
    async def get(self, delivery_id: str) -> Optional[NotificationDelivery]:
        """Return the delivery by id, or None if missing."""
        ...

    @abstractmethod
    async def save(self, delivery: NotificationDelivery) -> None:
        """Insert or update a delivery (by id)."""
        ...

    @abstractmethod
    async def list_by_notification(self, notification_id: str) -> list[NotificationDelivery]:
        """Return every delivery spawned by notification_id, in creation order."""
        ...

    async def list_pending_by_notification(self, notification_id: str) -> list[NotificationDelivery]:
        """Return deliveries of notification_id still in pending state."""
        return [
            d
            for d in await self.list_by_notification(notification_id)
            if d.state == NotificationState.PENDING
        ]
