"""In-memory delivery repository (keyed by delivery id, indexed by notification id)."""

from __future__ import annotations

from typing import Optional

from notification_router.models.delivery import NotificationDelivery
from notification_router.persistence.repositories.interfaces.delivery_repository import (
    IDeliveryRepository,
)


class InMemoryDeliveryRepository(IDeliveryRepository):
    """In-memory implementation of IDeliveryRepository.

    With max_deliveries set, saving a new delivery past the bound evicts the oldest
    deliveries that are no longer pending or sending.
    """

    def __init__(self, max_deliveries: Optional[int] = None) -> None:
        if max_deliveries is not None and max_deliveries < 1:
            raise ValueError("max_deliveries must be >= 1")
        self._max_deliveries = max_deliveries
        self._store: dict[str, NotificationDelivery] = {}
        self._by_notification: dict[str, list[str]] = {}

    async def get(self, delivery_id: str) -> NotificationDelivery | None:
        return self._store.get(delivery_id)

    async def save(self, delivery: NotificationDelivery) -> None:
        is_new = delivery.id not in self._store
        if is_new:
            self._by_notification.setdefault(delivery.notification_id, []).append(delivery.id)
        self._store[delivery.id] = delivery
        if is_new and self._max_deliveries is not None:
            self._evict(len(self._store) - self._max_deliveries)

    def _evict(self, excess: int) -> None:
        if excess <= 0:
            return
        # dict keeps insertion order, so the first terminal entries are the oldest.
        victims = [d for d in self._store.values() if d.state.is_terminal][:excess]
        for delivery in victims:
            del self._store[delivery.id]
            ids = self._by_notification.get(delivery.notification_id)
            if ids is None:
                continue
            ids.remove(delivery.id)
            if not ids:
                del self._by_notification[delivery.notification_id]

    async def list_by_notification(self, notification_id: str) -> list[NotificationDelivery]:
        return [self._store[i] for i in self._by_notification.get(notification_id, ())]

    def __len__(self) -> int:
        return len(self._store)
