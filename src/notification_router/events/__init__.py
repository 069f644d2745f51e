# -*- coding: utf-8 -*-
"""Event bus and event types."""

from notification_router.events.bus import create_event_bus, get_event_bus, set_event_bus
from notification_router.events.delivery_events import (
    NotificationDeliveredEvent,
    NotificationEscalatedEvent,
    NotificationFailedEvent,
)

__all__ = [
    "create_event_bus",
    "get_event_bus",
    "set_event_bus",
    "NotificationDeliveredEvent",
    "NotificationEscalatedEvent",
    "NotificationFailedEvent",
]
