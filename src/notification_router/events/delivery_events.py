"""Delivery outcome events (emitted by DeliveryDispatcher and EscalationScheduler).

Consumed by realtime UI adapters; the router never waits on handlers.
"""

from __future__ import annotations

from datetime import datetime

from bubus import BaseEvent  # type: ignore[import-untyped]


class NotificationDeliveredEvent(BaseEvent[None]):
    """Emitted when a delivery reaches the delivered state."""

    notification_id: str
    delivery_id: str
    channel: str
    recipient: str
    escalation_level: int = 0
    delivered_at: datetime | None = None


class NotificationFailedEvent(BaseEvent[None]):
    """Emitted when a delivery reaches the failed state (rate limit, validation or transport)."""

    notification_id: str
    delivery_id: str
    channel: str
    recipient: str
    error_message: str
    attempts: int
    escalation_level: int = 0
    escalation_eligible: bool = False
    """True only for transport failures, which may trigger escalation."""


class NotificationEscalatedEvent(BaseEvent[None]):
    """Emitted when a failed delivery arms an escalation timer."""

    notification_id: str
    parent_delivery_id: str
    escalation_level: int
    channels: list[str]
    recipients: list[str]
    scheduled_for: datetime
