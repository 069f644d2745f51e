"""NotificationDelivery: outcome of delivering one payload to one (recipient, channel) pair.

Mutated only by the router and the escalation scheduler through the transition
methods below, which enforce the delivery state machine:

    pending -> sending -> delivered | failed
    pending -> failed      (local rejection: rate limit, validation, unknown channel)
    pending -> dismissed   (cancelled before its scheduled send time)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from notification_router.exceptions import InvalidStateTransitionError


class DeliveryChannel(str, Enum):
    """Delivery medium."""

    EMAIL = "email"
    SLACK = "slack"
    TEAMS = "teams"
    IN_APP = "in_app"
    WEBHOOK = "webhook"


class NotificationState(str, Enum):
    """Delivery lifecycle state."""

    PENDING = "pending"
    SENDING = "sending"
    DELIVERED = "delivered"
    FAILED = "failed"
    DISMISSED = "dismissed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {NotificationState.DELIVERED, NotificationState.FAILED, NotificationState.DISMISSED}
)

_TRANSITIONS: dict[NotificationState, frozenset[NotificationState]] = {
    NotificationState.PENDING: frozenset(
        {NotificationState.SENDING, NotificationState.FAILED, NotificationState.DISMISSED}
    ),
    NotificationState.SENDING: frozenset(
        {NotificationState.DELIVERED, NotificationState.FAILED}
    ),
    NotificationState.DELIVERED: frozenset(),
    NotificationState.FAILED: frozenset(),
    NotificationState.DISMISSED: frozenset(),
}


@dataclass(slots=True)
class NotificationDelivery:
    """Per (recipient, channel) outcome record for one payload.

    Invariants: attempts >= 1 once the delivery has left pending (dismissal excepted);
    error_message is set iff state is failed; delivered_at is set iff delivered.
    """

    notification_id: str
    channel: DeliveryChannel
    recipient: str
    address: str
    """Channel-specific address actually used (preference override or the recipient id)."""
    id: str = field(default_factory=lambda: str(uuid4()))
    state: NotificationState = NotificationState.PENDING
    attempts: int = 0
    error_message: str | None = None
    delivered_at: datetime | None = None
    last_attempt_at: datetime | None = None
    escalation_level: int = 0
    parent_delivery_id: str | None = None
    """Delivery whose failure caused this escalation attempt (None for originals)."""
    scheduled_for: datetime | None = None
    """When a pending escalation attempt is due."""

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    def _move(self, target: NotificationState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidStateTransitionError(self.id, self.state.value, target.value)
        self.state = target

    def mark_sending(self, at: datetime | None = None) -> None:
        """pending -> sending; counts one attempt."""
        self._move(NotificationState.SENDING)
        self.attempts += 1
        self.last_attempt_at = at or datetime.now(UTC)

    def mark_delivered(self, at: datetime | None = None) -> None:
        """sending -> delivered."""
        self._move(NotificationState.DELIVERED)
        self.delivered_at = at or datetime.now(UTC)
        self.error_message = None

    def mark_failed(self, error_message: str, at: datetime | None = None) -> None:
        """pending|sending -> failed with a non-empty error message."""
        if not error_message:
            raise ValueError("failed deliveries require an error message")
        was_pending = self.state == NotificationState.PENDING
        self._move(NotificationState.FAILED)
        if was_pending:
            # Local rejections still count as the one attempt this call made.
            self.attempts += 1
            self.last_attempt_at = at or datetime.now(UTC)
        self.error_message = error_message

    def mark_dismissed(self) -> None:
        """pending -> dismissed (terminal)."""
        self._move(NotificationState.DISMISSED)

    @classmethod
    def create(
        cls,
        *,
        notification_id: str,
        channel: DeliveryChannel | str,
        recipient: str,
        address: str | None = None,
        escalation_level: int = 0,
        parent_delivery_id: str | None = None,
        scheduled_for: datetime | None = None,
    ) -> NotificationDelivery:
        """Create a pending delivery."""
        recipient = recipient.strip()
        if not recipient:
            raise ValueError("recipient must be non-empty")
        if escalation_level < 0:
            raise ValueError("escalation_level must be >= 0")
        return cls(
            notification_id=notification_id,
            channel=DeliveryChannel(channel),
            recipient=recipient,
            address=address or recipient,
            escalation_level=escalation_level,
            parent_delivery_id=parent_delivery_id,
            scheduled_for=scheduled_for,
        )
