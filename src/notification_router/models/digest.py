"""NotificationDigest: batched aggregation of digest-eligible notifications for one user."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import uuid4

if TYPE_CHECKING:
    from notification_router.models.payload import NotificationPayload


class DigestFrequency(str, Enum):
    """How often a digest is generated."""

    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"


class DigestState(str, Enum):
    """Digest lifecycle state."""

    PENDING = "pending"
    """Generated and ready for an external delivery step."""
    SENT = "sent"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class NotificationDigest:
    """Snapshot of the notifications accumulated for (user_id, frequency)."""

    id: str
    user_id: str
    frequency: DigestFrequency
    generated_at: datetime
    notifications: tuple["NotificationPayload", ...] = ()
    state: DigestState = DigestState.PENDING
    delivered_at: datetime | None = None

    @property
    def is_empty(self) -> bool:
        return not self.notifications

    def with_sent(self, delivered_at: datetime | None = None) -> NotificationDigest:
        """Return a copy marked sent."""
        return NotificationDigest(
            id=self.id,
            user_id=self.user_id,
            frequency=self.frequency,
            generated_at=self.generated_at,
            notifications=self.notifications,
            state=DigestState.SENT,
            delivered_at=delivered_at or datetime.now(UTC),
        )

    def with_failed(self) -> NotificationDigest:
        """Return a copy marked failed."""
        return NotificationDigest(
            id=self.id,
            user_id=self.user_id,
            frequency=self.frequency,
            generated_at=self.generated_at,
            notifications=self.notifications,
            state=DigestState.FAILED,
            delivered_at=None,
        )

    @classmethod
    def create(
        cls,
        user_id: str,
        frequency: DigestFrequency | str,
        notifications: list["NotificationPayload"] | tuple["NotificationPayload", ...] = (),
        *,
        generated_at: datetime | None = None,
        id: str | None = None,
    ) -> NotificationDigest:
        """Create a pending digest."""
        return cls(
            id=id or str(uuid4()),
            user_id=user_id,
            frequency=DigestFrequency(frequency),
            generated_at=generated_at or datetime.now(UTC),
            notifications=tuple(notifications),
            state=DigestState.PENDING,
        )
