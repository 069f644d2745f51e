"""NotificationPayload: immutable description of an event to notify about.

Created by the caller at dispatch time, never mutated, and referenced (not owned)
by every NotificationDelivery it spawns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4


class NotificationType(str, Enum):
    """Kind of event a notification describes."""

    SECURITY_ALERT = "security_alert"
    COMPLIANCE_VIOLATION = "compliance_violation"
    WORKFLOW_FAILURE = "workflow_failure"
    SCAN_COMPLETED = "scan_completed"
    RATE_LIMIT_WARNING = "rate_limit_warning"
    SYSTEM_MAINTENANCE = "system_maintenance"


_PRIORITY_ORDER = ("low", "medium", "high", "critical")


class NotificationPriority(str, Enum):
    """Totally ordered priority: low < medium < high < critical."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Position in the ordering (low=0 .. critical=3)."""
        return _PRIORITY_ORDER.index(self.value)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, NotificationPriority):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, NotificationPriority):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, NotificationPriority):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, NotificationPriority):
            return NotImplemented
        return self.rank >= other.rank


@dataclass(frozen=True, slots=True)
class NotificationPayload:
    """Event to notify about.

    Identity: id (unique for the process lifetime). Priority drives threshold
    comparisons against user preferences.
    """

    id: str
    type: NotificationType
    priority: NotificationPriority
    title: str
    message: str
    organization_name: str
    timestamp: datetime
    metadata: dict[str, Any] = field(default_factory=dict)
    dismissible: bool = True
    repository_name: str | None = None
    action_url: str | None = None
    expires_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        """True when expires_at is set and already in the past."""
        if self.expires_at is None:
            return False
        return (now or datetime.now(UTC)) >= self.expires_at

    @classmethod
    def create(
        cls,
        *,
        type: NotificationType | str,
        priority: NotificationPriority | str,
        title: str,
        message: str,
        organization_name: str,
        metadata: dict[str, Any] | None = None,
        dismissible: bool = True,
        repository_name: str | None = None,
        action_url: str | None = None,
        expires_at: datetime | None = None,
        id: str | None = None,
        timestamp: datetime | None = None,
    ) -> NotificationPayload:
        """Create a new payload with a fresh id and timestamp."""
        title = title.strip()
        if not title:
            raise ValueError("title must be non-empty")
        return cls(
            id=id or str(uuid4()),
            type=NotificationType(type),
            priority=NotificationPriority(priority),
            title=title,
            message=message,
            organization_name=organization_name,
            timestamp=timestamp or datetime.now(UTC),
            metadata=dict(metadata or {}),
            dismissible=dismissible,
            repository_name=repository_name,
            action_url=action_url,
            expires_at=expires_at,
        )
