"""Delivery metrics snapshot returned by MetricsCollector."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from notification_router.exceptions import UnknownMetricError


@dataclass(frozen=True, slots=True)
class ChannelMetrics:
    """Terminal outcome counts for one channel."""

    sent: int = 0
    """Attempted deliveries (delivered + failed)."""
    delivered: int = 0
    failed: int = 0
    average_delivery_time_ms: float = 0.0

    @property
    def delivery_rate(self) -> float:
        return self.delivered / self.sent if self.sent else 0.0


@dataclass(frozen=True, slots=True)
class EscalationMetrics:
    total_escalated: int = 0
    escalation_rate: float = 0.0


@dataclass(frozen=True, slots=True)
class NotificationMetrics:
    """Aggregate delivery metrics.

    delivery_rate and failure_rate are in [0, 1]; both are 0 when nothing was sent.
    """

    total_sent: int = 0
    delivered: int = 0
    failed: int = 0
    delivery_rate: float = 0.0
    failure_rate: float = 0.0
    average_delivery_time_ms: float = 0.0
    channel_metrics: dict[str, ChannelMetrics] = field(default_factory=dict)
    escalation_metrics: EscalationMetrics = field(default_factory=EscalationMetrics)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def get(self, path: str) -> Any:
        """Resolve a dotted metric path, e.g. "channel_metrics.email.delivered".

        Raises:
            UnknownMetricError: If any segment of the path does not exist.
        """
        node: Any = self.to_dict()
        for part in path.split("."):
            if not isinstance(node, dict) or part not in node:
                raise UnknownMetricError(path)
            node = node[part]
        return node
