# -*- coding: utf-8 -*-
"""MetricsCollector: passive tally of terminal delivery outcomes."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Callable, Optional

from notification_router.models.delivery import NotificationDelivery, NotificationState
from notification_router.models.metrics import (
    ChannelMetrics,
    EscalationMetrics,
    NotificationMetrics,
)

TimeRange = tuple[datetime, datetime]


@dataclass(frozen=True, slots=True)
class _OutcomeRecord:
    channel: str
    delivered: bool
    duration_ms: float
    escalation_level: int
    recorded_at: datetime


def _average(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _channel_metrics(records: list[_OutcomeRecord]) -> ChannelMetrics:
    delivered = [r for r in records if r.delivered]
    return ChannelMetrics(
        sent=len(records),
        delivered=len(delivered),
        failed=len(records) - len(delivered),
        average_delivery_time_ms=_average([r.duration_ms for r in delivered]),
    )


class MetricsCollector:
    """Records delivered/failed outcomes and aggregates them on demand.

    Average delivery time covers delivered outcomes only. Escalated deliveries are
    those with escalation_level > 0. At most max_records outcomes are kept; the
    oldest are dropped first (None keeps everything).
    """

    def __init__(
        self,
        max_records: Optional[int] = None,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._clock = clock
        self._records: deque[_OutcomeRecord] = deque(maxlen=max_records)
        self._lock = threading.Lock()

    def record(self, delivery: NotificationDelivery, duration_ms: float = 0.0) -> bool:
        """Record a terminal delivered/failed delivery. Other states are ignored (returns False)."""
        if delivery.state not in (NotificationState.DELIVERED, NotificationState.FAILED):
            return False
        record = _OutcomeRecord(
            channel=delivery.channel.value,
            delivered=delivery.state == NotificationState.DELIVERED,
            duration_ms=max(duration_ms, 0.0),
            escalation_level=delivery.escalation_level,
            recorded_at=self._clock(),
        )
        with self._lock:
            self._records.append(record)
        return True

    def _select(self, time_range: Optional[TimeRange]) -> list[_OutcomeRecord]:
        with self._lock:
            records = list(self._records)
        if time_range is None:
            return records
        start, end = time_range
        if start > end:
            raise ValueError("time_range start must not be after end")
        return [r for r in records if start <= r.recorded_at <= end]

    def snapshot(self, time_range: Optional[TimeRange] = None) -> NotificationMetrics:
        records = self._select(time_range)
        overall = _channel_metrics(records)
        by_channel: dict[str, list[_OutcomeRecord]] = {}
        for r in records:
            by_channel.setdefault(r.channel, []).append(r)
        escalated = sum(1 for r in records if r.escalation_level > 0)
        total = overall.sent
        return NotificationMetrics(
            total_sent=total,
            delivered=overall.delivered,
            failed=overall.failed,
            delivery_rate=overall.delivered / total if total else 0.0,
            failure_rate=overall.failed / total if total else 0.0,
            average_delivery_time_ms=overall.average_delivery_time_ms,
            channel_metrics={ch: _channel_metrics(rs) for ch, rs in sorted(by_channel.items())},
            escalation_metrics=EscalationMetrics(
                total_escalated=escalated,
                escalation_rate=escalated / total if total else 0.0,
            ),
        )

    def reset(self) -> None:
        with self._lock:
            self._records.clear()
