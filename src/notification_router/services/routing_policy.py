# -*- coding: utf-8 -*-
"""RoutingPolicy: pure preference and rule filter for one (payload, recipient, channel) pair.

No I/O. Receives the recipient's preferences and the rules already matched for the
payload; DeliveryDispatcher applies the remaining steps (channel availability, rate
limits, message length, delivery).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional, Sequence

from notification_router.models.payload import NotificationPriority

if TYPE_CHECKING:
    from notification_router.models.delivery import DeliveryChannel
    from notification_router.models.digest import DigestFrequency
    from notification_router.models.payload import NotificationPayload
    from notification_router.models.preferences import UserPreferences
    from notification_router.models.rule import NotificationRule


class RoutingOutcome(str, Enum):
    DELIVER = "deliver"
    SKIP = "skip"
    DIGEST = "digest"


@dataclass(frozen=True)
class RoutingDecision:
    """Result of RoutingPolicy evaluation (decision + reason for logging)."""

    outcome: RoutingOutcome
    reason: str
    digest_frequency: Optional["DigestFrequency"] = None
    """Set when outcome is DIGEST."""

    @property
    def should_deliver(self) -> bool:
        return self.outcome == RoutingOutcome.DELIVER


class RoutingPolicy:
    """Preference filter evaluated in a fixed order, first failure wins."""

    def evaluate(
        self,
        payload: "NotificationPayload",
        preferences: "UserPreferences",
        channel: "DeliveryChannel",
        matched_rules: Sequence["NotificationRule"] = (),
        *,
        now: Optional[datetime] = None,
    ) -> RoutingDecision:
        """Return the RoutingDecision for one pair.

        Checks (in order):
        1. Channel enabled for the recipient, and not inside its quiet hours
           (quiet hours hold back everything below critical)
        2. Notification type enabled for the recipient
        3. Payload priority >= the recipient's min_priority for the type
        4. A matched rule routes to digest and the recipient is digest-eligible for the type

        Args:
            payload: Notification being routed.
            preferences: Recipient's preferences (defaults for unknown users).
            channel: Candidate channel.
            matched_rules: Rules matched for payload, in insertion order.
            now: Evaluation time for quiet hours (default: current UTC time).
        """
        # 1. Channel
        channel_pref = preferences.channel(channel)
        if not channel_pref.enabled:
            return RoutingDecision(RoutingOutcome.SKIP, f"channel {channel.value} disabled")
        quiet = channel_pref.quiet_hours
        if (
            quiet is not None
            and payload.priority < NotificationPriority.CRITICAL
            and quiet.contains(now or datetime.now(UTC))
        ):
            return RoutingDecision(RoutingOutcome.SKIP, f"channel {channel.value} in quiet hours")

        # 2. Type
        type_pref = preferences.notification_type(payload.type)
        if not type_pref.enabled:
            return RoutingDecision(RoutingOutcome.SKIP, f"type {payload.type.value} disabled")

        # 3. Priority threshold
        if payload.priority < type_pref.min_priority:
            return RoutingDecision(
                RoutingOutcome.SKIP,
                f"priority {payload.priority.value} below {type_pref.min_priority.value}",
            )

        # 4. Digest routing
        if preferences.is_digest_eligible(payload.type):
            for rule in matched_rules:
                if rule.digest_config is not None and rule.digest_config.enabled:
                    return RoutingDecision(
                        RoutingOutcome.DIGEST,
                        f"digest via rule {rule.id}",
                        digest_frequency=rule.digest_config.frequency,
                    )

        return RoutingDecision(RoutingOutcome.DELIVER, "ok")
