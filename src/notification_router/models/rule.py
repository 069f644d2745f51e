"""NotificationRule: routing, escalation and rate-limit policy bound to one notification type.

Rules are validated on construction; malformed input raises InvalidRuleError so
configuration mistakes surface at setup time instead of during delivery.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from notification_router.exceptions import InvalidRuleError
from notification_router.models.delivery import DeliveryChannel
from notification_router.models.digest import DigestFrequency
from notification_router.models.payload import NotificationPriority, NotificationType

ConditionValue = str | int | float | bool


class ConditionOperator(str, Enum):
    """Comparison operator of a rule condition."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    CONTAINS = "contains"
    MATCHES_REGEX = "matches_regex"


@dataclass(frozen=True, slots=True)
class NotificationCondition:
    """One (field path, operator, value) test evaluated against a payload."""

    field: str
    """Dotted path, e.g. "priority", "repository_name" or "metadata.severity"."""
    operator: ConditionOperator
    value: ConditionValue

    def __post_init__(self) -> None:
        if not self.field or any(not part for part in self.field.split(".")):
            raise InvalidRuleError(f"condition field path is malformed: {self.field!r}")
        if not isinstance(self.operator, ConditionOperator):
            raise InvalidRuleError(f"unknown condition operator: {self.operator!r}")
        if not isinstance(self.value, (str, int, float, bool)):
            raise InvalidRuleError(
                f"condition value must be str, int, float or bool, got {type(self.value).__name__}"
            )
        if self.operator == ConditionOperator.MATCHES_REGEX:
            if not isinstance(self.value, str):
                raise InvalidRuleError("matches_regex requires a string pattern")
            try:
                re.compile(self.value)
            except re.error as e:
                raise InvalidRuleError(f"invalid regex {self.value!r}: {e}") from e

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NotificationCondition:
        try:
            operator = ConditionOperator(data["operator"])
            return cls(field=str(data["field"]), operator=operator, value=data["value"])
        except KeyError as e:
            raise InvalidRuleError(f"condition is missing key {e.args[0]!r}") from e
        except ValueError as e:
            raise InvalidRuleError(f"unknown condition operator: {data.get('operator')!r}") from e


@dataclass(frozen=True, slots=True)
class EscalationConfig:
    """Delayed re-dispatch of failed deliveries to broader channels/recipients."""

    enabled: bool
    escalation_delay: float
    """Minutes to wait before each escalation attempt."""
    max_escalations: int
    escalation_channels: tuple[DeliveryChannel, ...]
    escalation_recipients: tuple[str, ...] = ()
    """Who to escalate to. Empty means the original recipient."""

    def __post_init__(self) -> None:
        if self.escalation_delay < 0:
            raise InvalidRuleError("escalation_delay must be >= 0")
        if self.max_escalations < 0:
            raise InvalidRuleError("max_escalations must be >= 0")
        if self.enabled and not self.escalation_channels:
            raise InvalidRuleError("enabled escalation requires at least one channel")


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    """Per (rule, recipient, channel) send limits."""

    max_per_hour: int
    max_per_day: int
    batch_size: int = 1
    """Max notifications an external batching step may group together."""
    cooldown_period: float = 0
    """Minutes a key stays blocked after hitting a limit."""

    def __post_init__(self) -> None:
        if self.max_per_hour < 1 or self.max_per_day < 1:
            raise InvalidRuleError("rate limits must allow at least one notification")
        if self.max_per_hour > self.max_per_day:
            raise InvalidRuleError("max_per_hour cannot exceed max_per_day")
        if self.batch_size < 1:
            raise InvalidRuleError("batch_size must be >= 1")
        if self.cooldown_period < 0:
            raise InvalidRuleError("cooldown_period must be >= 0")


@dataclass(frozen=True, slots=True)
class DigestConfig:
    """Route matching notifications into a per-user digest instead of sending immediately."""

    enabled: bool
    frequency: DigestFrequency = DigestFrequency.DAILY


@dataclass(frozen=True, slots=True)
class NotificationRule:
    """Policy for one notification type. A rule with no conditions always matches its type."""

    id: str
    name: str
    notification_type: NotificationType
    priority: NotificationPriority
    channels: tuple[DeliveryChannel, ...]
    conditions: tuple[NotificationCondition, ...] = ()
    enabled: bool = True
    escalation_config: EscalationConfig | None = None
    rate_limit_config: RateLimitConfig | None = None
    digest_config: DigestConfig | None = None

    def __post_init__(self) -> None:
        if not self.id or not self.id.strip():
            raise InvalidRuleError("rule id must be non-empty")
        if not self.name or not self.name.strip():
            raise InvalidRuleError("rule name must be non-empty", rule_id=self.id)
        if not isinstance(self.notification_type, NotificationType):
            raise InvalidRuleError(
                f"unknown notification type: {self.notification_type!r}", rule_id=self.id
            )
        if not isinstance(self.priority, NotificationPriority):
            raise InvalidRuleError(f"unknown priority: {self.priority!r}", rule_id=self.id)
        for channel in self.channels:
            if not isinstance(channel, DeliveryChannel):
                raise InvalidRuleError(f"unknown channel: {channel!r}", rule_id=self.id)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NotificationRule:
        """Build a rule from a plain mapping (JSON/YAML config), raising InvalidRuleError on bad input."""
        rule_id = str(data.get("id") or "")
        try:
            escalation = data.get("escalation_config")
            rate_limit = data.get("rate_limit_config")
            digest = data.get("digest_config")
            return cls(
                id=rule_id,
                name=str(data.get("name") or ""),
                notification_type=NotificationType(data["notification_type"]),
                priority=NotificationPriority(data.get("priority", "medium")),
                channels=tuple(DeliveryChannel(c) for c in data.get("channels", ())),
                conditions=tuple(
                    NotificationCondition.from_dict(c) for c in data.get("conditions", ())
                ),
                enabled=bool(data.get("enabled", True)),
                escalation_config=(
                    EscalationConfig(
                        enabled=bool(escalation.get("enabled", False)),
                        escalation_delay=float(escalation.get("escalation_delay", 0)),
                        max_escalations=int(escalation.get("max_escalations", 0)),
                        escalation_channels=tuple(
                            DeliveryChannel(c) for c in escalation.get("escalation_channels", ())
                        ),
                        escalation_recipients=tuple(escalation.get("escalation_recipients", ())),
                    )
                    if escalation
                    else None
                ),
                rate_limit_config=(
                    RateLimitConfig(
                        max_per_hour=int(rate_limit["max_per_hour"]),
                        max_per_day=int(rate_limit["max_per_day"]),
                        batch_size=int(rate_limit.get("batch_size", 1)),
                        cooldown_period=float(rate_limit.get("cooldown_period", 0)),
                    )
                    if rate_limit
                    else None
                ),
                digest_config=(
                    DigestConfig(
                        enabled=bool(digest.get("enabled", False)),
                        frequency=DigestFrequency(digest.get("frequency", "daily")),
                    )
                    if digest
                    else None
                ),
            )
        except InvalidRuleError as e:
            if e.rule_id is None:
                e.rule_id = rule_id or None
            raise
        except KeyError as e:
            raise InvalidRuleError(f"rule is missing key {e.args[0]!r}", rule_id=rule_id or None) from e
        except (TypeError, ValueError) as e:
            raise InvalidRuleError(str(e), rule_id=rule_id or None) from e
