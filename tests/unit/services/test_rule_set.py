# -*- coding: utf-8 -*-
"""Unit tests for NotificationRuleSet."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from notification_router.exceptions import InvalidRuleError
from notification_router.models.delivery import DeliveryChannel
from notification_router.models.payload import (
    NotificationPayload,
    NotificationPriority,
    NotificationType,
)
from notification_router.models.rule import (
    ConditionOperator,
    NotificationCondition,
    NotificationRule,
)
from notification_router.persistence.repositories.in_memory import (
    InMemoryNotificationRuleRepository,
)
from notification_router.services.rule_set import NotificationRuleSet


def _rule(rule_id: str, **overrides: object) -> NotificationRule:
    fields: dict[str, object] = {
        "id": rule_id,
        "name": f"Rule {rule_id}",
        "notification_type": NotificationType.SECURITY_ALERT,
        "priority": NotificationPriority.HIGH,
        "channels": (DeliveryChannel.EMAIL,),
    }
    fields.update(overrides)
    return NotificationRule(**fields)  # type: ignore[arg-type]


@pytest.fixture
def rule_set(rule_repo: InMemoryNotificationRuleRepository) -> NotificationRuleSet:
    return NotificationRuleSet(rule_repo)


async def test_match_returns_enabled_rules_of_type_in_insertion_order(
    rule_set: NotificationRuleSet,
    payload_factory: Callable[..., NotificationPayload],
) -> None:
    await rule_set.add_rule(_rule("b"))
    await rule_set.add_rule(_rule("a"))
    await rule_set.add_rule(_rule("disabled", enabled=False))
    await rule_set.add_rule(_rule("other-type", notification_type=NotificationType.SCAN_COMPLETED))

    matched = await rule_set.match(payload_factory())

    assert [r.id for r in matched] == ["b", "a"]


async def test_rule_without_conditions_always_matches_its_type(
    rule_set: NotificationRuleSet,
    payload_factory: Callable[..., NotificationPayload],
) -> None:
    await rule_set.add_rule(_rule("catch-all"))

    matched = await rule_set.match(payload_factory(metadata={"anything": 1}))

    assert [r.id for r in matched] == ["catch-all"]


async def test_conditions_are_a_conjunction(
    rule_set: NotificationRuleSet,
    payload_factory: Callable[..., NotificationPayload],
) -> None:
    await rule_set.add_rule(
        _rule(
            "severe-aws",
            conditions=(
                NotificationCondition("metadata.severity", ConditionOperator.GREATER_THAN, 7),
                NotificationCondition("metadata.provider", ConditionOperator.EQUALS, "aws"),
            ),
        )
    )

    hit = await rule_set.match(payload_factory(metadata={"severity": 9, "provider": "aws"}))
    miss = await rule_set.match(payload_factory(metadata={"severity": 9, "provider": "gcp"}))

    assert [r.id for r in hit] == ["severe-aws"]
    assert miss == []


async def test_remove_rule(rule_set: NotificationRuleSet) -> None:
    await rule_set.add_rule(_rule("r1"))

    assert await rule_set.remove_rule("r1") is True
    assert await rule_set.remove_rule("r1") is False
    assert await rule_set.get_rule("r1") is None


async def test_replacing_a_rule_keeps_its_position(rule_set: NotificationRuleSet) -> None:
    await rule_set.add_rule(_rule("first"))
    await rule_set.add_rule(_rule("second"))
    await rule_set.add_rule(_rule("first", name="First, renamed"))

    rules = await rule_set.list_rules()

    assert [r.id for r in rules] == ["first", "second"]
    assert rules[0].name == "First, renamed"


async def test_add_rule_from_mapping(rule_set: NotificationRuleSet) -> None:
    rule = await rule_set.add_rule(
        {
            "id": "from-config",
            "name": "From config",
            "notification_type": "workflow_failure",
            "priority": "medium",
            "channels": ["slack"],
            "conditions": [{"field": "metadata.branch", "operator": "equals", "value": "main"}],
        }
    )

    assert rule.notification_type == NotificationType.WORKFLOW_FAILURE
    assert rule.channels == (DeliveryChannel.SLACK,)
    assert await rule_set.get_rule("from-config") == rule


async def test_add_malformed_rule_raises_synchronously(rule_set: NotificationRuleSet) -> None:
    with pytest.raises(InvalidRuleError) as exc_info:
        await rule_set.add_rule(
            {
                "id": "bad",
                "name": "Bad",
                "notification_type": "security_alert",
                "conditions": [{"field": "metadata.x", "operator": "roughly", "value": 1}],
            }
        )

    assert exc_info.value.rule_id == "bad"
    assert await rule_set.list_rules() == []


async def test_add_rule_rejects_other_types(rule_set: NotificationRuleSet) -> None:
    with pytest.raises(InvalidRuleError):
        await rule_set.add_rule(42)  # type: ignore[arg-type]
