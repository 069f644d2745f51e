# -*- coding: utf-8 -*-
"""Unit tests for EscalationScheduler driven through the router."""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from notification_router.events import NotificationEscalatedEvent
from notification_router.models.delivery import DeliveryChannel, NotificationState
from notification_router.models.payload import NotificationPayload, NotificationPriority, NotificationType
from notification_router.models.preferences import ChannelPreference, UserPreferences
from notification_router.models.rule import EscalationConfig, NotificationRule
from notification_router.services.escalation import escalation_rule


def _escalating_rule(
    *,
    max_escalations: int = 2,
    delay_minutes: float = 0,
    channels: tuple[DeliveryChannel, ...] = (DeliveryChannel.EMAIL,),
    recipients: tuple[str, ...] = (),
) -> NotificationRule:
    return NotificationRule(
        id="escalate-security",
        name="Escalate security alerts",
        notification_type=NotificationType.SECURITY_ALERT,
        priority=NotificationPriority.HIGH,
        channels=(DeliveryChannel.EMAIL,),
        escalation_config=EscalationConfig(
            enabled=True,
            escalation_delay=delay_minutes,
            max_escalations=max_escalations,
            escalation_channels=channels,
            escalation_recipients=recipients,
        ),
    )


def test_escalation_rule_picks_first_enabled() -> None:
    plain = replace(_escalating_rule(), id="plain", escalation_config=None)
    disabled = replace(
        _escalating_rule(),
        id="disabled",
        escalation_config=EscalationConfig(
            enabled=False, escalation_delay=0, max_escalations=1, escalation_channels=()
        ),
    )
    enabled = _escalating_rule()

    assert escalation_rule([plain, disabled, enabled]) is enabled
    assert escalation_rule([plain, disabled]) is None


async def test_escalation_stops_at_max_escalations(
    router_stack_factory: Callable[..., Any],
    channel_factory: Callable[..., Any],
    payload_factory: Callable[..., NotificationPayload],
) -> None:
    stack = router_stack_factory(channels=[channel_factory("email", failure_rate=1.0)])
    await stack.router.add_notification_rule(_escalating_rule(max_escalations=2))
    payload = payload_factory()

    deliveries = await stack.router.send_notification(payload, ["alice@example.com"], ["email"])
    await stack.router.wait_idle()

    assert [d.state for d in deliveries] == [NotificationState.FAILED]
    status = await stack.router.get_notification_status(payload.id)
    assert sorted(d.escalation_level for d in status) == [0, 1, 2]
    assert all(d.state == NotificationState.FAILED for d in status)
    assert all(d.attempts == 1 for d in status)
    by_level = {d.escalation_level: d for d in status}
    assert by_level[1].parent_delivery_id == by_level[0].id
    assert by_level[2].parent_delivery_id == by_level[1].id
    assert len(stack.event_bus.of_type(NotificationEscalatedEvent)) == 2
    assert stack.escalation.armed_count(payload.id) == 0


async def test_zero_max_escalations_never_escalates(
    router_stack_factory: Callable[..., Any],
    channel_factory: Callable[..., Any],
    payload_factory: Callable[..., NotificationPayload],
) -> None:
    stack = router_stack_factory(channels=[channel_factory("email", failure_rate=1.0)])
    await stack.router.add_notification_rule(_escalating_rule(max_escalations=0))
    payload = payload_factory()

    await stack.router.send_notification(payload, ["alice@example.com"], ["email"])
    await stack.router.wait_idle()

    assert len(await stack.router.get_notification_status(payload.id)) == 1


async def test_escalation_targets_configured_recipients_and_bypasses_preferences(
    router_stack_factory: Callable[..., Any],
    channel_factory: Callable[..., Any],
    payload_factory: Callable[..., NotificationPayload],
) -> None:
    stack = router_stack_factory(
        channels=[channel_factory("email", failure_rate=1.0), channel_factory("slack")]
    )
    oncall = UserPreferences.defaults("oncall").with_channel(
        DeliveryChannel.SLACK, ChannelPreference(enabled=False, address="@oncall")
    )
    await stack.router.update_user_preferences(oncall)
    await stack.router.add_notification_rule(
        _escalating_rule(channels=(DeliveryChannel.SLACK,), recipients=("oncall",))
    )
    payload = payload_factory()

    await stack.router.send_notification(payload, ["alice@example.com"], ["email"])
    await stack.router.wait_idle()

    status = await stack.router.get_notification_status(payload.id)
    escalated = [d for d in status if d.escalation_level == 1]
    assert len(escalated) == 1
    assert escalated[0].recipient == "oncall"
    assert escalated[0].channel == DeliveryChannel.SLACK
    assert escalated[0].address == "@oncall"
    assert escalated[0].state == NotificationState.DELIVERED


async def test_cancel_dismisses_pending_escalations(
    router_stack_factory: Callable[..., Any],
    channel_factory: Callable[..., Any],
    payload_factory: Callable[..., NotificationPayload],
) -> None:
    stack = router_stack_factory(
        channels=[channel_factory("email", failure_rate=1.0)],
        delay_unit_seconds=60.0,
    )
    await stack.router.add_notification_rule(_escalating_rule(delay_minutes=10))
    payload = payload_factory()

    await stack.router.send_notification(payload, ["alice@example.com"], ["email"])
    assert stack.escalation.armed_count(payload.id) == 1
    pending = [d for d in await stack.router.get_notification_status(payload.id) if d.escalation_level == 1]
    assert [d.state for d in pending] == [NotificationState.PENDING]

    assert await stack.router.cancel_notification(payload.id) is True

    assert pending[0].state == NotificationState.DISMISSED
    assert stack.escalation.armed_count(payload.id) == 0
    assert stack.scheduler.pending_count() == 0
    await stack.router.shutdown()


async def test_rate_limited_failure_does_not_escalate(
    router_stack_factory: Callable[..., Any],
    channel_factory: Callable[..., Any],
    payload_factory: Callable[..., NotificationPayload],
) -> None:
    stack = router_stack_factory(channels=[channel_factory("email")], capacity=1)
    await stack.router.add_notification_rule(_escalating_rule())

    await stack.router.send_notification(payload_factory(), ["alice@example.com"], ["email"])
    second = payload_factory()
    deliveries = await stack.router.send_notification(second, ["alice@example.com"], ["email"])
    await stack.router.wait_idle()

    assert deliveries[0].state == NotificationState.FAILED
    assert "Rate limit" in (deliveries[0].error_message or "")
    assert len(await stack.router.get_notification_status(second.id)) == 1
    assert stack.event_bus.of_type(NotificationEscalatedEvent) == []


async def test_recipient_without_escalation_is_not_escalated(
    router_stack_factory: Callable[..., Any],
    channel_factory: Callable[..., Any],
    payload_factory: Callable[..., NotificationPayload],
) -> None:
    stack = router_stack_factory(channels=[channel_factory("email", failure_rate=1.0)])
    alice = UserPreferences.defaults("alice@example.com")
    await stack.router.update_user_preferences(
        replace(alice, global_settings=replace(alice.global_settings, enable_escalation=False))
    )
    await stack.router.add_notification_rule(_escalating_rule())
    payload = payload_factory()

    await stack.router.send_notification(payload, ["alice@example.com"], ["email"])
    await stack.router.wait_idle()

    assert len(await stack.router.get_notification_status(payload.id)) == 1


async def test_escalation_disabled_in_settings(
    router_stack_factory: Callable[..., Any],
    channel_factory: Callable[..., Any],
    payload_factory: Callable[..., NotificationPayload],
) -> None:
    stack = router_stack_factory(
        channels=[channel_factory("email", failure_rate=1.0)],
        escalation_enabled=False,
    )
    await stack.router.add_notification_rule(_escalating_rule())
    payload = payload_factory()

    await stack.router.send_notification(payload, ["alice@example.com"], ["email"])
    await stack.router.wait_idle()

    assert len(await stack.router.get_notification_status(payload.id)) == 1


async def test_failing_channels_escalate_once_per_level(
    router_stack_factory: Callable[..., Any],
    channel_factory: Callable[..., Any],
    payload_factory: Callable[..., NotificationPayload],
) -> None:
    stack = router_stack_factory(
        channels=[
            channel_factory("email", failure_rate=1.0),
            channel_factory("in_app", failure_rate=1.0),
        ]
    )
    escalation_channels = (DeliveryChannel.EMAIL, DeliveryChannel.IN_APP)
    await stack.router.add_notification_rule(
        _escalating_rule(max_escalations=3, channels=escalation_channels)
    )
    payload = payload_factory()

    await stack.router.send_notification(payload, ["alice@example.com"], ["email", "in_app"])
    await stack.router.wait_idle()

    status = await stack.router.get_notification_status(payload.id)
    escalated = [d for d in status if d.escalation_level > 0]
    assert len(escalated) <= 3 * len(escalation_channels) * 1
    assert Counter(d.escalation_level for d in status) == {0: 2, 1: 2, 2: 2, 3: 2}
    targets = [(d.escalation_level, d.channel, d.recipient) for d in escalated]
    assert len(targets) == len(set(targets))
    assert len(stack.event_bus.of_type(NotificationEscalatedEvent)) == 3


async def test_escalation_after_scheduler_shutdown_leaves_nothing_pending(
    router_stack_factory: Callable[..., Any],
    channel_factory: Callable[..., Any],
    payload_factory: Callable[..., NotificationPayload],
) -> None:
    stack = router_stack_factory(channels=[channel_factory("email", failure_rate=1.0)])
    await stack.router.add_notification_rule(_escalating_rule())
    await stack.scheduler.shutdown()
    payload = payload_factory()

    deliveries = await stack.router.send_notification(payload, ["alice@example.com"], ["email"])

    assert [d.state for d in deliveries] == [NotificationState.FAILED]
    status = await stack.router.get_notification_status(payload.id)
    assert [d.state for d in status if d.escalation_level == 1] == [NotificationState.DISMISSED]
    assert await stack.deliveries.list_pending_by_notification(payload.id) == []
    assert stack.escalation.armed_count(payload.id) == 0
    assert stack.event_bus.of_type(NotificationEscalatedEvent) == []
