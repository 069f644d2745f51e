# -*- coding: utf-8 -*-
"""EscalationScheduler: delayed re-dispatch of transport failures.

A failed delivery escalates when a matched rule has escalation enabled, the
original recipient allows escalation and the delivery's level is below the rule's
max_escalations. Each notification has one escalation batch per level, holding at
most one pending delivery per (escalation channel, escalation recipient) pair, and one
timer per level; when it fires the batch is dispatched, skipping preference filters.
A failure at the new level may escalate again until the bound is reached.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence

import structlog
from structlog.contextvars import bound_contextvars

from notification_router.events.delivery_events import NotificationEscalatedEvent
from notification_router.exceptions import SchedulerShutdown
from notification_router.models.delivery import NotificationDelivery, NotificationState

if TYPE_CHECKING:
    from bubus import EventBus  # type: ignore[import-untyped]

    from notification_router.config import Settings
    from notification_router.models.payload import NotificationPayload
    from notification_router.models.rule import NotificationRule
    from notification_router.persistence.repositories.interfaces import IDeliveryRepository
    from notification_router.scheduling.base import ITaskScheduler
    from notification_router.services.dispatcher import DeliveryDispatcher
    from notification_router.services.preference_store import UserPreferenceStore


def escalation_rule(rules: Sequence["NotificationRule"]) -> Optional["NotificationRule"]:
    """First rule (in match order) with escalation enabled."""
    for rule in rules:
        if rule.escalation_config is not None and rule.escalation_config.enabled:
            return rule
    return None


class EscalationScheduler:
    """Arms, fires and cancels escalation timers."""

    _event_bus: Optional["EventBus"] = None

    def __init__(
        self,
        settings: "Settings",
        dispatcher: "DeliveryDispatcher",
        scheduler: "ITaskScheduler",
        delivery_repository: "IDeliveryRepository",
        preference_store: "UserPreferenceStore",
        event_bus: Optional[Any] = None,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._enabled = settings.escalation.enabled
        self._delay_unit = settings.escalation.delay_unit_seconds
        self._dispatcher = dispatcher
        self._scheduler = scheduler
        self._deliveries = delivery_repository
        self._preferences = preference_store
        self._event_bus = event_bus
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._timers: dict[str, set[str]] = {}
        """notification_id -> timer keys still armed."""
        self._lock = asyncio.Lock()

    async def maybe_escalate(
        self,
        failed: NotificationDelivery,
        payload: "NotificationPayload",
        rules: Sequence["NotificationRule"],
    ) -> list[NotificationDelivery]:
        """Escalate a transport failure if policy allows; returns the new pending deliveries.

        A notification has at most one escalation batch per level. Failures at the same
        level join that batch, and a (channel, recipient) target already present at the
        next level is never created again.
        """
        if not self._enabled or failed.state != NotificationState.FAILED:
            return []
        rule = escalation_rule(rules)
        if rule is None or rule.escalation_config is None:
            return []
        config = rule.escalation_config
        if failed.escalation_level >= config.max_escalations:
            self._logger.info(
                "escalation_exhausted",
                notification_id=payload.id,
                delivery_id=failed.id,
                escalation_level=failed.escalation_level,
                max_escalations=config.max_escalations,
            )
            return []
        if failed.escalation_level == 0:
            origin = await self._preferences.get(failed.recipient)
            if not origin.global_settings.enable_escalation:
                return []

        level = failed.escalation_level + 1
        key = f"escalation:{payload.id}:{level}"
        delay = config.escalation_delay * self._delay_unit
        async with self._lock:
            existing = {
                (d.channel, d.recipient)
                for d in await self._deliveries.list_by_notification(payload.id)
                if d.escalation_level == level and d.state != NotificationState.DISMISSED
            }
            scheduled_for = datetime.now(UTC) + timedelta(seconds=delay)
            pending: list[NotificationDelivery] = []
            for recipient in config.escalation_recipients or (failed.recipient,):
                preferences = await self._preferences.get(recipient)
                for channel in config.escalation_channels:
                    if (channel, recipient) in existing:
                        continue
                    delivery = NotificationDelivery.create(
                        notification_id=payload.id,
                        channel=channel,
                        recipient=recipient,
                        address=preferences.address_for(channel),
                        escalation_level=level,
                        parent_delivery_id=failed.id,
                        scheduled_for=scheduled_for,
                    )
                    await self._deliveries.save(delivery)
                    pending.append(delivery)
            if not pending:
                return []
            if key not in self._timers.get(payload.id, ()):
                if not await self._arm(key, delay, payload, rules, level, pending):
                    return []

        self._logger.info(
            "escalation_scheduled",
            notification_id=payload.id,
            parent_delivery_id=failed.id,
            rule_id=rule.id,
            escalation_level=level,
            delay_seconds=delay,
            deliveries=len(pending),
        )
        self._emit_escalated(failed, pending, scheduled_for)
        return pending

    async def _arm(
        self,
        key: str,
        delay: float,
        payload: "NotificationPayload",
        rules: Sequence["NotificationRule"],
        level: int,
        pending: list[NotificationDelivery],
    ) -> bool:
        """Schedule the level timer; on a stopped scheduler dismiss pending and return False."""

        async def fire() -> None:
            await self._fire(key, payload, rules, level)

        try:
            self._scheduler.schedule(key, delay, fire)
        except SchedulerShutdown:
            self._logger.warning(
                "escalation_scheduler_stopped",
                notification_id=payload.id,
                escalation_level=level,
                dismissed=len(pending),
            )
            for delivery in pending:
                delivery.mark_dismissed()
                await self._deliveries.save(delivery)
            return False
        self._timers.setdefault(payload.id, set()).add(key)
        return True

    async def _fire(
        self,
        key: str,
        payload: "NotificationPayload",
        rules: Sequence["NotificationRule"],
        level: int,
    ) -> None:
        async with self._lock:
            self._discard_timer(payload.id, key)
            deliveries = [
                d
                for d in await self._deliveries.list_pending_by_notification(payload.id)
                if d.escalation_level == level
            ]
        if not deliveries:
            return
        with bound_contextvars(escalation_timer=key):
            self._logger.info("escalation_fired", notification_id=payload.id, deliveries=len(deliveries))
            results = await asyncio.gather(
                *(self._dispatcher.dispatch(d, payload, rules) for d in deliveries)
            )
            for result in results:
                if result.escalation_eligible:
                    await self.maybe_escalate(result.delivery, payload, rules)

    def _discard_timer(self, notification_id: str, key: str) -> None:
        keys = self._timers.get(notification_id)
        if keys is None:
            return
        keys.discard(key)
        if not keys:
            del self._timers[notification_id]

    async def cancel(self, notification_id: str) -> int:
        """Disarm every timer of notification_id and dismiss its pending escalation deliveries.

        Returns:
            Number of deliveries moved to dismissed.
        """
        dismissed = 0
        async with self._lock:
            for key in self._timers.pop(notification_id, set()):
                self._scheduler.cancel(key)
            for delivery in await self._deliveries.list_pending_by_notification(notification_id):
                if delivery.escalation_level == 0:
                    continue
                delivery.mark_dismissed()
                await self._deliveries.save(delivery)
                dismissed += 1
        if dismissed:
            self._logger.info("escalation_cancelled", notification_id=notification_id, dismissed=dismissed)
        return dismissed

    def armed_count(self, notification_id: str) -> int:
        return len(self._timers.get(notification_id, ()))

    def _emit_escalated(
        self,
        failed: NotificationDelivery,
        pending: list[NotificationDelivery],
        scheduled_for: datetime,
    ) -> None:
        """Emit NotificationEscalatedEvent for realtime consumers."""
        if self._event_bus is None:
            return
        event = NotificationEscalatedEvent(
            notification_id=failed.notification_id,
            parent_delivery_id=failed.id,
            escalation_level=failed.escalation_level + 1,
            channels=sorted({d.channel.value for d in pending}),
            recipients=sorted({d.recipient for d in pending}),
            scheduled_for=scheduled_for,
        )
        self._event_bus.dispatch(event)
