# -*- coding: utf-8 -*-
"""NotificationRouter: top-level entry point for sending, scheduling and configuring notifications.

For every (recipient, channel) pair the router applies RoutingPolicy (preferences and
digest routing), hands surviving pairs to DeliveryDispatcher concurrently and feeds
transport failures to EscalationScheduler. Filtered pairs produce no delivery.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping, Optional, Sequence, TypeVar
from uuid import uuid4

import structlog
from structlog.contextvars import bound_contextvars

from notification_router.exceptions import SchedulerShutdown
from notification_router.models.delivery import (
    DeliveryChannel,
    NotificationDelivery,
    NotificationState,
)
from notification_router.models.digest import DigestFrequency
from notification_router.services.routing_policy import RoutingOutcome, RoutingPolicy

if TYPE_CHECKING:
    from notification_router.channels.base import BaseChannel
    from notification_router.config import Settings
    from notification_router.models.digest import NotificationDigest
    from notification_router.models.metrics import NotificationMetrics
    from notification_router.models.payload import NotificationPayload
    from notification_router.models.preferences import UserPreferences
    from notification_router.models.rule import NotificationRule
    from notification_router.persistence.repositories.interfaces import IDeliveryRepository
    from notification_router.scheduling.base import ITaskScheduler
    from notification_router.services.digest import DigestAccumulator
    from notification_router.services.dispatcher import DeliveryDispatcher
    from notification_router.services.escalation import EscalationScheduler
    from notification_router.services.metrics import MetricsCollector, TimeRange
    from notification_router.services.preference_store import UserPreferenceStore
    from notification_router.services.rule_set import NotificationRuleSet


T = TypeVar("T")


def _unique(items: Iterable[T]) -> list[T]:
    return list(dict.fromkeys(items))


@dataclass
class _ScheduledSend:
    schedule_id: str
    payload: "NotificationPayload"
    recipients: list[str]
    channels: list[DeliveryChannel]
    send_at: datetime
    pending: dict[tuple[str, DeliveryChannel], NotificationDelivery] = field(default_factory=dict)


class NotificationRouter:
    """Orchestrates preferences, rules, rate limits, channels, escalation and digests."""

    def __init__(
        self,
        settings: "Settings",
        dispatcher: "DeliveryDispatcher",
        preference_store: "UserPreferenceStore",
        rule_set: "NotificationRuleSet",
        digest_accumulator: "DigestAccumulator",
        metrics: "MetricsCollector",
        escalation: "EscalationScheduler",
        scheduler: "ITaskScheduler",
        delivery_repository: "IDeliveryRepository",
        policy: Optional[RoutingPolicy] = None,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the router.

        Args:
            settings: Application settings (router defaults, digest frequency).
            dispatcher: Delivery-side checks and channel calls.
            preference_store: Per-user preferences.
            rule_set: Routing rules.
            digest_accumulator: Pending digest payloads.
            metrics: Delivery outcome metrics.
            escalation: Escalation timers.
            scheduler: Timer backend for scheduled sends.
            delivery_repository: Delivery records for status lookups and cancellation.
            policy: Optional; defaults to RoutingPolicy().
            get_logger: Logger factory.
            logger_name: Optional logger name.
        """
        self._settings = settings
        self._dispatcher = dispatcher
        self._preferences = preference_store
        self._rules = rule_set
        self._digests = digest_accumulator
        self._metrics = metrics
        self._escalation = escalation
        self._scheduler = scheduler
        self._deliveries = delivery_repository
        self._policy = policy or RoutingPolicy()
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._scheduled: dict[str, _ScheduledSend] = {}

    # Lifecycle

    async def initialize(self) -> None:
        await self._dispatcher.initialize()
        self._logger.info(
            "notification_router_started",
            channels=[c.value for c in self.registered_channels()],
        )

    async def shutdown(self) -> None:
        await self._scheduler.shutdown()
        await self._dispatcher.shutdown()
        self._logger.info("notification_router_stopped", cancelled_schedules=len(self._scheduled))
        self._scheduled.clear()

    async def wait_idle(self) -> None:
        """Wait until no scheduled send or escalation timer is waiting or running."""
        await self._scheduler.join()

    # Sending

    async def send_notification(
        self,
        payload: "NotificationPayload",
        recipients: Sequence[str],
        channels: Sequence[DeliveryChannel | str],
    ) -> list[NotificationDelivery]:
        """Route payload to every (recipient, channel) pair and wait for the outcomes.

        Returns:
            One delivery per pair that was not filtered, each delivered or failed.
            Filtered and digest-routed pairs are absent.

        Raises:
            ValueError: If a channel name is unknown.
        """
        return await self._send(payload, recipients, [DeliveryChannel(c) for c in channels])

    async def _send(
        self,
        payload: "NotificationPayload",
        recipients: Sequence[str],
        channels: Sequence[DeliveryChannel],
        scheduled: Optional[Mapping[tuple[str, DeliveryChannel], NotificationDelivery]] = None,
    ) -> list[NotificationDelivery]:
        recipients = _unique(r.strip() for r in recipients if r and r.strip())
        channels = _unique(channels)
        scheduled = scheduled or {}

        with bound_contextvars(notification_id=payload.id, notification_type=payload.type.value):
            if payload.is_expired():
                self._logger.info("notification_expired", expires_at=str(payload.expires_at))
                await self._dismiss(scheduled.values())
                return []

            rules = await self._rules.match(payload)
            now = datetime.now(UTC)
            pairs: list[tuple[NotificationDelivery, "UserPreferences"]] = []
            dismissed: list[NotificationDelivery] = []
            skipped = 0
            digested = 0
            for recipient in recipients:
                preferences = await self._preferences.get(recipient)
                for channel in channels:
                    decision = self._policy.evaluate(payload, preferences, channel, rules, now=now)
                    existing = scheduled.get((recipient, channel))
                    if decision.outcome == RoutingOutcome.DIGEST and decision.digest_frequency:
                        await self._digests.accumulate(recipient, payload, decision.digest_frequency)
                        digested += 1
                    if not decision.should_deliver:
                        if decision.outcome == RoutingOutcome.SKIP:
                            skipped += 1
                        if existing is not None:
                            dismissed.append(existing)
                        self._logger.debug(
                            "notification_pair_filtered",
                            recipient=recipient,
                            channel=channel.value,
                            reason=decision.reason,
                        )
                        continue
                    delivery = existing or NotificationDelivery.create(
                        notification_id=payload.id,
                        channel=channel,
                        recipient=recipient,
                    )
                    delivery.address = preferences.address_for(channel)
                    pairs.append((delivery, preferences))

            await self._dismiss(dismissed)
            deliveries = list(
                await asyncio.gather(*(self._process(d, payload, rules, p) for d, p in pairs))
            )
            delivered = sum(1 for d in deliveries if d.state == NotificationState.DELIVERED)
            self._logger.info(
                "notification_sent",
                recipients=len(recipients),
                channels=len(channels),
                matched_rules=[r.id for r in rules],
                delivered=delivered,
                failed=len(deliveries) - delivered,
                skipped=skipped,
                digested=digested,
            )
            return deliveries

    async def _process(
        self,
        delivery: NotificationDelivery,
        payload: "NotificationPayload",
        rules: Sequence["NotificationRule"],
        preferences: "UserPreferences",
    ) -> NotificationDelivery:
        try:
            result = await self._dispatcher.dispatch(
                delivery,
                payload,
                rules,
                daily_cap=preferences.global_settings.max_notifications_per_day,
            )
            if result.escalation_eligible:
                await self._escalation.maybe_escalate(result.delivery, payload, rules)
        except Exception:
            self._logger.exception(
                "notification_pair_error",
                delivery_id=delivery.id,
                recipient=delivery.recipient,
                channel=delivery.channel.value,
            )
            if not delivery.is_terminal:
                delivery.mark_failed("Internal routing error")
                await self._deliveries.save(delivery)
        return delivery

    async def _dismiss(self, deliveries: Iterable[NotificationDelivery]) -> int:
        count = 0
        for delivery in deliveries:
            if delivery.state != NotificationState.PENDING:
                continue
            delivery.mark_dismissed()
            await self._deliveries.save(delivery)
            count += 1
        return count

    # Scheduling

    async def schedule_notification(
        self,
        payload: "NotificationPayload",
        send_at: datetime,
        *,
        recipients: Optional[Sequence[str]] = None,
        channels: Optional[Sequence[DeliveryChannel | str]] = None,
    ) -> str:
        """Send payload at send_at. Returns a schedule id usable with cancel_notification().

        Recipients default to router.default_recipients. Channels default to the
        channels of the rules matching payload, else router.default_channels. One
        pending delivery per pair is stored right away; pairs filtered at send time
        end up dismissed.

        Raises:
            ValueError: If send_at is naive.
            SchedulerShutdown: If the router has been shut down; nothing stays pending.
        """
        if send_at.tzinfo is None:
            raise ValueError("send_at must be timezone-aware")
        if recipients is None:
            recipients = self._settings.router.default_recipients
        if channels is None:
            rules = await self._rules.match(payload)
            channels = _unique(c for r in rules for c in r.channels) or self._settings.router.default_channels
        resolved_channels = _unique(DeliveryChannel(c) for c in channels)
        resolved_recipients = _unique(r.strip() for r in recipients if r and r.strip())

        entry = _ScheduledSend(
            schedule_id=f"sched_{uuid4().hex}",
            payload=payload,
            recipients=resolved_recipients,
            channels=resolved_channels,
            send_at=send_at,
        )
        for recipient in resolved_recipients:
            for channel in resolved_channels:
                delivery = NotificationDelivery.create(
                    notification_id=payload.id,
                    channel=channel,
                    recipient=recipient,
                    scheduled_for=send_at,
                )
                await self._deliveries.save(delivery)
                entry.pending[(recipient, channel)] = delivery

        delay = (send_at - datetime.now(UTC)).total_seconds()
        self._scheduled[entry.schedule_id] = entry

        async def fire() -> None:
            await self._fire_scheduled(entry.schedule_id)

        try:
            self._scheduler.schedule(f"send:{entry.schedule_id}", delay, fire)
        except SchedulerShutdown:
            del self._scheduled[entry.schedule_id]
            await self._dismiss(entry.pending.values())
            raise
        self._logger.info(
            "notification_scheduled",
            schedule_id=entry.schedule_id,
            notification_id=payload.id,
            send_at=send_at.isoformat(),
            recipients=len(resolved_recipients),
            channels=[c.value for c in resolved_channels],
        )
        return entry.schedule_id

    async def _fire_scheduled(self, schedule_id: str) -> None:
        entry = self._scheduled.pop(schedule_id, None)
        if entry is None:
            return
        pending = {k: d for k, d in entry.pending.items() if d.state == NotificationState.PENDING}
        if not pending:
            return
        await self._send(
            entry.payload,
            entry.recipients,
            entry.channels,
            scheduled=pending,
        )

    async def cancel_notification(self, notification_id: str) -> bool:
        """Cancel before sending.

        Accepts a schedule id (cancels that scheduled send) or a payload id (cancels
        every scheduled send of the payload and its armed escalations). Pending
        deliveries become dismissed; in-flight deliveries are not affected.

        Returns:
            True if anything was cancelled or dismissed.
        """
        targets = [
            entry
            for entry in self._scheduled.values()
            if entry.schedule_id == notification_id or entry.payload.id == notification_id
        ]
        dismissed = 0
        for entry in targets:
            self._scheduler.cancel(f"send:{entry.schedule_id}")
            del self._scheduled[entry.schedule_id]
            dismissed += await self._dismiss(entry.pending.values())
        escalations = await self._escalation.cancel(notification_id)
        cancelled = bool(targets) or escalations > 0
        self._logger.info(
            "notification_cancelled" if cancelled else "notification_cancel_noop",
            notification_id=notification_id,
            schedules=len(targets),
            dismissed=dismissed + escalations,
        )
        return cancelled

    def scheduled_ids(self) -> list[str]:
        return list(self._scheduled)

    async def get_notification_status(self, notification_id: str) -> list[NotificationDelivery]:
        """Every delivery recorded for a payload id (originals, escalations, scheduled)."""
        return await self._deliveries.list_by_notification(notification_id)

    # Preferences and rules

    async def get_user_preferences(self, user_id: str) -> "UserPreferences":
        return await self._preferences.get(user_id)

    async def update_user_preferences(self, preferences: "UserPreferences") -> "UserPreferences":
        return await self._preferences.upsert(preferences)

    async def add_notification_rule(
        self, rule: "NotificationRule | Mapping[str, Any]"
    ) -> "NotificationRule":
        return await self._rules.add_rule(rule)

    async def remove_notification_rule(self, rule_id: str) -> bool:
        return await self._rules.remove_rule(rule_id)

    async def list_notification_rules(self) -> list["NotificationRule"]:
        return await self._rules.list_rules()

    # Digests

    def _frequency(self, frequency: Optional[DigestFrequency | str]) -> DigestFrequency:
        return DigestFrequency(frequency or self._settings.digest.default_frequency)

    async def accumulate_for_digest(
        self,
        user_id: str,
        payload: "NotificationPayload",
        frequency: Optional[DigestFrequency | str] = None,
    ) -> bool:
        return await self._digests.accumulate(user_id, payload, self._frequency(frequency))

    async def generate_digest(
        self,
        user_id: str,
        frequency: Optional[DigestFrequency | str] = None,
    ) -> "NotificationDigest":
        return await self._digests.generate_digest(user_id, self._frequency(frequency))

    # Metrics and channels

    async def get_notification_metrics(
        self, time_range: Optional["TimeRange"] = None
    ) -> "NotificationMetrics":
        return self._metrics.snapshot(time_range)

    def register_channel(self, channel: "BaseChannel") -> None:
        self._dispatcher.register_channel(channel)

    def registered_channels(self) -> list[DeliveryChannel]:
        return [c.channel_type for c in self._dispatcher.channels]
