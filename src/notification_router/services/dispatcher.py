# -*- coding: utf-8 -*-
"""DeliveryDispatcher: runs one pending delivery through the delivery-side checks.

Steps, first failure wins:
1. Channel registered and running, else failed "Channel <x> not available"
2. Rate limits: per (recipient, channel) window, the recipient's daily cap and the
   matched rules' hourly/daily limits, else failed "Rate limit exceeded ..."
3. Message length within the channel's max_message_length, else failed "... character limit ..."
4. Channel delivery under the concurrency semaphore, delivered or failed with the channel error

Every terminal outcome is saved to the delivery repository, recorded in metrics and
published on the event bus. Only step 4 failures are escalation-eligible.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence

import structlog
from structlog.contextvars import bound_contextvars

from notification_router.events.delivery_events import (
    NotificationDeliveredEvent,
    NotificationFailedEvent,
)
from notification_router.models.delivery import DeliveryChannel, NotificationState
from notification_router.services.rate_limiter import RateLimiter

if TYPE_CHECKING:
    from bubus import EventBus  # type: ignore[import-untyped]

    from notification_router.channels.base import BaseChannel
    from notification_router.channels.types import MessageRenderer
    from notification_router.config import Settings
    from notification_router.models.delivery import NotificationDelivery
    from notification_router.models.payload import NotificationPayload
    from notification_router.models.rule import NotificationRule, RateLimitConfig
    from notification_router.persistence.repositories.interfaces import IDeliveryRepository
    from notification_router.services.metrics import MetricsCollector

_HOUR = 3600.0
_DAY = 86400.0


@dataclass(frozen=True)
class DispatchResult:
    """Terminal delivery plus whether its failure came from the transport."""

    delivery: "NotificationDelivery"
    escalation_eligible: bool = False


@dataclass
class _RuleLimiters:
    config: "RateLimitConfig"
    hourly: RateLimiter
    daily: RateLimiter


class DeliveryDispatcher:
    """Channel registry, rate limiters and the delivery attempt itself."""

    _event_bus: Optional["EventBus"] = None

    def __init__(
        self,
        settings: "Settings",
        renderer: "MessageRenderer",
        delivery_repository: "IDeliveryRepository",
        metrics: "MetricsCollector",
        channels: Sequence["BaseChannel"] = (),
        event_bus: Optional[Any] = None,
        rate_limiter: Optional[RateLimiter] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            settings: Application settings (rate_limit, router.max_concurrency).
            renderer: Turns a payload into channel text.
            delivery_repository: Where terminal deliveries are saved.
            metrics: Receives every terminal delivered/failed outcome.
            channels: Initial channels; later ones replace earlier ones of the same type.
            event_bus: Optional; if set, emits delivered/failed events.
            rate_limiter: Per (recipient, channel) limiter; defaults to settings.rate_limit.
            clock: Monotonic clock shared by every limiter the dispatcher creates.
            get_logger: Logger factory.
            logger_name: Optional logger name.
        """
        self._renderer = renderer
        self._deliveries = delivery_repository
        self._metrics = metrics
        self._event_bus = event_bus
        self._clock = clock
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._channels: dict[DeliveryChannel, "BaseChannel"] = {}
        for channel in channels:
            self.register_channel(channel)
        self._rate_limiter = rate_limiter or RateLimiter(
            settings.rate_limit.capacity,
            settings.rate_limit.window_seconds,
            clock=clock,
        )
        # One rolling 24 h log per recipient; the cap is read from preferences on every call.
        self._daily_cap = RateLimiter(1, _DAY, clock=clock)
        self._rule_limiters: dict[str, _RuleLimiters] = {}
        self._semaphore = asyncio.Semaphore(settings.router.max_concurrency)

    # Channel registry

    def register_channel(self, channel: "BaseChannel") -> None:
        """Register (or replace) the channel for its channel_type."""
        previous = self._channels.get(channel.channel_type)
        self._channels[channel.channel_type] = channel
        self._logger.info(
            "channel_registered",
            channel=channel.channel_type.value,
            replaced=previous is not None,
        )

    def get_channel(self, channel: DeliveryChannel | str) -> Optional["BaseChannel"]:
        return self._channels.get(DeliveryChannel(channel))

    @property
    def channels(self) -> list["BaseChannel"]:
        return list(self._channels.values())

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._rate_limiter

    # Rate limits

    def _limiters_for_rule(self, rule: "NotificationRule") -> Optional[_RuleLimiters]:
        config = rule.rate_limit_config
        if config is None:
            return None
        entry = self._rule_limiters.get(rule.id)
        if entry is None or entry.config != config:
            cooldown = config.cooldown_period * 60.0
            entry = _RuleLimiters(
                config=config,
                hourly=RateLimiter(
                    config.max_per_hour, _HOUR, cooldown_seconds=cooldown, clock=self._clock
                ),
                daily=RateLimiter(
                    config.max_per_day, _DAY, cooldown_seconds=cooldown, clock=self._clock
                ),
            )
            self._rule_limiters[rule.id] = entry
        return entry

    def _check_rate_limits(
        self,
        delivery: "NotificationDelivery",
        rules: Sequence["NotificationRule"],
        daily_cap: Optional[int],
    ) -> Optional[str]:
        """Return a rate-limit error message, or None after recording one hit on every limiter."""
        pair_key = f"{delivery.recipient}:{delivery.channel.value}"
        if daily_cap is not None and daily_cap <= 0:
            return f"Rate limit exceeded: daily cap of {daily_cap} reached for {delivery.recipient}"

        checks: list[tuple[RateLimiter, str, Optional[int], str]] = [
            (
                self._rate_limiter,
                pair_key,
                None,
                f"Rate limit exceeded for {delivery.recipient} on {delivery.channel.value}",
            )
        ]
        if daily_cap is not None:
            checks.append(
                (
                    self._daily_cap,
                    delivery.recipient,
                    daily_cap,
                    f"Rate limit exceeded: daily cap of {daily_cap} reached for {delivery.recipient}",
                )
            )
        for rule in rules:
            limiters = self._limiters_for_rule(rule)
            if limiters is None:
                continue
            rule_key = f"{rule.id}:{pair_key}"
            checks.append(
                (limiters.hourly, rule_key, None, f"Rate limit exceeded: rule {rule.id} hourly limit")
            )
            checks.append(
                (limiters.daily, rule_key, None, f"Rate limit exceeded: rule {rule.id} daily limit")
            )

        blocked = [check for check in checks if check[0].remaining(check[1], check[2]) == 0]
        if blocked:
            for limiter, key, capacity, _ in blocked:
                # Arms the cooldown where configured; denied calls record nothing.
                limiter.is_allowed(key, capacity)
            return blocked[0][3]
        for limiter, key, capacity, msg in checks:
            if not limiter.is_allowed(key, capacity):
                return msg
        return None

    # Dispatch

    async def dispatch(
        self,
        delivery: "NotificationDelivery",
        payload: "NotificationPayload",
        rules: Sequence["NotificationRule"] = (),
        *,
        daily_cap: Optional[int] = None,
    ) -> DispatchResult:
        """Take a pending delivery to delivered or failed. Never raises for channel problems.

        Args:
            delivery: Pending delivery to run.
            payload: Payload the delivery belongs to.
            rules: Rules matched for payload (their rate limits apply).
            daily_cap: Recipient's max_notifications_per_day, or None to skip that check.
        """
        with bound_contextvars(
            notification_id=payload.id,
            delivery_id=delivery.id,
            channel=delivery.channel.value,
            escalation_level=delivery.escalation_level,
        ):
            channel = self._channels.get(delivery.channel)
            if channel is None or not channel.is_running:
                return await self._fail(delivery, f"Channel {delivery.channel.value} not available")

            rate_error = self._check_rate_limits(delivery, rules, daily_cap)
            if rate_error is not None:
                return await self._fail(delivery, rate_error)

            features = channel.get_supported_features()
            if len(payload.message) > features.max_message_length:
                return await self._fail(
                    delivery,
                    f"Message exceeds {delivery.channel.value} character limit "
                    f"({len(payload.message)} > {features.max_message_length})",
                )

            text = self._renderer.render(payload, rich=features.supports_rich_formatting)
            started = time.perf_counter()
            async with self._semaphore:
                delivery.mark_sending()
                try:
                    result = await channel.deliver(delivery.address, text)
                except Exception as e:
                    self._logger.exception("channel_deliver_raised", error_type=type(e).__name__)
                    return await self._fail(
                        delivery,
                        f"Channel error: {str(e) or type(e).__name__}",
                        transport=True,
                    )
            duration_ms = (time.perf_counter() - started) * 1000.0

            if result.success:
                delivery.mark_delivered()
                await self._record(delivery, duration_ms)
                self._emit_delivered(delivery)
                self._logger.debug("delivery_delivered", duration_ms=round(duration_ms, 2))
                return DispatchResult(delivery)
            return await self._fail(
                delivery,
                result.error_message or "Delivery failed",
                transport=True,
                duration_ms=duration_ms,
            )

    async def _fail(
        self,
        delivery: "NotificationDelivery",
        error_message: str,
        *,
        transport: bool = False,
        duration_ms: float = 0.0,
    ) -> DispatchResult:
        delivery.mark_failed(error_message)
        await self._record(delivery, duration_ms)
        self._emit_failed(delivery, escalation_eligible=transport)
        self._logger.info(
            "delivery_failed",
            error_message=error_message,
            transport_failure=transport,
        )
        return DispatchResult(delivery, escalation_eligible=transport)

    async def _record(self, delivery: "NotificationDelivery", duration_ms: float) -> None:
        await self._deliveries.save(delivery)
        self._metrics.record(delivery, duration_ms)

    def _emit_delivered(self, delivery: "NotificationDelivery") -> None:
        """Emit NotificationDeliveredEvent for realtime consumers."""
        if self._event_bus is None:
            return
        event = NotificationDeliveredEvent(
            notification_id=delivery.notification_id,
            delivery_id=delivery.id,
            channel=delivery.channel.value,
            recipient=delivery.recipient,
            escalation_level=delivery.escalation_level,
            delivered_at=delivery.delivered_at,
        )
        self._event_bus.dispatch(event)

    def _emit_failed(self, delivery: "NotificationDelivery", *, escalation_eligible: bool) -> None:
        """Emit NotificationFailedEvent for realtime consumers."""
        if self._event_bus is None or delivery.state != NotificationState.FAILED:
            return
        event = NotificationFailedEvent(
            notification_id=delivery.notification_id,
            delivery_id=delivery.id,
            channel=delivery.channel.value,
            recipient=delivery.recipient,
            error_message=delivery.error_message or "",
            attempts=delivery.attempts,
            escalation_level=delivery.escalation_level,
            escalation_eligible=escalation_eligible,
        )
        self._event_bus.dispatch(event)

    async def initialize(self) -> None:
        for channel in self._channels.values():
            await channel.initialize()

    async def shutdown(self) -> None:
        for channel in self._channels.values():
            try:
                await channel.shutdown()
            except Exception:
                self._logger.exception("channel_shutdown_failed", channel=channel.channel_type.value)
