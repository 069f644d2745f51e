# -*- coding: utf-8 -*-
"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Optional

import pytest
from bubus import EventBus  # type: ignore[import-untyped]

from notification_router.channels import SimulatedChannel
from notification_router.channels.base import BaseChannel
from notification_router.events import create_event_bus
from notification_router.models.delivery import DeliveryChannel
from notification_router.models.payload import (
    NotificationPayload,
    NotificationPriority,
    NotificationType,
)
from notification_router.models.preferences import ChannelPreference, UserPreferences
from notification_router.persistence.repositories.in_memory import (
    InMemoryDeliveryRepository,
    InMemoryNotificationRuleRepository,
    InMemoryUserPreferenceRepository,
)
from notification_router.rendering import PayloadMessageRenderer
from notification_router.scheduling import AsyncioTaskScheduler
from notification_router.services import (
    DeliveryDispatcher,
    DigestAccumulator,
    EscalationScheduler,
    MetricsCollector,
    NotificationRouter,
    NotificationRuleSet,
    UserPreferenceStore,
)


class FakeEventBus:
    """Minimal event bus fake for unit tests."""

    def __init__(self) -> None:
        self.handlers: dict[str, list[Any]] = {}
        self.dispatched: list[Any] = []

    def on(self, event_type: type[Any], handler: Any) -> None:
        key = event_type.__name__
        self.handlers.setdefault(key, []).append(handler)

    def dispatch(self, event: Any) -> None:
        self.dispatched.append(event)

    def of_type(self, event_type: type[Any]) -> list[Any]:
        return [e for e in self.dispatched if isinstance(e, event_type)]


def make_settings(
    *,
    capacity: int = 60,
    window_seconds: float = 60.0,
    max_concurrency: int = 100,
    escalation_enabled: bool = True,
    delay_unit_seconds: float = 0.001,
    default_channels: Optional[list[str]] = None,
    default_recipients: Optional[list[str]] = None,
    default_frequency: str = "daily",
) -> Any:
    """Build the minimal settings object the services read."""
    return SimpleNamespace(
        rate_limit=SimpleNamespace(capacity=capacity, window_seconds=window_seconds),
        router=SimpleNamespace(
            max_concurrency=max_concurrency,
            default_channels=default_channels or ["email", "in_app"],
            default_recipients=default_recipients or ["admin@example.com"],
        ),
        escalation=SimpleNamespace(enabled=escalation_enabled, delay_unit_seconds=delay_unit_seconds),
        digest=SimpleNamespace(default_frequency=default_frequency),
    )


def instant_channel(channel: DeliveryChannel | str, **kwargs: Any) -> SimulatedChannel:
    """Simulated channel with no artificial delay."""
    kwargs.setdefault("delivery_delay", 0.0)
    return SimulatedChannel(channel, **kwargs)


@dataclass
class RouterStack:
    """Router plus the collaborators tests want to inspect."""

    router: NotificationRouter
    dispatcher: DeliveryDispatcher
    escalation: EscalationScheduler
    scheduler: AsyncioTaskScheduler
    metrics: MetricsCollector
    deliveries: InMemoryDeliveryRepository
    preferences: UserPreferenceStore
    rules: NotificationRuleSet
    digests: DigestAccumulator
    event_bus: FakeEventBus
    channels: dict[DeliveryChannel, BaseChannel]


@pytest.fixture
def now_utc() -> datetime:
    """Stable UTC timestamp for deterministic assertions."""
    return datetime(2026, 2, 13, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings() -> Any:
    return make_settings()


@pytest.fixture
def payload_factory() -> Callable[..., NotificationPayload]:
    """Build NotificationPayload with sensible defaults and easy overrides."""

    def _build(**overrides: Any) -> NotificationPayload:
        return NotificationPayload.create(
            type=overrides.pop("type", NotificationType.SECURITY_ALERT),
            priority=overrides.pop("priority", NotificationPriority.HIGH),
            title=overrides.pop("title", "Secret detected in repository"),
            message=overrides.pop("message", "A hardcoded AWS key was found in config/prod.env."),
            organization_name=overrides.pop("organization_name", "acme"),
            **overrides,
        )

    return _build


@pytest.fixture
def preferences_factory() -> Callable[..., UserPreferences]:
    """Defaults for user_id with selected channels enabled (and optional addresses)."""

    def _build(
        user_id: str = "alice@example.com",
        channels: Optional[dict[DeliveryChannel, Optional[str]]] = None,
    ) -> UserPreferences:
        prefs = UserPreferences.defaults(user_id)
        for channel, address in (channels or {}).items():
            prefs = prefs.with_channel(channel, ChannelPreference(enabled=True, address=address))
        return prefs

    return _build


@pytest.fixture
def preference_repo() -> InMemoryUserPreferenceRepository:
    return InMemoryUserPreferenceRepository()


@pytest.fixture
def rule_repo() -> InMemoryNotificationRuleRepository:
    return InMemoryNotificationRuleRepository()


@pytest.fixture
def delivery_repo() -> InMemoryDeliveryRepository:
    return InMemoryDeliveryRepository()


@pytest.fixture
def fake_event_bus() -> FakeEventBus:
    return FakeEventBus()


@pytest.fixture
def event_bus() -> EventBus:
    """Isolated event bus instance for tests."""
    return create_event_bus("NotificationRouterTests", max_history_size=200)


@pytest.fixture
def router_stack_factory() -> Callable[..., RouterStack]:
    """Wire a full router over in-memory repositories and instant simulated channels."""

    def _build(
        channels: Optional[list[BaseChannel]] = None,
        settings: Any = None,
        **settings_overrides: Any,
    ) -> RouterStack:
        resolved_settings = settings or make_settings(**settings_overrides)
        resolved_channels = (
            channels
            if channels is not None
            else [instant_channel(c) for c in DeliveryChannel]
        )
        event_bus = FakeEventBus()
        deliveries = InMemoryDeliveryRepository()
        metrics = MetricsCollector()
        scheduler = AsyncioTaskScheduler()
        preferences = UserPreferenceStore(InMemoryUserPreferenceRepository())
        rules = NotificationRuleSet(InMemoryNotificationRuleRepository())
        digests = DigestAccumulator(preferences)
        dispatcher = DeliveryDispatcher(
            settings=resolved_settings,
            renderer=PayloadMessageRenderer(),
            delivery_repository=deliveries,
            metrics=metrics,
            channels=resolved_channels,
            event_bus=event_bus,
        )
        escalation = EscalationScheduler(
            settings=resolved_settings,
            dispatcher=dispatcher,
            scheduler=scheduler,
            delivery_repository=deliveries,
            preference_store=preferences,
            event_bus=event_bus,
        )
        router = NotificationRouter(
            settings=resolved_settings,
            dispatcher=dispatcher,
            preference_store=preferences,
            rule_set=rules,
            digest_accumulator=digests,
            metrics=metrics,
            escalation=escalation,
            scheduler=scheduler,
            delivery_repository=deliveries,
        )
        return RouterStack(
            router=router,
            dispatcher=dispatcher,
            escalation=escalation,
            scheduler=scheduler,
            metrics=metrics,
            deliveries=deliveries,
            preferences=preferences,
            rules=rules,
            digests=digests,
            event_bus=event_bus,
            channels={c.channel_type: c for c in resolved_channels},
        )

    return _build


@pytest.fixture
def settings_factory() -> Callable[..., Any]:
    return make_settings


@pytest.fixture
def channel_factory() -> Callable[..., SimulatedChannel]:
    return instant_channel
