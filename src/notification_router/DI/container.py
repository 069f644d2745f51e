# -*- coding: utf-8 -*-
"""Dependency injection container (dependency-injector)."""

from __future__ import annotations

from dependency_injector import containers, providers

from notification_router.channels import (
    BaseChannel,
    EmailChannel,
    GenericWebhookChannel,
    InAppChannel,
    SlackWebhookChannel,
    TeamsWebhookChannel,
    create_simulated_channels,
)
from notification_router.config import Settings, get_settings
from notification_router.events.bus import get_event_bus
from notification_router.models.delivery import DeliveryChannel
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


def _build_channels(settings: Settings) -> list[BaseChannel]:
    """Simulated channels when simulation is on, otherwise the enabled real transports."""
    sim = settings.simulation
    if sim.enabled:
        delays = (
            {c: sim.delivery_delay_seconds for c in DeliveryChannel}
            if sim.delivery_delay_seconds is not None
            else None
        )
        return list(
            create_simulated_channels(
                email_failure_rate=sim.email_failure_rate,
                slack_failure_rate=sim.slack_failure_rate,
                teams_failure_rate=sim.teams_failure_rate,
                webhook_failure_rate=sim.webhook_failure_rate,
                delivery_delays=delays,
            )
        )

    channels: list[BaseChannel] = []
    if settings.email.enabled:
        channels.append(EmailChannel(settings))
    if settings.webhooks.slack_enabled:
        channels.append(SlackWebhookChannel(settings))
    if settings.webhooks.teams_enabled:
        channels.append(TeamsWebhookChannel(settings))
    if settings.webhooks.generic_enabled:
        channels.append(GenericWebhookChannel(settings))
    if settings.in_app.enabled:
        channels.append(InAppChannel(settings))
    return channels


class Container(containers.DeclarativeContainer):
    """Application container. Wires settings, repositories, channels, services and the router."""

    config = providers.Callable(get_settings)

    event_bus = providers.Callable(get_event_bus)

    preference_repository = providers.Singleton(InMemoryUserPreferenceRepository)

    rule_repository = providers.Singleton(InMemoryNotificationRuleRepository)

    delivery_repository = providers.Singleton(
        InMemoryDeliveryRepository,
        max_deliveries=config.provided.retention.max_deliveries,
    )

    task_scheduler = providers.Singleton(AsyncioTaskScheduler)

    message_renderer = providers.Singleton(PayloadMessageRenderer)

    metrics_collector = providers.Singleton(
        MetricsCollector,
        max_records=config.provided.retention.max_outcome_records,
    )

    preference_store = providers.Singleton(
        UserPreferenceStore,
        repository=preference_repository,
    )

    rule_set = providers.Singleton(
        NotificationRuleSet,
        repository=rule_repository,
    )

    digest_accumulator = providers.Singleton(
        DigestAccumulator,
        preference_store=preference_store,
    )

    channels = providers.Singleton(_build_channels, config)

    delivery_dispatcher = providers.Singleton(
        DeliveryDispatcher,
        settings=config,
        renderer=message_renderer,
        delivery_repository=delivery_repository,
        metrics=metrics_collector,
        channels=channels,
        event_bus=event_bus,
    )

    escalation_scheduler = providers.Singleton(
        EscalationScheduler,
        settings=config,
        dispatcher=delivery_dispatcher,
        scheduler=task_scheduler,
        delivery_repository=delivery_repository,
        preference_store=preference_store,
        event_bus=event_bus,
    )

    notification_router = providers.Singleton(
        NotificationRouter,
        settings=config,
        dispatcher=delivery_dispatcher,
        preference_store=preference_store,
        rule_set=rule_set,
        digest_accumulator=digest_accumulator,
        metrics=metrics_collector,
        escalation=escalation_scheduler,
        scheduler=task_scheduler,
        delivery_repository=delivery_repository,
    )
