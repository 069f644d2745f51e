# -*- coding: utf-8 -*-
"""
Entry point for a local notification-routing run.

Orchestrates: logging, settings, container, router start, a sample fan-out, metrics, shutdown.
Set SIMULATION__ENABLED=true to route through simulated channels instead of real transports.

Run with: python -m notification_router.main
"""
from __future__ import annotations

import asyncio
from typing import Any

import structlog

from notification_router.config import get_settings
from notification_router.DI import Container
from notification_router.logging.config import configure_logging
from notification_router.models import (
    NotificationPayload,
    NotificationPriority,
    NotificationType,
)


async def _do_shutdown(router: Any, logger: Any) -> None:
    """Clean shutdown. Safe to call on normal shutdown or CancelledError."""
    await router.shutdown()
    logger.info("main_shutdown_complete")


async def run() -> None:
    configure_logging()
    logger = structlog.get_logger("main")
    settings = get_settings()

    container = Container()
    router = container.notification_router()
    await router.initialize()

    recipients = settings.router.default_recipients
    channels = settings.router.default_channels
    logger.info(
        "main_router_started",
        simulation=settings.simulation.enabled,
        registered_channels=[c.value for c in router.registered_channels()],
        recipients=len(recipients),
    )
    try:
        payload = NotificationPayload.create(
            type=NotificationType.SYSTEM_MAINTENANCE,
            priority=NotificationPriority.MEDIUM,
            title="Notification router started",
            message="The notification router is up and delivering.",
            organization_name=settings.app.app_name,
        )
        deliveries = await router.send_notification(payload, recipients, channels)
        for delivery in deliveries:
            logger.info(
                "main_delivery_outcome",
                recipient=delivery.recipient,
                channel=delivery.channel.value,
                state=delivery.state.value,
                error_message=delivery.error_message,
            )
        await router.wait_idle()
        metrics = await router.get_notification_metrics()
        logger.info(
            "main_metrics",
            total_sent=metrics.total_sent,
            delivery_rate=metrics.delivery_rate,
            failure_rate=metrics.failure_rate,
        )
    except asyncio.CancelledError:
        await _do_shutdown(router, logger)
        raise
    await _do_shutdown(router, logger)


def main() -> None:
    asyncio.run(run())


__all__ = ["run", "main"]

if __name__ == "__main__":
    main()
