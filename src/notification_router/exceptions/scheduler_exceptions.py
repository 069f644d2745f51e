"""Scheduler-specific exceptions."""

from __future__ import annotations

from notification_router.exceptions.exceptions import NotificationRouterError


class SchedulerError(NotificationRouterError):
    """Base exception for task scheduler operations."""


class SchedulerShutdown(SchedulerError):
    """Raised when scheduling on a scheduler that has been shut down."""
