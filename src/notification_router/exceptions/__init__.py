"""Exceptions subpackage."""

from notification_router.exceptions.exceptions import (
    ConfigurationError,
    InvalidRuleError,
    InvalidStateTransitionError,
    MissingRequiredConfigError,
    NotificationRouterError,
    UnknownMetricError,
)
from notification_router.exceptions.scheduler_exceptions import (
    SchedulerError,
    SchedulerShutdown,
)

__all__ = [
    "ConfigurationError",
    "InvalidRuleError",
    "InvalidStateTransitionError",
    "MissingRequiredConfigError",
    "NotificationRouterError",
    "SchedulerError",
    "SchedulerShutdown",
    "UnknownMetricError",
]
