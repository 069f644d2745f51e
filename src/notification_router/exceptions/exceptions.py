"""Custom exceptions for notification routing and delivery."""

from __future__ import annotations


class NotificationRouterError(Exception):
    """Base exception for notification-router errors."""

    pass


class ConfigurationError(NotificationRouterError):
    """Raised synchronously when setup input is malformed."""

    pass


class MissingRequiredConfigError(ConfigurationError):
    """Raised when a required configuration value is missing."""

    pass


class InvalidRuleError(ConfigurationError):
    """Raised when a notification rule (or one of its conditions) is malformed."""

    def __init__(self, message: str, *, rule_id: str | None = None) -> None:
        super().__init__(message)
        self.rule_id = rule_id


class UnknownMetricError(NotificationRouterError, KeyError):
    """Raised when a metric path does not resolve to a known metric."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Unknown metric path: {path!r}")
        self.path = path

    def __str__(self) -> str:
        return str(self.args[0])


class InvalidStateTransitionError(NotificationRouterError):
    """Raised when a delivery is moved along an edge its state machine does not have."""

    def __init__(self, delivery_id: str, current: str, target: str) -> None:
        super().__init__(
            f"Delivery {delivery_id} cannot move from {current!r} to {target!r}"
        )
        self.delivery_id = delivery_id
        self.current = current
        self.target = target
