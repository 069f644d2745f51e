"""Routing services: rate limiting, rules, preferences, dispatch, escalation, digests, metrics."""

from notification_router.services.digest import DigestAccumulator
from notification_router.services.dispatcher import DeliveryDispatcher, DispatchResult
from notification_router.services.escalation import EscalationScheduler
from notification_router.services.metrics import MetricsCollector
from notification_router.services.preference_store import UserPreferenceStore
from notification_router.services.rate_limiter import RateLimiter
from notification_router.services.router import NotificationRouter
from notification_router.services.routing_policy import (
    RoutingDecision,
    RoutingOutcome,
    RoutingPolicy,
)
from notification_router.services.rule_set import NotificationRuleSet

__all__ = [
    "DeliveryDispatcher",
    "DigestAccumulator",
    "DispatchResult",
    "EscalationScheduler",
    "MetricsCollector",
    "NotificationRouter",
    "NotificationRuleSet",
    "RateLimiter",
    "RoutingDecision",
    "RoutingOutcome",
    "RoutingPolicy",
    "UserPreferenceStore",
]
