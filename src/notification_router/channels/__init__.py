"""Delivery channels."""

from notification_router.channels.base import BaseChannel
from notification_router.channels.email import EmailChannel
from notification_router.channels.in_app import InAppChannel, InAppMessage
from notification_router.channels.simulated import (
    DeliveryLogEntry,
    SimulatedChannel,
    create_simulated_channels,
)
from notification_router.channels.types import (
    ChannelFeatures,
    DeliveryResult,
    MessageRenderer,
)
from notification_router.channels.webhook import (
    GenericWebhookChannel,
    SlackWebhookChannel,
    TeamsWebhookChannel,
    WebhookChannel,
)

__all__ = [
    "BaseChannel",
    "ChannelFeatures",
    "DeliveryLogEntry",
    "DeliveryResult",
    "EmailChannel",
    "GenericWebhookChannel",
    "InAppChannel",
    "InAppMessage",
    "MessageRenderer",
    "SimulatedChannel",
    "SlackWebhookChannel",
    "TeamsWebhookChannel",
    "WebhookChannel",
    "create_simulated_channels",
]
