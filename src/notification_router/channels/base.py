# -*- coding: utf-8 -*-
"""Base channel capability."""

from __future__ import annotations

from abc import ABC, abstractmethod

from notification_router.channels.types import ChannelFeatures, DeliveryResult
from notification_router.models.delivery import DeliveryChannel


class BaseChannel(ABC):
    """Abstract delivery medium (email, chat webhook, in-app, generic webhook).

    Implementations surface transport problems through DeliveryResult instead of
    raising, and validate their own address formats.
    """

    @property
    @abstractmethod
    def channel_type(self) -> DeliveryChannel:
        """Which medium this channel implements."""
        pass

    @property
    @abstractmethod
    def is_running(self) -> bool:
        """Whether the channel is initialized and accepting deliveries."""
        pass

    @abstractmethod
    async def initialize(self) -> None:
        """Acquire transport resources."""
        pass

    @abstractmethod
    async def shutdown(self) -> None:
        """Release transport resources."""
        pass

    @abstractmethod
    async def deliver(self, address: str, message: str) -> DeliveryResult:
        """Deliver a rendered message to a channel-specific address.

        Args:
            address: Opaque, channel-specific address (email, @handle, URL...).
            message: Rendered message text.
        """
        pass

    @abstractmethod
    def get_supported_features(self) -> ChannelFeatures:
        """Static capabilities of this channel."""
        pass

    def validate_recipient(self, address: str) -> bool:
        """Return True if address looks deliverable on this channel."""
        return bool(address and address.strip())
