# -*- coding: utf-8 -*-
"""In-app channel: bounded per-user inbox read by the UI."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Callable, Optional
from uuid import uuid4

import structlog

from notification_router.channels.base import BaseChannel
from notification_router.channels.types import ChannelFeatures, DeliveryResult
from notification_router.models.delivery import DeliveryChannel

if TYPE_CHECKING:
    from notification_router.config.config import Settings


@dataclass(frozen=True, slots=True)
class InAppMessage:
    id: str
    address: str
    message: str
    received_at: datetime


class InAppChannel(BaseChannel):
    """Store messages in memory per address; oldest entries drop once the inbox is full."""

    def __init__(
        self,
        settings: "Settings",
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._inbox_size = settings.in_app.inbox_size
        self._enabled = settings.in_app.enabled
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._inboxes: dict[str, deque[InAppMessage]] = {}
        self._running = False

    @property
    def channel_type(self) -> DeliveryChannel:
        return DeliveryChannel.IN_APP

    @property
    def is_running(self) -> bool:
        return self._running

    async def initialize(self) -> None:
        if not self._enabled:
            return
        self._running = True

    async def shutdown(self) -> None:
        self._running = False

    def get_supported_features(self) -> ChannelFeatures:
        return ChannelFeatures(
            max_message_length=10_000,
            supports_rich_formatting=True,
            supports_batching=True,
        )

    async def deliver(self, address: str, message: str) -> DeliveryResult:
        if not self._running:
            return DeliveryResult.failed("In-app channel is not running")
        if not self.validate_recipient(address):
            return DeliveryResult.failed("Invalid in-app user ID")

        inbox = self._inboxes.setdefault(address, deque(maxlen=self._inbox_size))
        entry = InAppMessage(
            id=str(uuid4()),
            address=address,
            message=message,
            received_at=datetime.now(UTC),
        )
        inbox.append(entry)
        self._logger.debug("in_app_message_stored", inbox_size=len(inbox))
        return DeliveryResult.ok(entry.id)

    def get_inbox(self, address: str) -> list[InAppMessage]:
        """Messages for address, oldest first."""
        return list(self._inboxes.get(address, ()))

    def clear_inbox(self, address: str) -> int:
        """Drop every message for address; returns how many were removed."""
        inbox = self._inboxes.pop(address, None)
        return len(inbox) if inbox else 0
