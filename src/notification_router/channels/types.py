"""Channel capability types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from notification_router.models.payload import NotificationPayload


@dataclass(frozen=True)
class ChannelFeatures:
    """What a channel can carry. The router enforces max_message_length before delivery."""

    max_message_length: int
    supports_rich_formatting: bool
    supports_batching: bool


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one channel delivery attempt."""

    success: bool
    error_message: str | None = None
    message_id: str | None = None
    retry_after: float | None = None
    """Seconds the transport asked us to wait before retrying, if any."""

    @classmethod
    def ok(cls, message_id: str | None = None) -> DeliveryResult:
        return cls(success=True, message_id=message_id)

    @classmethod
    def failed(cls, error_message: str, *, retry_after: float | None = None) -> DeliveryResult:
        return cls(success=False, error_message=error_message, retry_after=retry_after)


class MessageRenderer(Protocol):
    """Render a payload into the text handed to a channel."""

    def render(self, payload: "NotificationPayload", *, rich: bool = False) -> str:
        """Return the message for payload.

        Args:
            payload: Notification to render.
            rich: If True, output may use markup (the channel supports rich formatting).
        """
        ...
