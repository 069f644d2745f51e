# -*- coding: utf-8 -*-
"""SMTP email channel."""

from __future__ import annotations

import re
from email.message import EmailMessage
from email.utils import make_msgid
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

import aiosmtplib
import structlog

from notification_router.channels.base import BaseChannel
from notification_router.channels.types import ChannelFeatures, DeliveryResult
from notification_router.logging.config import mask_address
from notification_router.models.delivery import DeliveryChannel

if TYPE_CHECKING:
    from notification_router.config.config import Settings

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class EmailChannel(BaseChannel):
    """Send notifications over SMTP with aiosmtplib (STARTTLS + login when credentials are set).

    Each delivery opens its own connection; `send` is injectable for tests.
    """

    def __init__(
        self,
        settings: "Settings",
        *,
        send: Callable[..., Awaitable[Any]] = aiosmtplib.send,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._cfg = settings.email
        self._send = send
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._running = False

    @property
    def channel_type(self) -> DeliveryChannel:
        return DeliveryChannel.EMAIL

    @property
    def is_running(self) -> bool:
        return self._running

    async def initialize(self) -> None:
        if not self._cfg.enabled:
            return
        self._running = True

    async def shutdown(self) -> None:
        self._running = False

    def get_supported_features(self) -> ChannelFeatures:
        return ChannelFeatures(
            max_message_length=100_000,
            supports_rich_formatting=True,
            supports_batching=True,
        )

    def validate_recipient(self, address: str) -> bool:
        return bool(_EMAIL_RE.match(address or ""))

    async def deliver(self, address: str, message: str) -> DeliveryResult:
        if not self._running:
            return DeliveryResult.failed("Email channel is not running")
        if not self.validate_recipient(address):
            return DeliveryResult.failed("Invalid email address format")

        subject, _, body = message.partition("\n")
        email = EmailMessage()
        email["From"] = self._cfg.from_address
        email["To"] = address
        email["Subject"] = subject.strip() or "Notification"
        email["Message-ID"] = make_msgid()
        email.set_content(body.strip() or subject)

        credentials = bool(self._cfg.username and self._cfg.password)
        try:
            await self._send(
                email,
                hostname=self._cfg.smtp_host,
                port=self._cfg.smtp_port,
                username=self._cfg.username if credentials else None,
                password=self._cfg.password if credentials else None,
                use_tls=False,
                start_tls=self._cfg.use_tls,
                timeout=self._cfg.timeout_seconds,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            self._logger.warning(
                "email_send_failed",
                recipient=mask_address(address),
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
            return DeliveryResult.failed(f"SMTP error: {exc}")

        self._logger.debug("email_sent", recipient=mask_address(address))
        return DeliveryResult.ok(email.get("Message-ID"))
