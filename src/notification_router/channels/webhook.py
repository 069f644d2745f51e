# -*- coding: utf-8 -*-
"""Webhook channels over HTTP (Slack, Microsoft Teams, generic JSON webhook)."""

from __future__ import annotations

import asyncio
import re
import uuid
from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Optional
from urllib.parse import urlparse

import aiohttp
import structlog
from structlog.contextvars import bound_contextvars

from notification_router.channels.base import BaseChannel
from notification_router.channels.types import ChannelFeatures, DeliveryResult
from notification_router.exceptions import MissingRequiredConfigError
from notification_router.models.delivery import DeliveryChannel

if TYPE_CHECKING:
    from notification_router.config.config import Settings

_SLACK_TARGET_RE = re.compile(r"^[#@][a-zA-Z0-9_.-]+$|^[A-Z0-9]+$")


def _safe_url(url: str) -> str:
    """Strip query and credentials before logging a URL."""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.hostname}{parsed.path}"


def _is_http_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class WebhookChannel(BaseChannel):
    """POST a JSON body to a webhook URL.

    Injects Settings and optionally an aiohttp.ClientSession. If no session is
    provided, one is created in initialize() and closed in shutdown().
    """

    def __init__(
        self,
        settings: "Settings",
        *,
        session: Optional[aiohttp.ClientSession] = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._settings = settings
        self._session = session
        self._owns_session = session is None
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def initialize(self) -> None:
        if self._running:
            self._logger.warning("webhook_channel_already_running", channel=self.channel_type.value)
            return
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._settings.webhooks.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        self._running = True

    async def shutdown(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None
        self._running = False

    @abstractmethod
    def _target_url(self, address: str) -> str:
        """URL to POST to for this address."""

    @abstractmethod
    def _build_body(self, address: str, message: str) -> dict[str, Any]:
        """JSON body for this address and message."""

    async def deliver(self, address: str, message: str) -> DeliveryResult:
        if not self._running or self._session is None:
            return DeliveryResult.failed(f"{self.channel_type.value} channel is not running")
        if not self.validate_recipient(address):
            return DeliveryResult.failed(f"Invalid {self.channel_type.value} address")

        url = self._target_url(address)
        request_id = uuid.uuid4().hex[:12]
        with bound_contextvars(
            webhook_channel=self.channel_type.value,
            webhook_url=_safe_url(url),
            webhook_request_id=request_id,
        ):
            try:
                async with self._session.post(url, json=self._build_body(address, message)) as response:
                    if response.status == 429:
                        retry_after: Optional[float] = None
                        header = response.headers.get("Retry-After")
                        if header:
                            try:
                                retry_after = float(header)
                            except ValueError:
                                pass
                        self._logger.warning(
                            "webhook_rate_limited",
                            http_status_code=429,
                            http_retry_after_seconds=retry_after,
                        )
                        return DeliveryResult.failed(
                            "Webhook returned 429 (rate limited)", retry_after=retry_after
                        )
                    if response.status >= 400:
                        self._logger.warning(
                            "webhook_http_error",
                            http_status_code=response.status,
                        )
                        return DeliveryResult.failed(f"Webhook returned {response.status}")
            except asyncio.TimeoutError:
                self._logger.warning("webhook_timeout")
                return DeliveryResult.failed("Connection timeout")
            except aiohttp.ClientError as exc:
                self._logger.warning(
                    "webhook_client_error",
                    error_type=type(exc).__name__,
                    error_message=str(exc),
                )
                return DeliveryResult.failed(f"Webhook request failed: {exc}")

            self._logger.debug("webhook_delivered")
            return DeliveryResult.ok(request_id)


class SlackWebhookChannel(WebhookChannel):
    """Slack incoming webhook. Addresses are #channel, @user or Slack member ids."""

    def __init__(self, settings: "Settings", **kwargs: Any) -> None:
        super().__init__(settings, **kwargs)
        url = settings.webhooks.slack_webhook_url
        if not url:
            raise MissingRequiredConfigError("WEBHOOKS__SLACK_WEBHOOK_URL")
        self._url = url

    @property
    def channel_type(self) -> DeliveryChannel:
        return DeliveryChannel.SLACK

    def get_supported_features(self) -> ChannelFeatures:
        return ChannelFeatures(
            max_message_length=4_000,
            supports_rich_formatting=True,
            supports_batching=False,
        )

    def validate_recipient(self, address: str) -> bool:
        return bool(_SLACK_TARGET_RE.match(address or ""))

    def _target_url(self, address: str) -> str:
        return self._url

    def _build_body(self, address: str, message: str) -> dict[str, Any]:
        return {"channel": address, "text": message, "mrkdwn": True}


class TeamsWebhookChannel(WebhookChannel):
    """Microsoft Teams connector webhook. Addresses are webhook URLs or channel ids."""

    def __init__(self, settings: "Settings", **kwargs: Any) -> None:
        super().__init__(settings, **kwargs)
        self._default_url = settings.webhooks.teams_webhook_url

    @property
    def channel_type(self) -> DeliveryChannel:
        return DeliveryChannel.TEAMS

    def get_supported_features(self) -> ChannelFeatures:
        return ChannelFeatures(
            max_message_length=28_000,
            supports_rich_formatting=True,
            supports_batching=False,
        )

    def validate_recipient(self, address: str) -> bool:
        if _is_http_url(address or ""):
            return True
        return bool(address) and self._default_url is not None

    def _target_url(self, address: str) -> str:
        if _is_http_url(address):
            return address
        return str(self._default_url)

    def _build_body(self, address: str, message: str) -> dict[str, Any]:
        summary = message.split("\n", 1)[0][:120]
        return {
            "@type": "MessageCard",
            "@context": "https://schema.org/extensions",
            "summary": summary,
            "text": message,
        }


class GenericWebhookChannel(WebhookChannel):
    """Any HTTP(S) endpoint; the address is the URL."""

    @property
    def channel_type(self) -> DeliveryChannel:
        return DeliveryChannel.WEBHOOK

    def get_supported_features(self) -> ChannelFeatures:
        return ChannelFeatures(
            max_message_length=50_000,
            supports_rich_formatting=False,
            supports_batching=True,
        )

    def validate_recipient(self, address: str) -> bool:
        return _is_http_url(address or "")

    def _target_url(self, address: str) -> str:
        return address

    def _build_body(self, address: str, message: str) -> dict[str, Any]:
        return {"type": "notification", "message": message}
