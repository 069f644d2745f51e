# -*- coding: utf-8 -*-
"""Simulated channels with configurable unreliability (tests, demos, load runs)."""

from __future__ import annotations

import asyncio
import random
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Optional
from urllib.parse import urlparse
from uuid import uuid4

from notification_router.channels.base import BaseChannel
from notification_router.channels.types import ChannelFeatures, DeliveryResult
from notification_router.models.delivery import DeliveryChannel

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_SLACK_RE = re.compile(r"^[#@][a-zA-Z0-9_-]+$|^[A-Z0-9]+$")
_TEAMS_RE = re.compile(r"^[a-f0-9-]+$")
_IN_APP_RE = re.compile(r"^[a-zA-Z0-9_@.-]+$")


def _valid_email(address: str) -> bool:
    return bool(_EMAIL_RE.match(address))


def _valid_slack(address: str) -> bool:
    return bool(_SLACK_RE.match(address))


def _valid_teams(address: str) -> bool:
    return "outlook.office.com" in address or bool(_TEAMS_RE.match(address))


def _valid_in_app(address: str) -> bool:
    return bool(_IN_APP_RE.match(address))


def _valid_url(address: str) -> bool:
    parsed = urlparse(address)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


@dataclass(frozen=True)
class _Profile:
    features: ChannelFeatures
    delivery_delay: float
    failure_messages: tuple[str, ...]
    invalid_address_message: str
    validator: Callable[[str], bool]


_PROFILES: dict[DeliveryChannel, _Profile] = {
    DeliveryChannel.EMAIL: _Profile(
        features=ChannelFeatures(
            max_message_length=100_000, supports_rich_formatting=True, supports_batching=True
        ),
        delivery_delay=0.1,
        failure_messages=("SMTP server temporarily unavailable",),
        invalid_address_message="Invalid email address format",
        validator=_valid_email,
    ),
    DeliveryChannel.SLACK: _Profile(
        features=ChannelFeatures(
            max_message_length=4_000, supports_rich_formatting=True, supports_batching=False
        ),
        delivery_delay=0.05,
        failure_messages=("Slack webhook returned 500 error",),
        invalid_address_message="Invalid Slack channel or user ID",
        validator=_valid_slack,
    ),
    DeliveryChannel.TEAMS: _Profile(
        features=ChannelFeatures(
            max_message_length=28_000, supports_rich_formatting=True, supports_batching=False
        ),
        delivery_delay=0.075,
        failure_messages=("Microsoft Teams webhook timeout",),
        invalid_address_message="Invalid Teams webhook URL or channel ID",
        validator=_valid_teams,
    ),
    DeliveryChannel.IN_APP: _Profile(
        features=ChannelFeatures(
            max_message_length=10_000, supports_rich_formatting=True, supports_batching=True
        ),
        delivery_delay=0.01,
        failure_messages=("WebSocket connection lost",),
        invalid_address_message="Invalid in-app user ID",
        validator=_valid_in_app,
    ),
    DeliveryChannel.WEBHOOK: _Profile(
        features=ChannelFeatures(
            max_message_length=50_000, supports_rich_formatting=False, supports_batching=True
        ),
        delivery_delay=0.2,
        failure_messages=(
            "Connection timeout",
            "Webhook returned 404",
            "Webhook returned 500",
            "SSL certificate verification failed",
        ),
        invalid_address_message="Invalid webhook URL format",
        validator=_valid_url,
    ),
}


@dataclass(frozen=True)
class DeliveryLogEntry:
    """One deliver() call observed by a simulated channel."""

    address: str
    message: str
    timestamp: datetime


class SimulatedChannel(BaseChannel):
    """In-process stand-in for a real transport.

    Sleeps for delivery_delay seconds, then fails with probability failure_rate using
    the medium's typical transport error, otherwise validates the address and succeeds.
    Usable without initialize(); shutdown() stops it.
    """

    def __init__(
        self,
        channel_type: DeliveryChannel | str,
        *,
        failure_rate: float = 0.0,
        delivery_delay: Optional[float] = None,
        features: Optional[ChannelFeatures] = None,
        validate_addresses: bool = True,
        rng: Optional[random.Random] = None,
    ) -> None:
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError("failure_rate must be within [0, 1]")
        self._type = DeliveryChannel(channel_type)
        self._profile = _PROFILES[self._type]
        self.failure_rate = failure_rate
        self.delivery_delay = (
            self._profile.delivery_delay if delivery_delay is None else delivery_delay
        )
        self._features = features or self._profile.features
        self._validate_addresses = validate_addresses
        self._rng = rng or random.Random()
        self._running = True
        self._log: list[DeliveryLogEntry] = []

    @property
    def channel_type(self) -> DeliveryChannel:
        return self._type

    @property
    def is_running(self) -> bool:
        return self._running

    async def initialize(self) -> None:
        self._running = True

    async def shutdown(self) -> None:
        self._running = False

    async def deliver(self, address: str, message: str) -> DeliveryResult:
        if self.delivery_delay > 0:
            await asyncio.sleep(self.delivery_delay)
        self._log.append(
            DeliveryLogEntry(address=address, message=message, timestamp=datetime.now(UTC))
        )

        if self.failure_rate > 0 and self._rng.random() < self.failure_rate:
            return DeliveryResult.failed(self._rng.choice(self._profile.failure_messages))

        if self._validate_addresses and not self.validate_recipient(address):
            return DeliveryResult.failed(self._profile.invalid_address_message)

        return DeliveryResult.ok(f"{self._type.value}_{uuid4().hex[:12]}")

    def get_supported_features(self) -> ChannelFeatures:
        return self._features

    def validate_recipient(self, address: str) -> bool:
        return super().validate_recipient(address) and self._profile.validator(address)

    @property
    def delivery_log(self) -> list[DeliveryLogEntry]:
        """Copy of every deliver() call seen so far."""
        return list(self._log)

    def clear_delivery_log(self) -> None:
        self._log.clear()


def create_simulated_channels(
    *,
    email_failure_rate: float = 0.0,
    slack_failure_rate: float = 0.0,
    teams_failure_rate: float = 0.0,
    webhook_failure_rate: float = 0.0,
    delivery_delays: Optional[dict[DeliveryChannel, float]] = None,
    validate_addresses: bool = True,
) -> list[SimulatedChannel]:
    """One simulated channel per medium. In-app never fails."""
    delays = delivery_delays or {}
    failure_rates = {
        DeliveryChannel.EMAIL: email_failure_rate,
        DeliveryChannel.SLACK: slack_failure_rate,
        DeliveryChannel.TEAMS: teams_failure_rate,
        DeliveryChannel.IN_APP: 0.0,
        DeliveryChannel.WEBHOOK: webhook_failure_rate,
    }
    return [
        SimulatedChannel(
            channel_type,
            failure_rate=rate,
            delivery_delay=delays.get(channel_type),
            validate_addresses=validate_addresses,
        )
        for channel_type, rate in failure_rates.items()
    ]
