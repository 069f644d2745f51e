# -*- coding: utf-8 -*-
"""Unit tests for SimulatedChannel."""

from __future__ import annotations

import random

import pytest

from notification_router.channels import SimulatedChannel, create_simulated_channels
from notification_router.models.delivery import DeliveryChannel


@pytest.mark.parametrize(
    ("channel", "address"),
    [
        ("email", "alice@example.com"),
        ("slack", "@alice"),
        ("slack", "#security"),
        ("teams", "https://outlook.office.com/webhook/abc"),
        ("in_app", "user_42"),
        ("webhook", "https://hooks.example.com/notify"),
    ],
)
async def test_valid_addresses_are_delivered(channel: str, address: str) -> None:
    sim = SimulatedChannel(channel, delivery_delay=0)

    result = await sim.deliver(address, "hello")

    assert result.success is True
    assert result.message_id is not None
    assert result.message_id.startswith(f"{channel}_")
    assert [e.address for e in sim.delivery_log] == [address]


@pytest.mark.parametrize(
    ("channel", "address", "error"),
    [
        ("email", "not-an-email", "Invalid email address format"),
        ("slack", "alice", "Invalid Slack channel or user ID"),
        ("teams", "https://example.com/hook", "Invalid Teams webhook URL or channel ID"),
        ("webhook", "ftp://example.com", "Invalid webhook URL format"),
    ],
)
async def test_invalid_addresses_fail(channel: str, address: str, error: str) -> None:
    sim = SimulatedChannel(channel, delivery_delay=0)

    result = await sim.deliver(address, "hello")

    assert result.success is False
    assert result.error_message == error


async def test_full_failure_rate_uses_transport_errors() -> None:
    sim = SimulatedChannel("webhook", failure_rate=1.0, delivery_delay=0, rng=random.Random(7))

    results = [await sim.deliver("https://hooks.example.com/n", "x") for _ in range(20)]

    assert not any(r.success for r in results)
    assert {r.error_message for r in results} <= {
        "Connection timeout",
        "Webhook returned 404",
        "Webhook returned 500",
        "SSL certificate verification failed",
    }
    assert len(sim.delivery_log) == 20


def test_failure_rate_out_of_range_is_rejected() -> None:
    with pytest.raises(ValueError):
        SimulatedChannel("email", failure_rate=1.5)


async def test_shutdown_stops_channel_and_initialize_restarts() -> None:
    sim = SimulatedChannel("email", delivery_delay=0)

    await sim.shutdown()
    assert sim.is_running is False
    await sim.initialize()

    assert sim.is_running is True


def test_features_follow_medium() -> None:
    assert SimulatedChannel("slack").get_supported_features().max_message_length == 4000
    assert SimulatedChannel("webhook").get_supported_features().supports_rich_formatting is False


async def test_clear_delivery_log() -> None:
    sim = SimulatedChannel("in_app", delivery_delay=0)
    await sim.deliver("user_1", "hello")

    sim.clear_delivery_log()

    assert sim.delivery_log == []


def test_create_simulated_channels_one_per_medium() -> None:
    channels = create_simulated_channels(email_failure_rate=0.5)

    assert [c.channel_type for c in channels] == list(DeliveryChannel)
    by_type = {c.channel_type: c for c in channels}
    assert by_type[DeliveryChannel.EMAIL].failure_rate == 0.5
    assert by_type[DeliveryChannel.IN_APP].failure_rate == 0.0
