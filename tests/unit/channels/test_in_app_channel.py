# -*- coding: utf-8 -*-
"""Unit tests for InAppChannel."""

from __future__ import annotations

from notification_router.channels import InAppChannel
from notification_router.config import Settings


async def test_deliver_stores_message_in_inbox() -> None:
    channel = InAppChannel(Settings(in_app={"inbox_size": 5}))
    await channel.initialize()

    result = await channel.deliver("alice", "Secret detected")

    assert result.success is True
    inbox = channel.get_inbox("alice")
    assert [m.message for m in inbox] == ["Secret detected"]
    assert inbox[0].id == result.message_id


async def test_inbox_drops_oldest_when_full() -> None:
    channel = InAppChannel(Settings(in_app={"inbox_size": 2}))
    await channel.initialize()

    for i in range(3):
        await channel.deliver("alice", f"m{i}")

    assert [m.message for m in channel.get_inbox("alice")] == ["m1", "m2"]
    assert channel.clear_inbox("alice") == 2
    assert channel.get_inbox("alice") == []


async def test_not_running_until_initialized() -> None:
    channel = InAppChannel(Settings())

    result = await channel.deliver("alice", "x")

    assert channel.is_running is False
    assert result.success is False


async def test_disabled_channel_stays_stopped() -> None:
    channel = InAppChannel(Settings(in_app={"enabled": False}))

    await channel.initialize()

    assert channel.is_running is False


async def test_blank_address_is_rejected() -> None:
    channel = InAppChannel(Settings())
    await channel.initialize()

    result = await channel.deliver("  ", "x")

    assert result.error_message == "Invalid in-app user ID"
