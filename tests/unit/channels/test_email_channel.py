# -*- coding: utf-8 -*-
"""Unit tests for EmailChannel with a fake aiosmtplib sender."""

from __future__ import annotations

from email.message import EmailMessage
from typing import Any, Optional

import aiosmtplib

from notification_router.channels import EmailChannel
from notification_router.config import Settings


class FakeSender:
    """Stands in for aiosmtplib.send; raises `error` when set."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.calls: list[tuple[EmailMessage, dict[str, Any]]] = []

    async def __call__(self, message: EmailMessage, **kwargs: Any) -> None:
        self.calls.append((message, kwargs))
        if self.error is not None:
            raise self.error


def _channel(error: Optional[Exception] = None, **email: Any) -> tuple[EmailChannel, FakeSender]:
    sender = FakeSender(error)
    settings = Settings(email={"enabled": True, "smtp_host": "smtp.example.com", **email})
    return EmailChannel(settings, send=sender), sender


async def test_deliver_sends_headline_as_subject() -> None:
    channel, sender = _channel(username="bot", password="secret")
    await channel.initialize()

    result = await channel.deliver("alice@example.com", "[HIGH] Secret detected\n\nKey found.")

    assert result.success is True
    sent, options = sender.calls[0]
    assert options["hostname"] == "smtp.example.com"
    assert options["port"] == 587
    assert options["start_tls"] is True
    assert (options["username"], options["password"]) == ("bot", "secret")
    assert sent["To"] == "alice@example.com"
    assert sent["Subject"] == "[HIGH] Secret detected"
    assert sent.get_content().strip() == "Key found."
    assert result.message_id == sent["Message-ID"]


async def test_no_tls_and_no_login_without_credentials() -> None:
    channel, sender = _channel(use_tls=False, username="bot")
    await channel.initialize()

    await channel.deliver("alice@example.com", "Subject\nBody")

    _, options = sender.calls[0]
    assert options["start_tls"] is False
    assert options["username"] is None
    assert options["password"] is None


async def test_smtp_error_becomes_failed_result() -> None:
    channel, _ = _channel(error=aiosmtplib.SMTPServerDisconnected("gone"))
    await channel.initialize()

    result = await channel.deliver("alice@example.com", "Subject\nBody")

    assert result.success is False
    assert result.error_message == "SMTP error: gone"


async def test_connection_error_becomes_failed_result() -> None:
    channel, _ = _channel(error=ConnectionRefusedError("refused"))
    await channel.initialize()

    result = await channel.deliver("alice@example.com", "Subject\nBody")

    assert result.success is False
    assert result.error_message == "SMTP error: refused"


async def test_invalid_address_is_rejected_without_smtp() -> None:
    channel, sender = _channel()
    await channel.initialize()

    result = await channel.deliver("alice", "Subject\nBody")

    assert result.error_message == "Invalid email address format"
    assert sender.calls == []


async def test_disabled_channel_does_not_start() -> None:
    channel = EmailChannel(Settings())

    await channel.initialize()
    result = await channel.deliver("alice@example.com", "x")

    assert channel.is_running is False
    assert result.error_message == "Email channel is not running"
