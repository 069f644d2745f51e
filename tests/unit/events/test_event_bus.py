# -*- coding: utf-8 -*-
"""Unit tests for the process-wide event bus helpers."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest

from notification_router.events import (
    NotificationDeliveredEvent,
    get_event_bus,
    set_event_bus,
)


@pytest.fixture
def reset_bus() -> Iterator[None]:
    set_event_bus(None)
    yield
    set_event_bus(None)


def test_get_event_bus_returns_same_instance(reset_bus: None) -> None:
    assert get_event_bus() is get_event_bus()


def test_set_event_bus_replaces_global(reset_bus: None, event_bus: Any) -> None:
    set_event_bus(event_bus)

    assert get_event_bus() is event_bus


async def test_handlers_receive_delivered_events(event_bus: Any) -> None:
    received: list[NotificationDeliveredEvent] = []

    async def _on_delivered(event: NotificationDeliveredEvent) -> None:
        received.append(event)

    event_bus.on(NotificationDeliveredEvent, _on_delivered)
    event_bus.dispatch(
        NotificationDeliveredEvent(
            notification_id="n-1",
            delivery_id="d-1",
            channel="email",
            recipient="alice@example.com",
        )
    )
    await event_bus.wait_until_idle()
    await event_bus.stop()

    assert [e.delivery_id for e in received] == ["d-1"]
