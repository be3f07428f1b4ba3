"""Tests for the websocket connection manager and in-app adapter."""

from __future__ import annotations

import asyncio
import threading

import pytest

from outage_notify.domain.entities import Channel, Notification, NotificationStatus
from outage_notify.domain.errors import DeliveryError
from outage_notify.infrastructure.channels import (
    InAppChannelAdapter,
    NotificationConnectionManager,
    serialize_notification,
)


class _FakeWebSocket:
    def __init__(self, *, broken: bool = False, delay: float = 0.0) -> None:
        self.accepted = False
        self.messages: list[dict] = []
        self.broken = broken
        self.delay = delay

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, message: dict) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.broken:
            raise RuntimeError("connection reset")
        self.messages.append(message)


@pytest.fixture()
def loop():
    loop = asyncio.new_event_loop()
    thread = threading.Thread(target=loop.run_forever, daemon=True)
    thread.start()
    yield loop
    loop.call_soon_threadsafe(loop.stop)
    thread.join(timeout=5)
    loop.close()


def _connect(manager, loop, user_id, websocket) -> None:
    asyncio.run_coroutine_threadsafe(manager.connect(user_id, websocket), loop).result(timeout=5)


def test_send_without_bound_loop_is_a_no_op() -> None:
    manager = NotificationConnectionManager()

    InAppChannelAdapter(manager).send("user-1", "Subject", "Body")

    assert not manager.is_connected("user-1")


def test_send_pushes_to_every_connection(loop) -> None:
    manager = NotificationConnectionManager()
    manager.bind_loop(loop)
    first, second = _FakeWebSocket(), _FakeWebSocket()
    _connect(manager, loop, "user-1", first)
    _connect(manager, loop, "user-1", second)

    InAppChannelAdapter(manager).send("user-1", "Outage", "Body")

    expected = {"type": "notification", "data": {"subject": "Outage", "body": "Body"}}
    assert first.accepted and first.messages == [expected]
    assert second.messages == [expected]


def test_broken_connections_are_dropped(loop) -> None:
    manager = NotificationConnectionManager()
    manager.bind_loop(loop)
    _connect(manager, loop, "user-1", _FakeWebSocket(broken=True))

    InAppChannelAdapter(manager).send("user-1", None, "Body")

    assert not manager.is_connected("user-1")


def test_slow_push_raises_delivery_error(loop) -> None:
    manager = NotificationConnectionManager()
    manager.bind_loop(loop)
    _connect(manager, loop, "user-1", _FakeWebSocket(delay=1.0))

    with pytest.raises(DeliveryError, match="timed out"):
        InAppChannelAdapter(manager, push_timeout=0.05).send("user-1", None, "Body")


def test_serialize_notification() -> None:
    notification = Notification(
        id=7,
        event_id="evt-1",
        user_id="user-1",
        channel=Channel.IN_APP,
        status=NotificationStatus.SENT,
        recipient="user-1",
        body="Body",
    )

    payload = serialize_notification(notification)

    assert payload["id"] == 7
    assert payload["channel"] == "in_app"
    assert payload["status"] == "sent"
    assert payload["created_at"] is None
