"""Websocket connection management and the in-app channel adapter."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, DefaultDict, Set

from fastapi import WebSocket

from outage_notify.domain.entities import Notification
from outage_notify.domain.errors import DeliveryError

logger = logging.getLogger(__name__)


class NotificationConnectionManager:
    """Manage active websocket connections grouped by user."""

    def __init__(self) -> None:
        self._connections: DefaultDict[str, Set[WebSocket]] = defaultdict(set)
        self._loop: asyncio.AbstractEventLoop | None = None

    def bind_loop(self, loop: asyncio.AbstractEventLoop | None) -> None:
        """Remember the server event loop so worker threads can schedule sends."""

        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop | None:
        return self._loop

    async def connect(self, user_id: str, websocket: WebSocket) -> None:
        """Accept the websocket connection and register it for ``user_id``."""

        await websocket.accept()
        self._connections[user_id].add(websocket)

    def disconnect(self, user_id: str, websocket: WebSocket) -> None:
        """Remove ``websocket`` from the pool for ``user_id``."""

        connections = self._connections.get(user_id)
        if connections is None:
            return
        connections.discard(websocket)
        if not connections:
            self._connections.pop(user_id, None)

    def is_connected(self, user_id: str) -> bool:
        return bool(self._connections.get(user_id))

    async def send_to_user(self, user_id: str, message: dict[str, Any]) -> int:
        """Send ``message`` to every active connection for ``user_id``."""

        delivered = 0
        connections = list(self._connections.get(user_id, set()))
        for connection in connections:
            try:
                await connection.send_json(message)
            except Exception:
                logger.warning("Dropping broken websocket for user %s", user_id)
                self.disconnect(user_id, connection)
            else:
                delivered += 1
        return delivered


class InAppChannelAdapter:
    """Deliver in-app notifications.

    The persisted notification record is the user's inbox, so delivery
    succeeds even when the user has no open websocket; connected clients
    additionally receive a realtime push.
    """

    def __init__(self, manager: NotificationConnectionManager, *, push_timeout: float = 5.0) -> None:
        self._manager = manager
        self._push_timeout = push_timeout

    def send(self, address: str, subject: str | None, body: str) -> None:
        loop = self._manager.loop
        if loop is None or loop.is_closed() or not self._manager.is_connected(address):
            return

        message = {"type": "notification", "data": {"subject": subject, "body": body}}
        future = asyncio.run_coroutine_threadsafe(
            self._manager.send_to_user(address, message), loop
        )
        try:
            future.result(timeout=self._push_timeout)
        except FutureTimeoutError as exc:
            future.cancel()
            raise DeliveryError("Realtime push timed out", user_id=address) from exc


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the websocket payload representation for ``notification``."""

    return {
        "id": notification.id,
        "event_id": notification.event_id,
        "event_kind": notification.event_kind,
        "user_id": notification.user_id,
        "channel": notification.channel.value,
        "status": notification.status.value,
        "subject": notification.subject,
        "body": notification.body,
        "created_at": notification.created_at.isoformat()
        if notification.created_at
        else None,
        "sent_at": notification.sent_at.isoformat() if notification.sent_at else None,
        "is_read": notification.is_read,
    }


notification_manager = NotificationConnectionManager()


__all__ = [
    "InAppChannelAdapter",
    "NotificationConnectionManager",
    "notification_manager",
    "serialize_notification",
]
