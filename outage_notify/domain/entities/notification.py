"""Domain entity representing a per-channel notification record."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .channel import Channel


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


@dataclass
class Notification:
    """Attempt record for one ``(event, user, channel)`` unit.

    A record moves from ``PENDING`` to ``SENT`` or ``FAILED`` exactly once;
    afterwards only ``is_read`` may change.
    """

    id: int | None
    event_id: str
    user_id: str
    channel: Channel
    status: NotificationStatus
    recipient: str
    body: str
    subject: str | None = None
    event_kind: str | None = None
    created_at: datetime | None = None
    sent_at: datetime | None = None
    error_message: str | None = None
    is_read: bool = False

    @property
    def is_final(self) -> bool:
        return self.status is not NotificationStatus.PENDING


__all__ = ["Notification", "NotificationStatus"]
