"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from outage_notify.domain.entities import Channel, NotificationStatus


class NotificationMarkReadRequest(BaseModel):
    """Payload used to mark a batch of notifications as read or unread."""

    ids: list[int] = Field(..., min_length=1, description="Notification identifiers")
    read: bool = True

    def unique_ids(self) -> list[int]:
        """Return the list of identifiers without duplicates preserving order."""

        return list(dict.fromkeys(self.ids))


class NotificationMarkReadResponse(BaseModel):
    updated: int


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: str
    event_kind: str | None = None
    channel: Channel
    status: NotificationStatus
    subject: str | None = None
    body: str
    created_at: datetime | None = None
    sent_at: datetime | None = None
    error_message: str | None = None
    is_read: bool = False


class NotificationList(BaseModel):
    notifications: list[NotificationRead]
    unread_count: int


class NotificationStatistics(BaseModel):
    pending: int = 0
    sent: int = 0
    failed: int = 0
    total: int = 0
