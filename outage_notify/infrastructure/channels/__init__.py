"""Channel delivery adapters."""

from __future__ import annotations

from outage_notify.config import Settings
from outage_notify.domain.entities import Channel

from .email import SendGridEmailAdapter
from .logging_adapter import LoggingChannelAdapter
from .realtime import (
    InAppChannelAdapter,
    NotificationConnectionManager,
    notification_manager,
    serialize_notification,
)


def build_default_channels(
    settings: Settings | None = None,
    manager: NotificationConnectionManager | None = None,
) -> dict[Channel, object]:
    """Return the adapters used by the running application, keyed by channel."""

    return {
        Channel.EMAIL: SendGridEmailAdapter(settings),
        Channel.SMS: LoggingChannelAdapter(Channel.SMS.value),
        Channel.IN_APP: InAppChannelAdapter(manager or notification_manager),
        Channel.PUSH: LoggingChannelAdapter(Channel.PUSH.value),
    }


__all__ = [
    "InAppChannelAdapter",
    "LoggingChannelAdapter",
    "NotificationConnectionManager",
    "SendGridEmailAdapter",
    "build_default_channels",
    "notification_manager",
    "serialize_notification",
]
