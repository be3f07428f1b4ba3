"""Domain entity holding a user's notification preferences."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time

from .channel import Channel
from .severity import Severity

DEFAULT_TIMEZONE = "UTC"


@dataclass
class NotificationPreference:
    """Channel toggles, category toggles, severity floor and quiet hours."""

    user_id: str
    email_enabled: bool = True
    sms_enabled: bool = False
    in_app_enabled: bool = True
    push_enabled: bool = False
    outage_notifications: bool = True
    maintenance_notifications: bool = True
    billing_notifications: bool = True
    marketing_notifications: bool = False
    minimum_severity: Severity = Severity.MEDIUM
    quiet_hours_start: time | None = None
    quiet_hours_end: time | None = None
    phone_number: str | None = None
    timezone: str = DEFAULT_TIMEZONE
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def defaults(cls, user_id: str) -> "NotificationPreference":
        """Preferences applied to a user who never saved any."""

        return cls(user_id=user_id)

    def channel_enabled(self, channel: Channel) -> bool:
        if channel is Channel.EMAIL:
            return self.email_enabled
        if channel is Channel.SMS:
            return self.sms_enabled and bool((self.phone_number or "").strip())
        if channel is Channel.IN_APP:
            return self.in_app_enabled
        if channel is Channel.PUSH:
            return self.push_enabled
        return False

    @property
    def has_quiet_hours(self) -> bool:
        return self.quiet_hours_start is not None and self.quiet_hours_end is not None


__all__ = ["DEFAULT_TIMEZONE", "NotificationPreference"]
