"""Domain entities exposed by the application."""

from .channel import SUPPORTED_CHANNELS, Channel
from .event import Event, EventKind
from .notification import Notification, NotificationStatus
from .outage import (
    ACTIVE_OUTAGE_STATUSES,
    UPDATABLE_OUTAGE_FIELDS,
    OutageEvent,
    OutageStatus,
)
from .preference import DEFAULT_TIMEZONE, NotificationPreference
from .recipient import Recipient
from .severity import Severity, severity_ordinal
from .template import Template
from .threshold import ThresholdClaim, ThresholdState, UsageCap

__all__ = [
    "Channel",
    "SUPPORTED_CHANNELS",
    "Event",
    "EventKind",
    "Notification",
    "NotificationStatus",
    "ACTIVE_OUTAGE_STATUSES",
    "OutageEvent",
    "OutageStatus",
    "UPDATABLE_OUTAGE_FIELDS",
    "DEFAULT_TIMEZONE",
    "NotificationPreference",
    "Recipient",
    "Severity",
    "severity_ordinal",
    "Template",
    "ThresholdClaim",
    "ThresholdState",
    "UsageCap",
]
