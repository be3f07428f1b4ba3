from .event import EventAccepted, OutageEventCreate, UsageEvaluation, UsageUpdate
from .notification import (
    NotificationList,
    NotificationMarkReadRequest,
    NotificationMarkReadResponse,
    NotificationRead,
    NotificationStatistics,
)
from .outage import (
    OutageEventCreateRequest,
    OutageEventList,
    OutageEventRead,
    OutageEventUpdateRequest,
)
from .preference import PreferenceRead, PreferenceUpdate

__all__ = [
    "EventAccepted",
    "NotificationList",
    "NotificationMarkReadRequest",
    "NotificationMarkReadResponse",
    "NotificationRead",
    "NotificationStatistics",
    "OutageEventCreate",
    "OutageEventCreateRequest",
    "OutageEventList",
    "OutageEventRead",
    "OutageEventUpdateRequest",
    "PreferenceRead",
    "PreferenceUpdate",
    "UsageEvaluation",
    "UsageUpdate",
]
