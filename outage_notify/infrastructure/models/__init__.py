"""ORM models used by the application infrastructure."""

from .notification import NotificationModel
from .outage_event import OutageEventModel
from .preference import NotificationPreferenceModel
from .subscriber import SubscriberModel
from .template import NotificationTemplateModel
from .threshold_state import ThresholdStateModel
from .usage_cap import UsageCapModel

__all__ = [
    "NotificationModel",
    "NotificationPreferenceModel",
    "NotificationTemplateModel",
    "OutageEventModel",
    "SubscriberModel",
    "ThresholdStateModel",
    "UsageCapModel",
]
