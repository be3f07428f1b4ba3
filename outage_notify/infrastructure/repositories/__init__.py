"""Repository implementations for infrastructure layer."""

from .notification_repository import NotificationRepository
from .outage_event_repository import OutageEventRepository
from .preference_repository import PreferenceRepository
from .subscriber_repository import SubscriberRepository
from .template_repository import TemplateRepository
from .threshold_repository import ThresholdStateRepository
from .usage_cap_repository import UsageCapRepository

__all__ = [
    "NotificationRepository",
    "OutageEventRepository",
    "PreferenceRepository",
    "SubscriberRepository",
    "TemplateRepository",
    "ThresholdStateRepository",
    "UsageCapRepository",
]
