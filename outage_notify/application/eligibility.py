"""Per user and channel send decision.

Rules run in order and the first failing rule decides:

1. the channel is enabled (SMS also needs a phone number) and, for outage
   events, the user has not opted out of outage notifications;
2. the event severity reaches the user's minimum severity (usage alerts
   count as critical);
3. non-critical events are held back inside the user's quiet hours,
   evaluated in the user's timezone, on the half-open window
   ``[start, end)``; a window whose start is after its end wraps past
   midnight;
4. usage alerts must carry the claim written by the debounce tracker.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, time
from enum import Enum

from outage_notify.domain.entities import (
    Channel,
    Event,
    EventKind,
    NotificationPreference,
    Severity,
)
from outage_notify.utils import local_time_of_day, now_utc


class SkipReason(str, Enum):
    CHANNEL_DISABLED = "channel_disabled"
    CATEGORY_DISABLED = "category_disabled"
    BELOW_MINIMUM_SEVERITY = "below_minimum_severity"
    QUIET_HOURS = "quiet_hours"
    DEBOUNCED = "debounced"


@dataclass(frozen=True)
class EligibilityDecision:
    eligible: bool
    reason: SkipReason | None = None

    def __bool__(self) -> bool:
        return self.eligible


_ALLOW = EligibilityDecision(eligible=True)


def in_quiet_hours(local_time: time, start: time, end: time) -> bool:
    """Return whether ``local_time`` falls inside ``[start, end)``.

    ``start == end`` is an empty window.
    """

    if start == end:
        return False
    if start < end:
        return start <= local_time < end
    return local_time >= start or local_time < end


class EligibilityEvaluator:
    """Decide whether a user should receive an event on a channel."""

    def __init__(self, clock: Callable[[], datetime] = now_utc) -> None:
        self._clock = clock

    def is_eligible(
        self,
        preference: NotificationPreference,
        event: Event,
        channel: Channel,
        *,
        now: datetime | None = None,
    ) -> bool:
        return self.decide(preference, event, channel, now=now).eligible

    def decide(
        self,
        preference: NotificationPreference,
        event: Event,
        channel: Channel,
        *,
        now: datetime | None = None,
    ) -> EligibilityDecision:
        if not preference.channel_enabled(channel):
            return EligibilityDecision(False, SkipReason.CHANNEL_DISABLED)
        if event.kind.is_outage and not preference.outage_notifications:
            return EligibilityDecision(False, SkipReason.CATEGORY_DISABLED)

        severity = event.effective_severity
        if not severity.at_least(preference.minimum_severity):
            return EligibilityDecision(False, SkipReason.BELOW_MINIMUM_SEVERITY)

        if severity is not Severity.CRITICAL and preference.has_quiet_hours:
            local_time = local_time_of_day(now or self._clock(), preference.timezone)
            assert preference.quiet_hours_start is not None
            assert preference.quiet_hours_end is not None
            if in_quiet_hours(local_time, preference.quiet_hours_start, preference.quiet_hours_end):
                return EligibilityDecision(False, SkipReason.QUIET_HOURS)

        if event.kind is EventKind.USAGE_THRESHOLD_CROSSED and event.claimed_at is None:
            return EligibilityDecision(False, SkipReason.DEBOUNCED)

        return _ALLOW


__all__ = [
    "EligibilityDecision",
    "EligibilityEvaluator",
    "SkipReason",
    "in_quiet_hours",
]
