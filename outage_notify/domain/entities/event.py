"""Domain entity describing an event that may trigger notifications."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .severity import Severity


class EventKind(str, Enum):
    OUTAGE_STARTED = "outage_started"
    OUTAGE_UPDATED = "outage_updated"
    OUTAGE_RESOLVED = "outage_resolved"
    USAGE_THRESHOLD_CROSSED = "usage_threshold_crossed"

    @property
    def is_outage(self) -> bool:
        return self is not EventKind.USAGE_THRESHOLD_CROSSED


@dataclass(frozen=True)
class Event:
    """An outage lifecycle change or a usage-threshold crossing.

    Usage events carry ``claimed_at``: the timestamp written by the debounce
    tracker when it admitted the crossing. Only claimed usage events clear
    the debounce gate during eligibility evaluation.
    """

    id: str
    kind: EventKind
    severity: Severity | None = None
    affected_services: tuple[str, ...] = field(default_factory=tuple)
    affected_regions: tuple[str, ...] = field(default_factory=tuple)
    subject_user_id: str | None = None
    title: str = ""
    description: str = ""
    estimated_resolution: datetime | None = None
    actual_resolution: datetime | None = None
    cap_id: str | None = None
    threshold_percent: int | None = None
    usage_percent: float | None = None
    claimed_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.kind.is_outage and self.severity is None:
            raise ValueError(f"Outage event {self.id} requires a severity")
        if not self.kind.is_outage and not self.subject_user_id:
            raise ValueError(f"Usage event {self.id} requires a subject user")

    @property
    def effective_severity(self) -> Severity:
        """Severity used for eligibility; usage alerts count as critical."""

        if self.kind is EventKind.USAGE_THRESHOLD_CROSSED or self.severity is None:
            return Severity.CRITICAL
        return self.severity


__all__ = ["Event", "EventKind"]
