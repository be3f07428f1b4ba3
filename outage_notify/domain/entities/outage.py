"""Domain entity describing a tracked service outage."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .event import Event, EventKind
from .severity import Severity


class OutageStatus(str, Enum):
    INVESTIGATING = "investigating"
    IDENTIFIED = "identified"
    MONITORING = "monitoring"
    RESOLVED = "resolved"

    @property
    def is_active(self) -> bool:
        return self is not OutageStatus.RESOLVED


ACTIVE_OUTAGE_STATUSES = tuple(status for status in OutageStatus if status.is_active)

UPDATABLE_OUTAGE_FIELDS = (
    "title",
    "description",
    "status",
    "severity",
    "affected_services",
    "affected_regions",
    "estimated_resolution",
    "actual_resolution",
)


@dataclass
class OutageEvent:
    """A persisted outage whose lifecycle changes notify affected users.

    ``revision`` grows with every stored change so each change produces a
    distinct notification event.
    """

    id: str | None
    title: str
    severity: Severity
    description: str = ""
    status: OutageStatus = OutageStatus.INVESTIGATING
    affected_services: list[str] = field(default_factory=list)
    affected_regions: list[str] = field(default_factory=list)
    estimated_resolution: datetime | None = None
    actual_resolution: datetime | None = None
    revision: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    def notification_event(self, kind: EventKind) -> Event:
        """Build the lifecycle event announcing this revision of the outage."""

        if not kind.is_outage:
            raise ValueError(f"{kind.value} is not an outage event kind")
        if self.id is None:
            raise ValueError("Outage must be stored before it can be announced")
        return Event(
            id=f"outage:{self.id}:{kind.value}:{self.revision}",
            kind=kind,
            severity=self.severity,
            affected_services=tuple(self.affected_services),
            affected_regions=tuple(self.affected_regions),
            title=self.title,
            description=self.description,
            estimated_resolution=self.estimated_resolution,
            actual_resolution=self.actual_resolution,
        )


__all__ = ["ACTIVE_OUTAGE_STATUSES", "OutageEvent", "OutageStatus", "UPDATABLE_OUTAGE_FIELDS"]
