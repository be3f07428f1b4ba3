"""Schemas for tracked outages."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from outage_notify.domain.entities import OutageEvent, OutageStatus, Severity


def _clean_names(value: list[str] | None) -> list[str] | None:
    if value is None:
        return None
    return [item.strip() for item in value if item and item.strip()]


class OutageEventCreateRequest(BaseModel):
    """Payload used to open a new outage."""

    model_config = ConfigDict(extra="forbid")

    id: str | None = Field(default=None, min_length=1, max_length=64)
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    severity: Severity
    status: OutageStatus = OutageStatus.INVESTIGATING
    affected_services: list[str] = Field(default_factory=list)
    affected_regions: list[str] = Field(default_factory=list)
    estimated_resolution: datetime | None = None

    @field_validator("severity", mode="before")
    @classmethod
    def _parse_severity(cls, value: object) -> Severity:
        return Severity.parse(value)  # type: ignore[arg-type]

    @field_validator("affected_services", "affected_regions")
    @classmethod
    def _strip_names(cls, value: list[str] | None) -> list[str] | None:
        return _clean_names(value)

    def to_entity(self) -> OutageEvent:
        return OutageEvent(
            id=self.id,
            title=self.title.strip(),
            description=self.description.strip(),
            severity=self.severity,
            status=self.status,
            affected_services=list(self.affected_services),
            affected_regions=list(self.affected_regions),
            estimated_resolution=self.estimated_resolution,
        )


class OutageEventUpdateRequest(BaseModel):
    """Partial update of an outage; only provided fields change."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    severity: Severity | None = None
    status: OutageStatus | None = None
    affected_services: list[str] | None = None
    affected_regions: list[str] | None = None
    estimated_resolution: datetime | None = None
    actual_resolution: datetime | None = None

    @field_validator("severity", mode="before")
    @classmethod
    def _parse_severity(cls, value: object) -> Severity | None:
        if value is None:
            return None
        return Severity.parse(value)  # type: ignore[arg-type]

    @field_validator("affected_services", "affected_regions")
    @classmethod
    def _strip_names(cls, value: list[str] | None) -> list[str] | None:
        return _clean_names(value)

    def to_changes(self) -> dict[str, Any]:
        """Return the provided fields; explicit nulls only clear the resolution times."""

        changes = self.model_dump(exclude_unset=True)
        nullable = {"estimated_resolution", "actual_resolution"}
        return {
            key: value for key, value in changes.items() if value is not None or key in nullable
        }


class OutageEventRead(BaseModel):
    """Representation of a stored outage."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    status: OutageStatus
    severity: Severity
    affected_services: list[str]
    affected_regions: list[str]
    estimated_resolution: datetime | None = None
    actual_resolution: datetime | None = None
    revision: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OutageEventList(BaseModel):
    events: list[OutageEventRead]
