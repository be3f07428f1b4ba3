"""Schemas for outage and usage event ingestion."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from outage_notify.domain.entities import EventKind, Severity

_OUTAGE_KINDS = tuple(kind.value for kind in EventKind if kind.is_outage)


class OutageEventCreate(BaseModel):
    """Payload describing an outage lifecycle change."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1, max_length=200)
    kind: EventKind = EventKind.OUTAGE_STARTED
    severity: Severity
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    affected_services: list[str] = Field(default_factory=list)
    affected_regions: list[str] = Field(default_factory=list)
    estimated_resolution: datetime | None = None
    actual_resolution: datetime | None = None

    @field_validator("kind")
    @classmethod
    def _outage_kind_only(cls, value: EventKind) -> EventKind:
        if not value.is_outage:
            raise ValueError(f"kind must be one of: {', '.join(_OUTAGE_KINDS)}")
        return value

    @field_validator("severity", mode="before")
    @classmethod
    def _parse_severity(cls, value: object) -> Severity:
        return Severity.parse(value)  # type: ignore[arg-type]

    @field_validator("affected_services", "affected_regions")
    @classmethod
    def _strip_names(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item and item.strip()]


class EventAccepted(BaseModel):
    event_id: str
    status: str = "accepted"


class UsageUpdate(BaseModel):
    """A recomputed usage reading for one cap."""

    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., min_length=1)
    cap_id: str = Field(..., min_length=1)
    usage_percent: float = Field(..., ge=0, allow_inf_nan=False)


class UsageEvaluation(BaseModel):
    user_id: str
    cap_id: str
    usage_percent: float
    notified_thresholds: list[int]
