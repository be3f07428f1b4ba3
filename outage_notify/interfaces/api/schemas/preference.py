"""Schemas for notification preference endpoints."""

from __future__ import annotations

from datetime import datetime, time

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from outage_notify.domain.entities import Severity
from outage_notify.utils import parse_time_of_day


class PreferenceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    email_enabled: bool
    sms_enabled: bool
    in_app_enabled: bool
    push_enabled: bool
    outage_notifications: bool
    maintenance_notifications: bool
    billing_notifications: bool
    marketing_notifications: bool
    minimum_severity: Severity
    quiet_hours_start: time | None = None
    quiet_hours_end: time | None = None
    phone_number: str | None = None
    timezone: str
    updated_at: datetime | None = None

    @field_serializer("quiet_hours_start", "quiet_hours_end")
    def _format_time(self, value: time | None) -> str | None:
        return value.strftime("%H:%M") if value is not None else None


class PreferenceUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    model_config = ConfigDict(extra="forbid")

    email_enabled: bool | None = None
    sms_enabled: bool | None = None
    in_app_enabled: bool | None = None
    push_enabled: bool | None = None
    outage_notifications: bool | None = None
    maintenance_notifications: bool | None = None
    billing_notifications: bool | None = None
    marketing_notifications: bool | None = None
    minimum_severity: str | None = None
    quiet_hours_start: str | None = Field(default=None, description="HH:MM")
    quiet_hours_end: str | None = Field(default=None, description="HH:MM")
    phone_number: str | None = None
    timezone: str | None = None

    @field_validator("quiet_hours_start", "quiet_hours_end")
    @classmethod
    def _check_time(cls, value: str | None) -> str | None:
        if value is not None and value.strip():
            parse_time_of_day(value)
        return value

    @field_validator("minimum_severity")
    @classmethod
    def _check_severity(cls, value: str | None) -> str | None:
        if value is not None:
            Severity.parse(value)
        return value

    def to_patch(self) -> dict:
        """Return only the fields the client actually sent.

        Sending ``null`` for a quiet-hours bound or the phone number clears it.
        """

        patch = self.model_dump(exclude_unset=True)
        for key in list(patch):
            if patch[key] is None and key not in (
                "quiet_hours_start",
                "quiet_hours_end",
                "phone_number",
            ):
                patch.pop(key)
        return patch
