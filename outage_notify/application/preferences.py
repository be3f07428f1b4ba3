"""Validation of user supplied preference updates."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from outage_notify.domain.entities import Severity
from outage_notify.domain.errors import PreferenceValidationError
from outage_notify.utils import is_known_timezone, parse_time_of_day

_BOOLEAN_FIELDS = (
    "email_enabled",
    "sms_enabled",
    "in_app_enabled",
    "push_enabled",
    "outage_notifications",
    "maintenance_notifications",
    "billing_notifications",
    "marketing_notifications",
)
_PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]{7,20}$")


def validate_preference_patch(patch: Mapping[str, Any]) -> dict[str, Any]:
    """Return a normalized copy of ``patch`` ready for persistence.

    Unknown keys are dropped. Every problem found is collected and raised at
    once as :class:`PreferenceValidationError`.
    """

    errors: list[str] = []
    normalized: dict[str, Any] = {}

    for field_name in _BOOLEAN_FIELDS:
        if field_name not in patch:
            continue
        value = patch[field_name]
        if not isinstance(value, bool):
            errors.append(f"{field_name} must be a boolean")
            continue
        normalized[field_name] = value

    if "minimum_severity" in patch:
        try:
            normalized["minimum_severity"] = Severity.parse(patch["minimum_severity"])
        except ValueError as exc:
            errors.append(str(exc))

    for field_name in ("quiet_hours_start", "quiet_hours_end"):
        if field_name not in patch:
            continue
        try:
            normalized[field_name] = parse_time_of_day(patch[field_name])
        except (TypeError, ValueError, AttributeError):
            errors.append(f"Invalid time format: {patch[field_name]}. Use HH:MM")

    if "timezone" in patch:
        tz_name = patch["timezone"]
        if not isinstance(tz_name, str) or not is_known_timezone(tz_name):
            errors.append(f"Unknown timezone: {tz_name}")
        else:
            normalized["timezone"] = tz_name.strip()

    if "phone_number" in patch:
        phone = patch["phone_number"]
        if phone is None or (isinstance(phone, str) and not phone.strip()):
            normalized["phone_number"] = None
        elif not isinstance(phone, str) or not _PHONE_PATTERN.match(phone.strip()):
            errors.append(f"Invalid phone number: {phone}")
        else:
            normalized["phone_number"] = phone.strip()

    if errors:
        raise PreferenceValidationError(errors)
    return normalized


__all__ = ["validate_preference_patch"]
