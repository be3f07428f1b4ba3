"""Persistence layer for notification preferences."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from outage_notify.domain.entities import NotificationPreference, Severity
from outage_notify.infrastructure.models import NotificationPreferenceModel
from outage_notify.utils import ensure_naive_utc, ensure_utc, now_utc

_UPDATABLE_FIELDS = (
    "email_enabled",
    "sms_enabled",
    "in_app_enabled",
    "push_enabled",
    "outage_notifications",
    "maintenance_notifications",
    "billing_notifications",
    "marketing_notifications",
    "minimum_severity",
    "quiet_hours_start",
    "quiet_hours_end",
    "phone_number",
    "timezone",
)


class PreferenceRepository:
    """Provide read, lazy-create and update operations for preferences."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> NotificationPreference | None:
        model = self._get_model(user_id)
        return self._to_entity(model) if model else None

    def create_default(self, user_id: str) -> NotificationPreference:
        """Persist the default preferences for ``user_id``.

        Two callers racing to create the same row both end up with the stored
        preferences: the loser of the unique-constraint race re-reads.
        """

        entity = NotificationPreference.defaults(user_id)
        now = ensure_naive_utc(now_utc())
        model = NotificationPreferenceModel(created_at=now, updated_at=now)
        self._apply_entity_to_model(model, entity)
        self.session.add(model)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            existing = self._get_model(user_id)
            if existing is None:
                raise
            return self._to_entity(existing)
        self.session.refresh(model)
        return self._to_entity(model)

    def get_or_create(self, user_id: str) -> NotificationPreference:
        return self.get(user_id) or self.create_default(user_id)

    def update(self, user_id: str, patch: Mapping[str, Any]) -> NotificationPreference:
        """Apply the already validated ``patch`` and return the stored preferences."""

        model = self._get_model(user_id)
        if model is None:
            self.create_default(user_id)
            model = self._get_model(user_id)
        assert model is not None

        for field_name in _UPDATABLE_FIELDS:
            if field_name not in patch:
                continue
            value = patch[field_name]
            if field_name == "minimum_severity" and value is not None:
                value = Severity.parse(value).value
            setattr(model, field_name, value)
        model.updated_at = ensure_naive_utc(now_utc())
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def _get_model(self, user_id: str) -> NotificationPreferenceModel | None:
        return (
            self.session.query(NotificationPreferenceModel)
            .filter(NotificationPreferenceModel.user_id == user_id)
            .one_or_none()
        )

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationPreferenceModel, preference: NotificationPreference
    ) -> None:
        model.user_id = preference.user_id
        model.email_enabled = preference.email_enabled
        model.sms_enabled = preference.sms_enabled
        model.in_app_enabled = preference.in_app_enabled
        model.push_enabled = preference.push_enabled
        model.outage_notifications = preference.outage_notifications
        model.maintenance_notifications = preference.maintenance_notifications
        model.billing_notifications = preference.billing_notifications
        model.marketing_notifications = preference.marketing_notifications
        model.minimum_severity = preference.minimum_severity.value
        model.quiet_hours_start = preference.quiet_hours_start
        model.quiet_hours_end = preference.quiet_hours_end
        model.phone_number = preference.phone_number
        model.timezone = preference.timezone

    @staticmethod
    def _to_entity(model: NotificationPreferenceModel) -> NotificationPreference:
        return NotificationPreference(
            id=model.id,
            user_id=model.user_id,
            email_enabled=bool(model.email_enabled),
            sms_enabled=bool(model.sms_enabled),
            in_app_enabled=bool(model.in_app_enabled),
            push_enabled=bool(model.push_enabled),
            outage_notifications=bool(model.outage_notifications),
            maintenance_notifications=bool(model.maintenance_notifications),
            billing_notifications=bool(model.billing_notifications),
            marketing_notifications=bool(model.marketing_notifications),
            minimum_severity=Severity.parse(model.minimum_severity),
            quiet_hours_start=model.quiet_hours_start,
            quiet_hours_end=model.quiet_hours_end,
            phone_number=model.phone_number,
            timezone=model.timezone or "UTC",
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at),
        )


__all__ = ["PreferenceRepository"]
