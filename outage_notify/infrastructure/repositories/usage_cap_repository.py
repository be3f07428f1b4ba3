"""Persistence layer for monthly data caps."""

from __future__ import annotations

from sqlalchemy import true
from sqlalchemy.orm import Session

from outage_notify.domain.entities import UsageCap
from outage_notify.infrastructure.models import UsageCapModel


class UsageCapRepository:
    """Provide lookups and upserts for :class:`UsageCap`."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, cap_id: str) -> UsageCap | None:
        model = self.session.get(UsageCapModel, cap_id)
        return self._to_entity(model) if model else None

    def get_active_for_user(self, *, cap_id: str, user_id: str) -> UsageCap | None:
        model = (
            self.session.query(UsageCapModel)
            .filter(UsageCapModel.id == cap_id)
            .filter(UsageCapModel.user_id == user_id)
            .filter(UsageCapModel.is_active == true())
            .one_or_none()
        )
        return self._to_entity(model) if model else None

    def save(self, cap: UsageCap) -> UsageCap:
        model = self.session.get(UsageCapModel, cap.id) or UsageCapModel(id=cap.id)
        model.user_id = cap.user_id
        model.monthly_cap_gb = cap.monthly_cap_gb
        model.notification_thresholds = sorted({int(value) for value in cap.notification_thresholds})
        model.is_active = cap.is_active
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: UsageCapModel) -> UsageCap:
        return UsageCap(
            id=model.id,
            user_id=model.user_id,
            monthly_cap_gb=model.monthly_cap_gb,
            notification_thresholds=[int(value) for value in model.notification_thresholds or []],
            is_active=bool(model.is_active),
        )


__all__ = ["UsageCapRepository"]
