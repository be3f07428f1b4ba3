"""Persistence layer for tracked outages."""

from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from outage_notify.domain.entities import (
    ACTIVE_OUTAGE_STATUSES,
    UPDATABLE_OUTAGE_FIELDS,
    OutageEvent,
    OutageStatus,
    Severity,
)
from outage_notify.domain.errors import PersistenceError
from outage_notify.infrastructure.models import OutageEventModel
from outage_notify.utils import ensure_naive_utc, ensure_utc, now_utc


class OutageEventRepository:
    """Provide create, update and query operations for :class:`OutageEvent`."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, outage: OutageEvent) -> OutageEvent:
        model = OutageEventModel(id=outage.id or uuid.uuid4().hex)
        self._apply_entity_to_model(model, outage)
        model.revision = 1
        created_at = ensure_naive_utc(outage.created_at or now_utc())
        model.created_at = created_at
        model.updated_at = created_at
        self.session.add(model)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise PersistenceError(
                f"Outage event {model.id} already exists", outage_id=model.id
            ) from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise PersistenceError(
                f"Could not persist outage event: {exc}", outage_id=model.id
            ) from exc
        self.session.refresh(model)
        return self._to_entity(model)

    def get(self, outage_id: str) -> OutageEvent | None:
        model = self.session.get(OutageEventModel, outage_id)
        return self._to_entity(model) if model else None

    def update(
        self,
        outage_id: str,
        changes: Mapping[str, Any],
        *,
        updated_at: datetime | None = None,
    ) -> OutageEvent | None:
        """Apply ``changes`` and bump the revision; ``None`` when the outage is unknown."""

        model = self.session.get(OutageEventModel, outage_id)
        if model is None:
            return None

        for field_name in UPDATABLE_OUTAGE_FIELDS:
            if field_name not in changes:
                continue
            value = changes[field_name]
            if field_name == "status":
                value = OutageStatus(value).value
            elif field_name == "severity":
                value = Severity.parse(value).value
            elif field_name in ("estimated_resolution", "actual_resolution"):
                value = ensure_naive_utc(value)
            elif field_name in ("affected_services", "affected_regions"):
                value = list(value)
            setattr(model, field_name, value)
        model.revision = OutageEventModel.revision + 1
        model.updated_at = ensure_naive_utc(updated_at or now_utc())
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise PersistenceError(
                f"Could not update outage event: {exc}", outage_id=outage_id
            ) from exc
        self.session.refresh(model)
        return self._to_entity(model)

    def list_active(self) -> Sequence[OutageEvent]:
        active = [status.value for status in ACTIVE_OUTAGE_STATUSES]
        query = (
            self.session.query(OutageEventModel)
            .filter(OutageEventModel.status.in_(active))
            .order_by(OutageEventModel.created_at.desc(), OutageEventModel.id.desc())
        )
        return [self._to_entity(model) for model in query.all()]

    def list_all(self, *, limit: int | None = 50) -> Sequence[OutageEvent]:
        query = self.session.query(OutageEventModel).order_by(
            OutageEventModel.created_at.desc(), OutageEventModel.id.desc()
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    @staticmethod
    def _apply_entity_to_model(model: OutageEventModel, outage: OutageEvent) -> None:
        model.title = outage.title
        model.description = outage.description
        model.status = outage.status.value
        model.severity = outage.severity.value
        model.affected_services = list(outage.affected_services)
        model.affected_regions = list(outage.affected_regions)
        model.estimated_resolution = ensure_naive_utc(outage.estimated_resolution)
        model.actual_resolution = ensure_naive_utc(outage.actual_resolution)

    @staticmethod
    def _to_entity(model: OutageEventModel) -> OutageEvent:
        return OutageEvent(
            id=model.id,
            title=model.title,
            description=model.description or "",
            status=OutageStatus(model.status),
            severity=Severity.parse(model.severity),
            affected_services=list(model.affected_services or []),
            affected_regions=list(model.affected_regions or []),
            estimated_resolution=ensure_utc(model.estimated_resolution),
            actual_resolution=ensure_utc(model.actual_resolution),
            revision=model.revision,
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at),
        )


__all__ = ["OutageEventRepository"]
