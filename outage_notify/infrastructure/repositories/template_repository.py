"""Persistence layer for message templates."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from sqlalchemy import true
from sqlalchemy.orm import Session

from outage_notify.domain.entities import Channel, EventKind, Template
from outage_notify.infrastructure.models import NotificationTemplateModel


class TemplateRepository:
    """Provide CRUD operations for templates."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, *, active_only: bool = True) -> Sequence[Template]:
        query = self.session.query(NotificationTemplateModel)
        if active_only:
            query = query.filter(NotificationTemplateModel.is_active == true())
        query = query.order_by(NotificationTemplateModel.id.asc())
        return [self._to_entity(model) for model in query.all()]

    def get_for(self, event_kind: EventKind, channel: Channel) -> Template | None:
        model = (
            self.session.query(NotificationTemplateModel)
            .filter(NotificationTemplateModel.event_kind == event_kind.value)
            .filter(NotificationTemplateModel.channel == channel.value)
            .filter(NotificationTemplateModel.is_active == true())
            .order_by(NotificationTemplateModel.id.desc())
            .first()
        )
        return self._to_entity(model) if model else None

    def get_by_name(self, name: str) -> Template | None:
        model = (
            self.session.query(NotificationTemplateModel)
            .filter(NotificationTemplateModel.name == name)
            .one_or_none()
        )
        return self._to_entity(model) if model else None

    def create(self, template: Template) -> Template:
        model = NotificationTemplateModel()
        self._apply_entity_to_model(model, template)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def set_active(self, name: str, is_active: bool) -> Template | None:
        model = (
            self.session.query(NotificationTemplateModel)
            .filter(NotificationTemplateModel.name == name)
            .one_or_none()
        )
        if model is None:
            return None
        model.is_active = is_active
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def ensure_defaults(self, templates: Iterable[Template]) -> int:
        """Insert each template whose name is not stored yet; return how many."""

        existing = {
            name for (name,) in self.session.query(NotificationTemplateModel.name).all()
        }
        created = 0
        for template in templates:
            if template.name in existing:
                continue
            model = NotificationTemplateModel()
            self._apply_entity_to_model(model, template)
            self.session.add(model)
            existing.add(template.name)
            created += 1
        if created:
            self.session.commit()
        return created

    @staticmethod
    def _apply_entity_to_model(model: NotificationTemplateModel, template: Template) -> None:
        model.name = template.name
        model.event_kind = template.event_kind.value
        model.channel = template.channel.value
        model.subject_template = template.subject_template
        model.body_template = template.body_template
        model.variables = list(template.variables or [])
        model.is_active = template.is_active

    @staticmethod
    def _to_entity(model: NotificationTemplateModel) -> Template:
        return Template(
            id=model.id,
            name=model.name,
            event_kind=EventKind(model.event_kind),
            channel=Channel(model.channel),
            subject_template=model.subject_template,
            body_template=model.body_template,
            variables=list(model.variables or []),
            is_active=bool(model.is_active),
        )


__all__ = ["TemplateRepository"]
