"""Lookup of message templates by event kind and channel."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.orm import Session

from outage_notify.domain.entities import Channel, EventKind, Template
from outage_notify.domain.errors import TemplateNotFoundError
from outage_notify.infrastructure.repositories import TemplateRepository


class TemplateRegistry:
    """In-memory snapshot of the active templates.

    A dispatch works against one snapshot so every recipient of an event is
    rendered from the same template version.
    """

    def __init__(self, templates: Iterable[Template] = ()) -> None:
        self._templates: dict[tuple[EventKind, Channel], Template] = {}
        for template in templates:
            self.register(template)

    def register(self, template: Template) -> None:
        if not template.is_active:
            return
        self._templates[(template.event_kind, template.channel)] = template

    def get(self, event_kind: EventKind, channel: Channel) -> Template | None:
        return self._templates.get((event_kind, channel))

    def lookup(self, event_kind: EventKind, channel: Channel) -> Template:
        template = self.get(event_kind, channel)
        if template is None:
            raise TemplateNotFoundError(
                f"No active template for {event_kind.value}/{channel.value}",
                event_kind=event_kind.value,
                channel=channel.value,
            )
        return template

    def __len__(self) -> int:
        return len(self._templates)

    def __contains__(self, key: object) -> bool:
        return key in self._templates


def load_template_registry(session: Session) -> TemplateRegistry:
    """Build a registry from the templates currently active in the database."""

    return TemplateRegistry(TemplateRepository(session).list(active_only=True))


__all__ = ["TemplateRegistry", "load_template_registry"]
