"""Domain entity representing a message template."""

from dataclasses import dataclass, field

from .channel import Channel
from .event import EventKind


@dataclass
class Template:
    """Subject and body patterns for one ``(event kind, channel)`` pair."""

    name: str
    event_kind: EventKind
    channel: Channel
    body_template: str
    subject_template: str | None = None
    variables: list[str] = field(default_factory=list)
    is_active: bool = True
    id: int | None = None


__all__ = ["Template"]
