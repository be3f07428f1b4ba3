"""Error taxonomy for the notification engine.

Soft errors (recipient resolution, missing templates, rendering, delivery)
are logged and never abort sibling work. ``PersistenceError`` is hard for a
single unit: when the attempt record cannot be written, delivery must not
proceed.
"""

from __future__ import annotations


class NotificationError(Exception):
    """Base class for engine errors carrying structured context."""

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = {key: value for key, value in context.items() if value is not None}

    def __str__(self) -> str:
        return self.message


class RecipientResolutionError(NotificationError):
    """The affected-user directory could not be queried."""


class TemplateNotFoundError(NotificationError):
    """No active template exists for an ``(event kind, channel)`` pair."""


class RenderError(NotificationError):
    """A template could not be rendered."""


class DeliveryError(NotificationError):
    """A channel adapter failed to hand the message to its transport."""


class DeliveryNotStartedError(NotificationError):
    """A delivery was abandoned before its channel adapter was ever called."""


class PersistenceError(NotificationError):
    """A notification or debounce record could not be written."""


class DuplicateNotificationError(PersistenceError):
    """An attempt record already exists for the ``(event, user, channel)`` unit."""


class PreferenceValidationError(ValueError):
    """A preference update contains invalid values."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


__all__ = [
    "DeliveryError",
    "DeliveryNotStartedError",
    "DuplicateNotificationError",
    "NotificationError",
    "PersistenceError",
    "PreferenceValidationError",
    "RecipientResolutionError",
    "RenderError",
    "TemplateNotFoundError",
]
