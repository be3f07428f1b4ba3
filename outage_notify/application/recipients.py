"""Computes the set of users affected by an event."""

from __future__ import annotations

import logging

from outage_notify.application.ports import AffectedUserDirectory
from outage_notify.domain.entities import Event, EventKind, Recipient

logger = logging.getLogger(__name__)


class RecipientResolver:
    """Resolve recipients through the affected-user directory.

    Directory failures are logged and yield no recipients, so one broken
    lookup never aborts the dispatch of unrelated events.
    """

    def __init__(self, directory: AffectedUserDirectory) -> None:
        self._directory = directory

    def resolve(self, event: Event) -> list[Recipient]:
        if event.kind is EventKind.USAGE_THRESHOLD_CROSSED:
            return [self._resolve_subject(event)]

        try:
            found = self._directory.resolve_affected_users(
                list(event.affected_regions), list(event.affected_services)
            )
        except Exception as exc:
            logger.error(
                "Affected-user lookup failed for event %s; treating as zero recipients",
                event.id,
                exc_info=exc,
                extra={"event_id": event.id, "error_type": type(exc).__name__},
            )
            return []

        unique: dict[str, Recipient] = {}
        for recipient in found:
            if recipient.user_id and recipient.user_id not in unique:
                unique[recipient.user_id] = recipient
        return list(unique.values())

    def _resolve_subject(self, event: Event) -> Recipient:
        assert event.subject_user_id is not None
        try:
            contact = self._directory.get_user(event.subject_user_id)
        except Exception as exc:
            logger.warning(
                "Contact lookup failed for %s; continuing without contact details",
                event.subject_user_id,
                exc_info=exc,
                extra={"event_id": event.id, "user_id": event.subject_user_id},
            )
            contact = None
        if contact is None:
            return Recipient(user_id=event.subject_user_id)
        return Recipient(
            user_id=event.subject_user_id, email=contact.email, phone=contact.phone
        )


__all__ = ["RecipientResolver"]
