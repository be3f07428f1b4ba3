"""Interfaces of the collaborators the engine consumes."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from outage_notify.domain.entities import NotificationPreference, Recipient


class AffectedUserDirectory(Protocol):
    def resolve_affected_users(
        self, regions: Sequence[str], services: Sequence[str]
    ) -> Sequence[Recipient]: ...

    def get_user(self, user_id: str) -> Recipient | None: ...


class ChannelAdapter(Protocol):
    """Hands one rendered message to a transport.

    Returning normally means the transport accepted the message; any
    failure is reported by raising :class:`~outage_notify.domain.errors.DeliveryError`.
    """

    def send(self, address: str, subject: str | None, body: str) -> None: ...


class PreferenceStore(Protocol):
    def get(self, user_id: str) -> NotificationPreference | None: ...

    def create_default(self, user_id: str) -> NotificationPreference: ...

    def update(self, user_id: str, patch: Mapping[str, Any]) -> NotificationPreference: ...


__all__ = ["AffectedUserDirectory", "ChannelAdapter", "PreferenceStore"]
