"""Affected-user directory backed by the subscriber table."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from outage_notify.domain.entities import Recipient
from outage_notify.domain.errors import RecipientResolutionError
from outage_notify.infrastructure.repositories import SubscriberRepository


class SubscriberDirectory:
    """Resolve affected users with a short-lived session per lookup."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def resolve_affected_users(
        self, regions: Sequence[str], services: Sequence[str]
    ) -> Sequence[Recipient]:
        try:
            with self._session_factory() as session:
                return SubscriberRepository(session).resolve_affected_users(regions, services)
        except SQLAlchemyError as exc:
            raise RecipientResolutionError(
                f"Subscriber lookup failed: {exc}",
                regions=",".join(regions),
                services=",".join(services),
            ) from exc

    def get_user(self, user_id: str) -> Recipient | None:
        try:
            with self._session_factory() as session:
                return SubscriberRepository(session).get_user(user_id)
        except SQLAlchemyError as exc:
            raise RecipientResolutionError(
                f"Subscriber lookup failed: {exc}", user_id=user_id
            ) from exc


__all__ = ["SubscriberDirectory"]
