"""Persistence helpers for notification attempt records."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Iterable

from sqlalchemy import false, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from outage_notify.domain.entities import Channel, Notification, NotificationStatus
from outage_notify.domain.errors import DuplicateNotificationError, PersistenceError
from outage_notify.infrastructure.models import NotificationModel
from outage_notify.utils import ensure_naive_utc, ensure_utc, now_utc


class NotificationRepository:
    """Provide create, transition and query operations for :class:`Notification`."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create_pending(self, notification: Notification) -> Notification:
        """Insert ``notification`` in ``PENDING`` status.

        The ``(event_id, user_id, channel)`` unique constraint is the
        idempotency boundary: a second insert for the same unit raises
        :class:`DuplicateNotificationError`.
        """

        model = NotificationModel()
        self._apply_entity_to_model(model, notification)
        model.status = NotificationStatus.PENDING.value
        model.sent_at = None
        model.error_message = None
        self.session.add(model)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise DuplicateNotificationError(
                "Notification already recorded for this unit",
                event_id=notification.event_id,
                user_id=notification.user_id,
                channel=notification.channel.value,
            ) from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise PersistenceError(
                f"Could not persist notification: {exc}",
                event_id=notification.event_id,
                user_id=notification.user_id,
                channel=notification.channel.value,
            ) from exc
        self.session.refresh(model)
        return self._to_entity(model)

    def mark_sent(self, notification_id: int, *, sent_at: datetime | None = None) -> bool:
        """Transition a pending record to ``SENT``; return ``False`` if it was final."""

        return self._transition(
            notification_id,
            {
                NotificationModel.status: NotificationStatus.SENT.value,
                NotificationModel.sent_at: ensure_naive_utc(sent_at or now_utc()),
            },
        )

    def mark_failed(self, notification_id: int, *, error_message: str) -> bool:
        """Transition a pending record to ``FAILED`` with ``error_message``."""

        return self._transition(
            notification_id,
            {
                NotificationModel.status: NotificationStatus.FAILED.value,
                NotificationModel.error_message: error_message[:2000],
            },
        )

    def get(self, notification_id: int) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model else None

    def list_for_event(self, event_id: str) -> Sequence[Notification]:
        query = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.event_id == event_id)
            .order_by(NotificationModel.id.asc())
        )
        return [self._to_entity(model) for model in query.all()]

    def list_for_user(
        self,
        user_id: str,
        *,
        limit: int | None = 20,
        unread_only: bool = False,
    ) -> Sequence[Notification]:
        query = self.session.query(NotificationModel)
        query = query.filter(NotificationModel.user_id == user_id)
        if unread_only:
            query = query.filter(NotificationModel.is_read == false())
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def count_unread(self, user_id: str) -> int:
        return (
            self.session.query(func.count(NotificationModel.id))
            .filter(NotificationModel.user_id == user_id)
            .filter(NotificationModel.is_read == false())
            .scalar()
            or 0
        )

    def mark_as_read(
        self, notification_ids: Iterable[int], *, user_id: str, read: bool = True
    ) -> int:
        ids = [notification_id for notification_id in notification_ids if notification_id is not None]
        if not ids:
            return 0
        updated = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.id.in_(ids),
                NotificationModel.user_id == user_id,
            )
            .update({NotificationModel.is_read: read}, synchronize_session="fetch")
        )
        self.session.commit()
        return int(updated or 0)

    def statistics(self, *, event_id: str | None = None) -> dict[str, int]:
        query = self.session.query(NotificationModel.status, func.count(NotificationModel.id))
        if event_id is not None:
            query = query.filter(NotificationModel.event_id == event_id)
        counts = {status: count for status, count in query.group_by(NotificationModel.status).all()}
        stats = {status.value: int(counts.get(status.value, 0)) for status in NotificationStatus}
        stats["total"] = sum(stats.values())
        return stats

    def list_stale_pending(self, *, older_than: datetime) -> Sequence[Notification]:
        """Return pending records created before ``older_than``.

        These are left behind when the process stops between persisting a
        record and recording the delivery outcome.
        """

        query = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.status == NotificationStatus.PENDING.value)
            .filter(NotificationModel.created_at < ensure_naive_utc(older_than))
            .order_by(NotificationModel.created_at.asc())
        )
        return [self._to_entity(model) for model in query.all()]

    def _transition(self, notification_id: int, values: dict) -> bool:
        try:
            updated = (
                self.session.query(NotificationModel)
                .filter(NotificationModel.id == notification_id)
                .filter(NotificationModel.status == NotificationStatus.PENDING.value)
                .update(values, synchronize_session="fetch")
            )
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise PersistenceError(
                f"Could not update notification status: {exc}",
                notification_id=notification_id,
            ) from exc
        return bool(updated)

    @staticmethod
    def _apply_entity_to_model(model: NotificationModel, notification: Notification) -> None:
        model.event_id = notification.event_id
        model.event_kind = notification.event_kind
        model.user_id = notification.user_id
        model.channel = notification.channel.value
        model.recipient = notification.recipient
        model.subject = notification.subject
        model.body = notification.body
        model.created_at = ensure_naive_utc(notification.created_at or now_utc())
        model.is_read = notification.is_read

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            event_id=model.event_id,
            event_kind=model.event_kind,
            user_id=model.user_id,
            channel=Channel(model.channel),
            status=NotificationStatus(model.status),
            recipient=model.recipient,
            subject=model.subject,
            body=model.body,
            created_at=ensure_utc(model.created_at),
            sent_at=ensure_utc(model.sent_at),
            error_message=model.error_message,
            is_read=bool(model.is_read),
        )


__all__ = ["NotificationRepository"]
