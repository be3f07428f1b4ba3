"""Public entry points of the notification engine."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from outage_notify.application.debounce import ThresholdDebounceTracker
from outage_notify.application.dispatcher import Dispatcher, DispatchReport
from outage_notify.application.eligibility import EligibilityEvaluator
from outage_notify.application.ports import AffectedUserDirectory, ChannelAdapter
from outage_notify.application.preferences import validate_preference_patch
from outage_notify.config import Settings, get_settings
from outage_notify.domain.entities import (
    UPDATABLE_OUTAGE_FIELDS,
    Channel,
    Event,
    EventKind,
    Notification,
    NotificationPreference,
    OutageEvent,
    OutageStatus,
)
from outage_notify.infrastructure.repositories import (
    NotificationRepository,
    OutageEventRepository,
    PreferenceRepository,
    UsageCapRepository,
)
from outage_notify.utils import now_utc

logger = logging.getLogger(__name__)


class NotificationService:
    """Facade used by the HTTP layer and by upstream event producers."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        dispatcher: Dispatcher,
        tracker: ThresholdDebounceTracker,
        *,
        default_thresholds: Iterable[int] = (80, 90, 100),
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self._session_factory = session_factory
        self._dispatcher = dispatcher
        self._tracker = tracker
        self._default_thresholds = tuple(sorted({int(value) for value in default_thresholds}))
        self._clock = clock

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    def close(self) -> None:
        self._dispatcher.close()

    def dispatch_outage_event(self, event: Event) -> None:
        """Notify every affected user about ``event``. Never raises."""

        self._dispatch(event)

    def _dispatch(self, event: Event) -> DispatchReport | None:
        try:
            return self._dispatcher.dispatch(event)
        except Exception as exc:
            logger.error(
                "Dispatch of event %s aborted: %s",
                event.id,
                exc,
                exc_info=exc,
                extra={"event_id": event.id, "event_kind": event.kind.value},
            )
            return None

    def create_outage_event(self, outage: OutageEvent) -> OutageEvent:
        """Store a new outage and announce it to the affected users.

        An outage recorded as already resolved is announced as resolved,
        any other status as started.
        """

        if not outage.title.strip():
            raise ValueError("Outage title is required")
        if not outage.is_active and outage.actual_resolution is None:
            outage = replace(outage, actual_resolution=self._clock())
        outage = replace(outage, created_at=outage.created_at or self._clock())

        with self._session_factory() as session:
            stored = OutageEventRepository(session).create(outage)
        logger.info(
            "Created outage event %s (%s)",
            stored.id,
            stored.status.value,
            extra={"outage_id": stored.id},
        )
        kind = EventKind.OUTAGE_STARTED if stored.is_active else EventKind.OUTAGE_RESOLVED
        self._dispatch(stored.notification_event(kind))
        return stored

    def update_outage_event(
        self, outage_id: str, changes: Mapping[str, Any]
    ) -> OutageEvent | None:
        """Apply ``changes`` to a stored outage and announce the change.

        Moving to ``resolved`` announces the resolution and fills
        ``actual_resolution`` when the caller did not. Returns ``None`` for an
        unknown outage.
        """

        unknown = sorted(set(changes) - set(UPDATABLE_OUTAGE_FIELDS))
        if unknown:
            raise ValueError(f"Unknown outage fields: {', '.join(unknown)}")
        changes = dict(changes)
        if "status" in changes:
            changes["status"] = OutageStatus(changes["status"])
        if "title" in changes and not str(changes["title"] or "").strip():
            raise ValueError("Outage title is required")

        now = self._clock()
        with self._session_factory() as session:
            repository = OutageEventRepository(session)
            current = repository.get(outage_id)
            if current is None:
                return None
            status = changes.get("status", current.status)
            resolving = current.is_active and not status.is_active
            if resolving and changes.get("actual_resolution") is None:
                changes["actual_resolution"] = now
            elif status.is_active and not current.is_active:
                changes.setdefault("actual_resolution", None)
            updated = repository.update(outage_id, changes, updated_at=now)
        assert updated is not None

        logger.info(
            "Updated outage event %s to revision %s (%s)",
            outage_id,
            updated.revision,
            updated.status.value,
            extra={"outage_id": outage_id},
        )
        kind = EventKind.OUTAGE_RESOLVED if resolving else EventKind.OUTAGE_UPDATED
        self._dispatch(updated.notification_event(kind))
        return updated

    def get_outage_event(self, outage_id: str) -> OutageEvent | None:
        with self._session_factory() as session:
            return OutageEventRepository(session).get(outage_id)

    def list_active_outage_events(self) -> list[OutageEvent]:
        with self._session_factory() as session:
            return list(OutageEventRepository(session).list_active())

    def list_outage_events(self, *, limit: int | None = 50) -> list[OutageEvent]:
        with self._session_factory() as session:
            return list(OutageEventRepository(session).list_all(limit=limit))

    def evaluate_usage_update(self, user_id: str, cap_id: str, usage_percent: float) -> list[int]:
        """Alert ``user_id`` about every threshold newly crossed on ``cap_id``.

        Returns the thresholds that were admitted past the cooldown and
        dispatched.
        """

        if not user_id or not cap_id:
            raise ValueError("user_id and cap_id are required")
        if usage_percent is None or not math.isfinite(usage_percent) or usage_percent < 0:
            raise ValueError(f"Invalid usage percentage: {usage_percent}")

        thresholds = self._thresholds_for(user_id, cap_id)
        events = self._tracker.evaluate(user_id, cap_id, usage_percent, thresholds)
        for event in events:
            self._dispatch(event)
        return [event.threshold_percent for event in events if event.threshold_percent is not None]

    def _thresholds_for(self, user_id: str, cap_id: str) -> Sequence[int]:
        with self._session_factory() as session:
            cap = UsageCapRepository(session).get_active_for_user(cap_id=cap_id, user_id=user_id)
        if cap is not None and cap.notification_thresholds:
            return cap.notification_thresholds
        return self._default_thresholds

    def list_user_notifications(
        self, user_id: str, *, limit: int | None = 20, unread_only: bool = False
    ) -> list[Notification]:
        with self._session_factory() as session:
            return list(
                NotificationRepository(session).list_for_user(
                    user_id, limit=limit, unread_only=unread_only
                )
            )

    def mark_read(
        self, notification_ids: Iterable[int], user_id: str, *, read: bool = True
    ) -> int:
        with self._session_factory() as session:
            return NotificationRepository(session).mark_as_read(
                notification_ids, user_id=user_id, read=read
            )

    def unread_count(self, user_id: str) -> int:
        with self._session_factory() as session:
            return NotificationRepository(session).count_unread(user_id)

    def notification_statistics(self, event_id: str | None = None) -> dict[str, int]:
        with self._session_factory() as session:
            return NotificationRepository(session).statistics(event_id=event_id)

    def list_stale_pending(self, older_than: datetime | None = None) -> list[Notification]:
        cutoff = older_than or now_utc() - timedelta(minutes=15)
        with self._session_factory() as session:
            return list(NotificationRepository(session).list_stale_pending(older_than=cutoff))

    def get_preferences(self, user_id: str) -> NotificationPreference:
        with self._session_factory() as session:
            return PreferenceRepository(session).get_or_create(user_id)

    def update_preferences(
        self, user_id: str, patch: Mapping[str, Any]
    ) -> NotificationPreference:
        """Validate ``patch`` and store it; raises ``PreferenceValidationError``."""

        normalized = validate_preference_patch(patch)
        with self._session_factory() as session:
            preference = PreferenceRepository(session).update(user_id, normalized)
        logger.info(
            "Updated notification preferences for %s",
            user_id,
            extra={"user_id": user_id, "fields": sorted(normalized)},
        )
        return preference


def build_notification_service(
    session_factory: Callable[[], Session],
    *,
    settings: Settings | None = None,
    directory: AffectedUserDirectory | None = None,
    channels: Mapping[Channel, ChannelAdapter] | None = None,
    clock: Callable[[], datetime] = now_utc,
) -> NotificationService:
    """Wire a :class:`NotificationService` from ``settings``.

    ``directory`` defaults to the subscriber table and ``channels`` to the
    SendGrid, websocket and logging adapters.
    """

    from outage_notify.infrastructure.channels import build_default_channels
    from outage_notify.infrastructure.directory import SubscriberDirectory

    settings = settings or get_settings()
    dispatcher = Dispatcher(
        session_factory,
        directory or SubscriberDirectory(session_factory),
        channels if channels is not None else build_default_channels(settings),
        evaluator=EligibilityEvaluator(clock=clock),
        status_page_url=settings.status_page_url,
        max_workers=settings.dispatch_max_workers,
        delivery_timeout=settings.delivery_timeout_seconds,
        clock=clock,
    )
    tracker = ThresholdDebounceTracker(
        session_factory,
        cooldown=timedelta(hours=settings.threshold_cooldown_hours),
        clock=clock,
    )
    return NotificationService(
        session_factory,
        dispatcher,
        tracker,
        default_thresholds=settings.default_usage_thresholds,
        clock=clock,
    )


__all__ = ["NotificationService", "build_notification_service"]
