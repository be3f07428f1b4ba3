"""Usage-threshold debounce: one alert per threshold per cooldown window."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from outage_notify.domain.entities import Event, EventKind
from outage_notify.domain.errors import PersistenceError
from outage_notify.infrastructure.repositories import ThresholdStateRepository
from outage_notify.utils import ensure_utc, now_utc

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN = timedelta(hours=24)


def cooldown_elapsed(
    last_notified_at: datetime | None, now: datetime, cooldown: timedelta = DEFAULT_COOLDOWN
) -> bool:
    """Return whether a threshold last notified at ``last_notified_at`` may notify at ``now``."""

    if last_notified_at is None:
        return True
    return ensure_utc(now) - ensure_utc(last_notified_at) >= cooldown


def usage_event_id(user_id: str, cap_id: str, threshold: int, claimed_at: datetime) -> str:
    return f"usage:{user_id}:{cap_id}:{threshold}:{ensure_utc(claimed_at).isoformat()}"


class ThresholdDebounceTracker:
    """Turn a usage reading into ``usage_threshold_crossed`` events.

    Every threshold at or below the new usage is claimed on its own through
    an atomic compare-and-set, so a jump across several thresholds yields
    one event per threshold and concurrent readings never both win the same
    threshold.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        cooldown: timedelta = DEFAULT_COOLDOWN,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self._session_factory = session_factory
        self._cooldown = cooldown
        self._clock = clock

    @property
    def cooldown(self) -> timedelta:
        return self._cooldown

    def evaluate(
        self,
        user_id: str,
        cap_id: str,
        usage_percent: float,
        thresholds: Iterable[int],
    ) -> list[Event]:
        now = self._clock()
        events: list[Event] = []
        for threshold in sorted({int(value) for value in thresholds}):
            if usage_percent < threshold:
                continue
            try:
                with self._session_factory() as session:
                    claim = ThresholdStateRepository(session).try_claim(
                        user_id=user_id,
                        cap_id=cap_id,
                        threshold_percent=threshold,
                        now=now,
                        cooldown=self._cooldown,
                        usage_percent=usage_percent,
                    )
            except PersistenceError as exc:
                logger.error(
                    "Could not record threshold %s%% for cap %s: %s",
                    threshold,
                    cap_id,
                    exc,
                    extra={"user_id": user_id, "cap_id": cap_id},
                )
                continue

            if not claim.admitted:
                logger.debug(
                    "Threshold %s%% for cap %s still cooling down", threshold, cap_id
                )
                continue

            assert claim.claimed_at is not None
            events.append(
                Event(
                    id=usage_event_id(user_id, cap_id, threshold, claim.claimed_at),
                    kind=EventKind.USAGE_THRESHOLD_CROSSED,
                    subject_user_id=user_id,
                    title=f"Data usage reached {threshold}%",
                    cap_id=cap_id,
                    threshold_percent=threshold,
                    usage_percent=usage_percent,
                    claimed_at=claim.claimed_at,
                )
            )
        return events


__all__ = [
    "DEFAULT_COOLDOWN",
    "ThresholdDebounceTracker",
    "cooldown_elapsed",
    "usage_event_id",
]
