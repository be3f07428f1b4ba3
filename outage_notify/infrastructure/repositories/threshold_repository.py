"""Persistence layer for usage-threshold debounce state."""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from outage_notify.domain.entities import ThresholdClaim, ThresholdState
from outage_notify.domain.errors import PersistenceError
from outage_notify.infrastructure.models import ThresholdStateModel
from outage_notify.utils import ensure_naive_utc, ensure_utc


class ThresholdStateRepository:
    """Read and atomically claim ``(user, cap, threshold)`` debounce rows."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def try_claim(
        self,
        *,
        user_id: str,
        cap_id: str,
        threshold_percent: int,
        now: datetime,
        cooldown: timedelta,
        usage_percent: float | None = None,
    ) -> ThresholdClaim:
        """Record ``now`` as the last notification time if the cooldown allows it.

        The claim is a compare-and-set against the stored row, never a read
        followed by a write: a conditional ``UPDATE`` moves an expired row
        forward, and when nothing was updated an ``INSERT`` guarded by the
        unique key creates the first row. A unique violation means another
        writer holds the threshold inside its cooldown.
        """

        claimed_at = ensure_naive_utc(now)
        assert claimed_at is not None
        cutoff = claimed_at - cooldown
        try:
            updated = (
                self.session.query(ThresholdStateModel)
                .filter(ThresholdStateModel.user_id == user_id)
                .filter(ThresholdStateModel.cap_id == cap_id)
                .filter(ThresholdStateModel.threshold_percent == threshold_percent)
                .filter(ThresholdStateModel.last_notified_at <= cutoff)
                .update(
                    {
                        ThresholdStateModel.last_notified_at: claimed_at,
                        ThresholdStateModel.last_usage_percent: usage_percent,
                    },
                    synchronize_session=False,
                )
            )
            if not updated:
                self.session.add(
                    ThresholdStateModel(
                        user_id=user_id,
                        cap_id=cap_id,
                        threshold_percent=threshold_percent,
                        last_notified_at=claimed_at,
                        last_usage_percent=usage_percent,
                    )
                )
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            return ThresholdClaim(threshold_percent=threshold_percent, admitted=False)
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise PersistenceError(
                f"Could not claim usage threshold: {exc}",
                user_id=user_id,
                cap_id=cap_id,
                threshold_percent=threshold_percent,
            ) from exc
        return ThresholdClaim(
            threshold_percent=threshold_percent,
            admitted=True,
            claimed_at=ensure_utc(claimed_at),
        )

    def get(
        self, *, user_id: str, cap_id: str, threshold_percent: int
    ) -> ThresholdState | None:
        model = (
            self.session.query(ThresholdStateModel)
            .filter(ThresholdStateModel.user_id == user_id)
            .filter(ThresholdStateModel.cap_id == cap_id)
            .filter(ThresholdStateModel.threshold_percent == threshold_percent)
            .one_or_none()
        )
        return self._to_entity(model) if model else None

    def last_notified_map(self, *, user_id: str, cap_id: str) -> dict[int, datetime]:
        """Return ``threshold -> last_notified_at`` for one cap."""

        query = (
            self.session.query(ThresholdStateModel)
            .filter(ThresholdStateModel.user_id == user_id)
            .filter(ThresholdStateModel.cap_id == cap_id)
            .order_by(ThresholdStateModel.threshold_percent.asc())
        )
        return {
            model.threshold_percent: ensure_utc(model.last_notified_at)
            for model in query.all()
        }

    def count(self, *, user_id: str, cap_id: str) -> int:
        return (
            self.session.query(ThresholdStateModel)
            .filter(ThresholdStateModel.user_id == user_id)
            .filter(ThresholdStateModel.cap_id == cap_id)
            .count()
        )

    @staticmethod
    def _to_entity(model: ThresholdStateModel) -> ThresholdState:
        return ThresholdState(
            user_id=model.user_id,
            cap_id=model.cap_id,
            threshold_percent=model.threshold_percent,
            last_notified_at=ensure_utc(model.last_notified_at),
            last_usage_percent=model.last_usage_percent,
        )


__all__ = ["ThresholdStateRepository"]
