"""SQLAlchemy model for per-threshold debounce state."""

from sqlalchemy import Column, DateTime, Float, Integer, String, UniqueConstraint

from outage_notify.infrastructure.database import Base


class ThresholdStateModel(Base):
    """Last notification time of one ``(user, cap, threshold)`` triple.

    The unique constraint is what makes the insert half of the debounce
    compare-and-set atomic.
    """

    __tablename__ = "threshold_state"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "cap_id", "threshold_percent", name="uq_threshold_state_key"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    cap_id = Column(String(64), nullable=False)
    threshold_percent = Column(Integer, nullable=False)
    last_notified_at = Column(DateTime(), nullable=False)
    last_usage_percent = Column(Float, nullable=True)


__all__ = ["ThresholdStateModel"]
