"""Domain entities for usage caps and threshold debounce state."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class ThresholdState:
    """Last time a single threshold of a cap notified a user."""

    user_id: str
    cap_id: str
    threshold_percent: int
    last_notified_at: datetime
    last_usage_percent: float | None = None


@dataclass
class UsageCap:
    """Monthly data cap and the usage percentages that raise alerts."""

    id: str
    user_id: str
    monthly_cap_gb: float
    notification_thresholds: list[int] = field(default_factory=list)
    is_active: bool = True


@dataclass(frozen=True)
class ThresholdClaim:
    """Outcome of an atomic debounce claim for one threshold."""

    threshold_percent: int
    admitted: bool
    claimed_at: datetime | None = None


__all__ = ["ThresholdClaim", "ThresholdState", "UsageCap"]
