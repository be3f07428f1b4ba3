"""SQLAlchemy model for tracked outages."""

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text

from outage_notify.infrastructure.database import Base
from outage_notify.utils import ensure_naive_utc, now_utc


def _now_naive_utc():
    return ensure_naive_utc(now_utc())


class OutageEventModel(Base):
    """Database representation of an outage and its current status."""

    __tablename__ = "outage_event"

    id = Column(String(64), primary_key=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default="investigating", index=True)
    severity = Column(String(20), nullable=False)
    affected_services = Column(JSON, nullable=False, default=list)
    affected_regions = Column(JSON, nullable=False, default=list)
    estimated_resolution = Column(DateTime(), nullable=True)
    actual_resolution = Column(DateTime(), nullable=True)
    revision = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(), nullable=False, default=_now_naive_utc, index=True)
    updated_at = Column(DateTime(), nullable=False, default=_now_naive_utc)


__all__ = ["OutageEventModel"]
