"""SQLAlchemy model for monthly data caps."""

from sqlalchemy import JSON, Boolean, Column, Float, String

from outage_notify.infrastructure.database import Base


class UsageCapModel(Base):
    """Database representation of a user's data cap."""

    __tablename__ = "usage_cap"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    monthly_cap_gb = Column(Float, nullable=False)
    notification_thresholds = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)


__all__ = ["UsageCapModel"]
