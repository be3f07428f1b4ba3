"""SQLAlchemy model backing the affected-user directory."""

from sqlalchemy import JSON, Boolean, Column, Integer, String

from outage_notify.infrastructure.database import Base


class SubscriberModel(Base):
    """A customer with their contact details, region and subscribed services."""

    __tablename__ = "subscriber"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(320), nullable=True)
    phone = Column(String(32), nullable=True)
    region = Column(String(100), nullable=True, index=True)
    services = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)


__all__ = ["SubscriberModel"]
