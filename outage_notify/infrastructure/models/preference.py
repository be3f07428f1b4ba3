"""SQLAlchemy model for customer notification preferences."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Time

from outage_notify.infrastructure.database import Base


class NotificationPreferenceModel(Base):
    """Database representation of a user's notification preferences."""

    __tablename__ = "notification_preference"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, unique=True, index=True)
    email_enabled = Column(Boolean, nullable=False, default=True)
    sms_enabled = Column(Boolean, nullable=False, default=False)
    in_app_enabled = Column(Boolean, nullable=False, default=True)
    push_enabled = Column(Boolean, nullable=False, default=False)
    outage_notifications = Column(Boolean, nullable=False, default=True)
    maintenance_notifications = Column(Boolean, nullable=False, default=True)
    billing_notifications = Column(Boolean, nullable=False, default=True)
    marketing_notifications = Column(Boolean, nullable=False, default=False)
    minimum_severity = Column(String(10), nullable=False, default="medium")
    quiet_hours_start = Column(Time(), nullable=True)
    quiet_hours_end = Column(Time(), nullable=True)
    phone_number = Column(String(32), nullable=True)
    timezone = Column(String(64), nullable=False, default="UTC")
    created_at = Column(DateTime(), nullable=True)
    updated_at = Column(DateTime(), nullable=True)


__all__ = ["NotificationPreferenceModel"]
