"""SQLAlchemy model for message templates."""

from sqlalchemy import JSON, Boolean, Column, Integer, String, Text, UniqueConstraint

from outage_notify.infrastructure.database import Base


class NotificationTemplateModel(Base):
    """Database representation of a message template."""

    __tablename__ = "notification_template"
    __table_args__ = (
        UniqueConstraint("name", name="uq_notification_template_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    event_kind = Column(String(50), nullable=False, index=True)
    channel = Column(String(20), nullable=False, index=True)
    subject_template = Column(String(500), nullable=True)
    body_template = Column(Text, nullable=False)
    variables = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True, index=True)


__all__ = ["NotificationTemplateModel"]
