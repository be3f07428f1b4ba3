"""SQLAlchemy model for persisted notification attempt records."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import expression

from outage_notify.infrastructure.database import Base
from outage_notify.utils import ensure_naive_utc, now_utc


def _now_naive_utc():
    return ensure_naive_utc(now_utc())


class NotificationModel(Base):
    """Database representation of one ``(event, user, channel)`` attempt."""

    __tablename__ = "notification"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", "channel", name="uq_notification_unit"),
        Index("ix_notification_user_created", "user_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(String(200), nullable=False, index=True)
    event_kind = Column(String(50), nullable=True)
    user_id = Column(String(64), nullable=False)
    channel = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)
    recipient = Column(String(320), nullable=False)
    subject = Column(String(500), nullable=True)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime(), nullable=False, default=_now_naive_utc)
    sent_at = Column(DateTime(), nullable=True)
    error_message = Column(Text, nullable=True)
    is_read = Column(
        Boolean,
        nullable=False,
        default=False,
        server_default=expression.false(),
    )


__all__ = ["NotificationModel"]
