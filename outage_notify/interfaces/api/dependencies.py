"""FastAPI dependency utilities."""

from functools import lru_cache

from fastapi import Header, HTTPException, status

from outage_notify.application.service import NotificationService, build_notification_service
from outage_notify.config import get_settings
from outage_notify.infrastructure.database import SessionLocal


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Return the caller identity forwarded by the gateway in ``X-User-Id``."""

    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return user_id


@lru_cache
def get_notification_service() -> NotificationService:
    """Return the process-wide :class:`NotificationService`."""

    return build_notification_service(SessionLocal, settings=get_settings())
