"""Endpoints and websocket handler for the user's notification inbox."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from outage_notify.application.service import NotificationService
from outage_notify.domain.entities import Notification
from outage_notify.infrastructure.channels import notification_manager, serialize_notification
from outage_notify.interfaces.api.dependencies import (
    get_current_user_id,
    get_notification_service,
)
from outage_notify.interfaces.api.schemas import (
    NotificationList,
    NotificationMarkReadRequest,
    NotificationMarkReadResponse,
    NotificationRead,
    NotificationStatistics,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead.model_validate(notification)


@router.get("", response_model=NotificationList)
def list_notifications(
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = Query(False),
    user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationList:
    """Return the caller's most recent notifications, newest first."""

    notifications = service.list_user_notifications(
        user_id, limit=limit, unread_only=unread_only
    )
    return NotificationList(
        notifications=[_notification_to_schema(item) for item in notifications],
        unread_count=service.unread_count(user_id),
    )


@router.put("/read", response_model=NotificationMarkReadResponse)
def mark_notifications_read(
    payload: NotificationMarkReadRequest,
    user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationMarkReadResponse:
    updated = service.mark_read(payload.unique_ids(), user_id, read=payload.read)
    return NotificationMarkReadResponse(updated=updated)


@router.get("/stats", response_model=NotificationStatistics)
def notification_statistics(
    event_id: str | None = Query(None),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationStatistics:
    """Return delivery counts, optionally restricted to one event."""

    return NotificationStatistics(**service.notification_statistics(event_id))


@router.websocket("/ws")
async def notifications_websocket(
    websocket: WebSocket,
    service: NotificationService = Depends(get_notification_service),
) -> None:
    """Stream in-app notifications to the user named by ``user_id``."""

    user_id = (
        websocket.query_params.get("user_id") or websocket.headers.get("x-user-id") or ""
    ).strip()
    if not user_id:
        await websocket.close(code=1008)
        return

    try:
        pending_notifications = service.list_user_notifications(
            user_id, limit=None, unread_only=True
        )
    except Exception:
        logger.exception("Could not load unread notifications for %s", user_id)
        await websocket.close(code=1011)
        return

    await notification_manager.connect(user_id, websocket)
    try:
        if pending_notifications:
            await websocket.send_json(
                {"type": "init", "data": [serialize_notification(n) for n in pending_notifications]}
            )
        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                raise
            except ValueError:
                continue

            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            if message_type == "ack":
                ids = message.get("ids", [])
                if isinstance(ids, list) and ids:
                    service.mark_read(
                        [value for value in ids if isinstance(value, int)], user_id
                    )
                continue
    except WebSocketDisconnect:
        notification_manager.disconnect(user_id, websocket)
    except Exception:
        notification_manager.disconnect(user_id, websocket)
        raise
