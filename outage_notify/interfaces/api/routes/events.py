"""Ingestion endpoints for outage lifecycle changes and usage readings."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from outage_notify.application.service import NotificationService
from outage_notify.domain.entities import Event
from outage_notify.interfaces.api.dependencies import get_notification_service
from outage_notify.interfaces.api.schemas import (
    EventAccepted,
    OutageEventCreate,
    UsageEvaluation,
    UsageUpdate,
)

router = APIRouter(tags=["events"])


def _to_event(payload: OutageEventCreate) -> Event:
    return Event(
        id=payload.id,
        kind=payload.kind,
        severity=payload.severity,
        affected_services=tuple(payload.affected_services),
        affected_regions=tuple(payload.affected_regions),
        title=payload.title,
        description=payload.description,
        estimated_resolution=payload.estimated_resolution,
        actual_resolution=payload.actual_resolution,
    )


@router.post(
    "/events/outages",
    response_model=EventAccepted,
    status_code=status.HTTP_202_ACCEPTED,
)
def publish_outage_event(
    payload: OutageEventCreate,
    background_tasks: BackgroundTasks,
    service: NotificationService = Depends(get_notification_service),
) -> EventAccepted:
    """Queue the notification fan-out for an outage event."""

    background_tasks.add_task(service.dispatch_outage_event, _to_event(payload))
    return EventAccepted(event_id=payload.id)


@router.post("/usage/updates", response_model=UsageEvaluation)
def evaluate_usage_update(
    payload: UsageUpdate,
    service: NotificationService = Depends(get_notification_service),
) -> UsageEvaluation:
    """Evaluate a new usage reading and alert on newly crossed thresholds."""

    try:
        thresholds = service.evaluate_usage_update(
            payload.user_id, payload.cap_id, payload.usage_percent
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return UsageEvaluation(
        user_id=payload.user_id,
        cap_id=payload.cap_id,
        usage_percent=payload.usage_percent,
        notified_thresholds=thresholds,
    )
