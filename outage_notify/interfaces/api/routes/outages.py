"""Endpoints managing tracked outages."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from outage_notify.application.service import NotificationService
from outage_notify.domain.errors import PersistenceError
from outage_notify.interfaces.api.dependencies import get_notification_service
from outage_notify.interfaces.api.schemas import (
    OutageEventCreateRequest,
    OutageEventList,
    OutageEventRead,
    OutageEventUpdateRequest,
)

router = APIRouter(prefix="/outage-events", tags=["outages"])


@router.get("", response_model=OutageEventList)
def list_outage_events(
    active_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    service: NotificationService = Depends(get_notification_service),
) -> OutageEventList:
    """Return active outages, or the most recent ones when ``active_only`` is false."""

    if active_only:
        events = service.list_active_outage_events()
    else:
        events = service.list_outage_events(limit=limit)
    return OutageEventList(events=[OutageEventRead.model_validate(event) for event in events])


@router.post("", response_model=OutageEventRead, status_code=status.HTTP_201_CREATED)
def create_outage_event(
    payload: OutageEventCreateRequest,
    service: NotificationService = Depends(get_notification_service),
) -> OutageEventRead:
    """Open an outage and notify the affected users."""

    try:
        outage = service.create_outage_event(payload.to_entity())
    except PersistenceError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return OutageEventRead.model_validate(outage)


@router.get("/{outage_id}", response_model=OutageEventRead)
def read_outage_event(
    outage_id: str,
    service: NotificationService = Depends(get_notification_service),
) -> OutageEventRead:
    outage = service.get_outage_event(outage_id)
    if outage is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Outage event not found")
    return OutageEventRead.model_validate(outage)


@router.put("/{outage_id}", response_model=OutageEventRead)
def update_outage_event(
    outage_id: str,
    payload: OutageEventUpdateRequest,
    service: NotificationService = Depends(get_notification_service),
) -> OutageEventRead:
    """Apply a status or detail change and notify the affected users."""

    try:
        outage = service.update_outage_event(outage_id, payload.to_changes())
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if outage is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Outage event not found")
    return OutageEventRead.model_validate(outage)
