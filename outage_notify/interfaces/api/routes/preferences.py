"""Endpoints for reading and updating notification preferences."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from outage_notify.application.service import NotificationService
from outage_notify.domain.errors import PreferenceValidationError
from outage_notify.interfaces.api.dependencies import (
    get_current_user_id,
    get_notification_service,
)
from outage_notify.interfaces.api.schemas import PreferenceRead, PreferenceUpdate

router = APIRouter(prefix="/preferences", tags=["preferences"])


@router.get("", response_model=PreferenceRead)
def read_preferences(
    user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> PreferenceRead:
    """Return the caller's preferences, creating the defaults on first access."""

    return PreferenceRead.model_validate(service.get_preferences(user_id))


@router.put("", response_model=PreferenceRead)
def update_preferences(
    payload: PreferenceUpdate,
    user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> PreferenceRead:
    try:
        preference = service.update_preferences(user_id, payload.to_patch())
    except PreferenceValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.errors,
        ) from exc
    return PreferenceRead.model_validate(preference)
