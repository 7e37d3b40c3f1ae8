"""Notifications router -- per-user list/create/read/dismiss and preferences.

User identity comes from the path; authentication happens upstream.
"""

import logging

from fastapi import APIRouter, HTTPException, Query
from pydantic import ValidationError

from atlas_watch.api.dependencies import Notifications
from atlas_watch.api.schemas import (
    BroadcastResponse, NotificationCreateRequest, NotificationCreateResponse,
    NotificationListResponse, PreferencesUpdateRequest,
)
from atlas_watch.schemas import NotificationCandidate, NotificationPreferences

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/users/{user_id}/notifications", response_model=NotificationListResponse)
async def list_notifications(
    user_id: int,
    service: Notifications,
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = False,
):
    items = service.list_notifications(user_id, limit=limit, unread_only=unread_only)
    return NotificationListResponse(notifications=items, total=len(items))


@router.post("/users/{user_id}/notifications", response_model=NotificationCreateResponse)
async def create_notification(user_id: int, body: NotificationCreateRequest, service: Notifications):
    candidate = NotificationCandidate(user_id=user_id, **body.model_dump())
    notification_id = service.create_notification(candidate)
    return NotificationCreateResponse(delivered=notification_id is not None, notification_id=notification_id)


@router.post("/notifications/{notification_id}/read")
async def mark_read(notification_id: int, service: Notifications):
    if not service.mark_read(notification_id):
        raise HTTPException(status_code=404, detail=f"Notification {notification_id} not found")
    return {"id": notification_id, "is_read": True}


@router.post("/notifications/{notification_id}/dismiss")
async def dismiss(notification_id: int, service: Notifications):
    if not service.dismiss(notification_id):
        raise HTTPException(status_code=404, detail=f"Notification {notification_id} not found")
    return {"id": notification_id, "is_dismissed": True}


@router.post("/notifications/broadcast", response_model=BroadcastResponse)
async def broadcast(body: NotificationCreateRequest, service: Notifications):
    candidate = NotificationCandidate(user_id=0, **body.model_dump())
    return BroadcastResponse(delivered=service.broadcast(candidate))


@router.get("/users/{user_id}/preferences", response_model=NotificationPreferences)
async def get_preferences(user_id: int, service: Notifications):
    return service.get_preferences(user_id)


@router.put("/users/{user_id}/preferences", response_model=NotificationPreferences)
async def update_preferences(user_id: int, body: PreferencesUpdateRequest, service: Notifications):
    try:
        merged = body.apply_to(service.get_preferences(user_id))
    except ValidationError as e:
        logger.info(f"[API] Rejected preferences for user {user_id}: {e.error_count()} errors")
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
    if not service.update_preferences(merged):
        raise HTTPException(status_code=503, detail="Preferences could not be saved")
    return merged
