"""Notification preference routes."""
from fastapi import APIRouter, Depends, HTTPException

from ..auth import get_current_user
from ..models import (
    NotificationPreferencesResponse,
    NotificationPreferencesUpdate,
    User,
)
from ..services.store import TrackerStore, get_store

router = APIRouter(prefix="/api/user", tags=["Notification Preferences"])


@router.get("/notification-preferences", response_model=NotificationPreferencesResponse)
async def get_notification_preferences(
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    """Stored alert preferences, or the defaults when none were saved."""
    return NotificationPreferencesResponse(
        preferences=store.get_notification_preferences(user.id)
    )


@router.put("/notification-preferences")
async def update_notification_preferences(
    body: NotificationPreferencesUpdate,
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    if not store.update_notification_preferences(user.id, body.preferences):
        raise HTTPException(status_code=500, detail="Failed to update preferences")
    return {"message": "Preferences updated successfully"}
