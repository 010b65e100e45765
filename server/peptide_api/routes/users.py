"""User registration and profile routes."""
from fastapi import APIRouter, Depends, HTTPException

from ..auth import get_current_user, get_external_id
from ..models import User, UserCreate, UserPreferences
from ..services.store import TrackerStore, get_store

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.post("/me", response_model=User)
async def register_user(
    body: UserCreate,
    external_id: str = Depends(get_external_id),
    store: TrackerStore = Depends(get_store),
):
    """
    Register the calling identity.
    Returns the existing record when the identity is already known.
    """
    user = store.get_or_create_user(external_id, body.email)
    if user is None:
        raise HTTPException(status_code=500, detail="Failed to create user")
    return user


@router.get("/me", response_model=User)
async def get_me(user: User = Depends(get_current_user)):
    return user


@router.put("/me/preferences", response_model=User)
async def update_preferences(
    body: UserPreferences,
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    """Merge display and reminder preferences into the stored ones."""
    updated = store.update_user_preferences(user, body)
    if updated is None:
        raise HTTPException(status_code=500, detail="Failed to update preferences")
    return updated
