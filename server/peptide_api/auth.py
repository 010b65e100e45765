"""Request identity dependencies.

The identity proxy in front of the API authenticates the caller and forwards
its user id in a trusted header (``X-User-Id`` unless configured otherwise).
"""
from fastapi import Depends, HTTPException, Request

from .config import get_settings
from .models import User
from .services.store import TrackerStore, get_store


def get_external_id(request: Request) -> str:
    external_id = request.headers.get(get_settings().auth_header)
    if not external_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return external_id


def get_current_user(
    external_id: str = Depends(get_external_id),
    store: TrackerStore = Depends(get_store),
) -> User:
    """Resolve the registered user for the request, 404 when unknown."""
    user = store.get_user_by_external_id(external_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user
