"""Dosing protocol routes."""
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from ..analytics.schedule import start_of_week
from ..auth import get_current_user
from ..models import (
    Protocol,
    ProtocolCreate,
    ProtocolTemplate,
    ProtocolUpdate,
    User,
    WeeklyProgressResponse,
)
from ..models.base import naive_local
from ..services.store import TrackerStore, get_store

router = APIRouter(prefix="/api/protocols", tags=["Protocols"])


@router.get("", response_model=list[Protocol])
async def get_protocols(
    include_inactive: bool = Query(default=False, description="Include paused protocols"),
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    return store.get_protocols(user.id, include_inactive=include_inactive)


@router.get("/templates", response_model=list[ProtocolTemplate])
async def get_protocol_templates(
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    return store.get_protocol_templates()


@router.get("/weekly-progress", response_model=WeeklyProgressResponse)
async def get_weekly_progress(
    week_start: Optional[datetime] = Query(default=None, description="Any moment inside the week"),
    include_trends: bool = Query(default=False, description="Attach the multi-week trend"),
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    """
    Get dose progress of every active protocol for one Sunday-based week.
    Defaults to the current week.
    """
    start = start_of_week(naive_local(week_start)) if week_start else None
    progress = store.get_weekly_progress(user.id, week_start=start)

    response = WeeklyProgressResponse(**progress.model_dump())
    if include_trends:
        response.trends = store.get_weekly_progress_trends(user.id)
    return response


@router.post("", response_model=Protocol, status_code=201)
async def create_protocol(
    body: ProtocolCreate,
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    if store.get_peptide(body.peptide_id, user.id) is None:
        raise HTTPException(status_code=404, detail="Peptide not found")

    protocol = store.create_protocol(user.id, body)
    if protocol is None:
        raise HTTPException(status_code=500, detail="Failed to create protocol")
    return protocol


@router.get("/{protocol_id}", response_model=Protocol)
async def get_protocol(
    protocol_id: str,
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    protocol = store.get_protocol(protocol_id, user.id)
    if protocol is None:
        raise HTTPException(status_code=404, detail="Protocol not found")
    return protocol


@router.put("/{protocol_id}", response_model=Protocol)
async def update_protocol(
    protocol_id: str,
    body: ProtocolUpdate,
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    """Partially update a protocol; the resulting schedule must stay valid."""
    if store.get_protocol(protocol_id, user.id) is None:
        raise HTTPException(status_code=404, detail="Protocol not found")

    try:
        protocol = store.update_protocol(protocol_id, user.id, body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if protocol is None:
        raise HTTPException(status_code=500, detail="Failed to update protocol")
    return protocol


@router.delete("/{protocol_id}", status_code=204)
async def delete_protocol(
    protocol_id: str,
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    if not store.delete_protocol(protocol_id, user.id):
        raise HTTPException(status_code=404, detail="Protocol not found")
