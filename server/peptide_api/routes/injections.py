"""Injection log routes."""
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from ..auth import get_current_user
from ..models import Injection, InjectionCreate, InjectionUpdate, User, WeeklySummary
from ..models.base import naive_local
from ..models.injection import InjectionLocation
from ..services.store import TrackerStore, get_store

router = APIRouter(prefix="/api/injections", tags=["Injections"])


def _check_references(store: TrackerStore, user: User, peptide_id: Optional[str], protocol_id: Optional[str]):
    if peptide_id and store.get_peptide(peptide_id, user.id) is None:
        raise HTTPException(status_code=404, detail="Peptide not found")
    if protocol_id and store.get_protocol(protocol_id, user.id) is None:
        raise HTTPException(status_code=404, detail="Protocol not found")


@router.get("", response_model=list[Injection])
async def get_injections(
    peptide_id: Optional[str] = Query(default=None, description="Filter by peptide"),
    start_date: Optional[datetime] = Query(default=None, description="Earliest timestamp"),
    end_date: Optional[datetime] = Query(default=None, description="Latest timestamp"),
    site: Optional[InjectionLocation] = Query(default=None, description="Filter by site location"),
    search: Optional[str] = Query(default=None, description="Search notes and peptide names"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    """
    Get the caller's injection history, newest first.
    Optionally filter by peptide, date range, site or a search term.
    """
    return store.get_injections(
        user.id,
        peptide_id=peptide_id,
        start=naive_local(start_date) if start_date else None,
        end=naive_local(end_date) if end_date else None,
        site=site,
        search=search,
        limit=limit,
        offset=offset,
    )


@router.get("/weekly-summary", response_model=WeeklySummary)
async def get_weekly_summary(
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    """Activity, missed doses and adherence over the last seven days."""
    return store.get_weekly_summary(user.id)


@router.post("", response_model=Injection, status_code=201)
async def create_injection(
    body: InjectionCreate,
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    _check_references(store, user, body.peptide_id, body.protocol_id)
    injection = store.create_injection(user.id, body)
    if injection is None:
        raise HTTPException(status_code=500, detail="Failed to log injection")
    return injection


@router.get("/{injection_id}", response_model=Injection)
async def get_injection(
    injection_id: str,
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    injection = store.get_injection(injection_id, user.id)
    if injection is None:
        raise HTTPException(status_code=404, detail="Injection not found")
    return injection


@router.put("/{injection_id}", response_model=Injection)
async def update_injection(
    injection_id: str,
    body: InjectionUpdate,
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    if store.get_injection(injection_id, user.id) is None:
        raise HTTPException(status_code=404, detail="Injection not found")
    _check_references(store, user, body.peptide_id, body.protocol_id)

    injection = store.update_injection(injection_id, user.id, body)
    if injection is None:
        raise HTTPException(status_code=500, detail="Failed to update injection")
    return injection


@router.delete("/{injection_id}", status_code=204)
async def delete_injection(
    injection_id: str,
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    if not store.delete_injection(injection_id, user.id):
        raise HTTPException(status_code=404, detail="Injection not found")


@router.post("/{injection_id}/duplicate", response_model=Injection, status_code=201)
async def duplicate_injection(
    injection_id: str,
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    """Log the same dose again at the current time."""
    if store.get_injection(injection_id, user.id) is None:
        raise HTTPException(status_code=404, detail="Injection not found")

    duplicate = store.duplicate_injection(injection_id, user.id)
    if duplicate is None:
        raise HTTPException(status_code=500, detail="Failed to duplicate injection")
    return duplicate
