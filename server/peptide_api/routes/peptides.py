"""Peptide library routes."""
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from ..auth import get_current_user
from ..models import Peptide, PeptideCreate, PeptideTemplate, PeptideUpdate, User
from ..models.peptide import PeptideCategory
from ..services.store import TrackerStore, get_store

router = APIRouter(prefix="/api/peptides", tags=["Peptides"])


@router.get("/templates", response_model=list[PeptideTemplate])
async def get_peptide_templates(
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    """Global peptide catalogue."""
    return store.get_peptide_templates()


@router.get("", response_model=list[Peptide])
async def get_peptides(
    category: Optional[PeptideCategory] = Query(default=None, description="Filter by category"),
    is_custom: Optional[bool] = Query(default=None, description="Only custom (or only stock) peptides"),
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    return store.get_peptides(user.id, category=category, is_custom=is_custom)


@router.post("", response_model=Peptide, status_code=201)
async def create_peptide(
    body: PeptideCreate,
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    peptide = store.create_peptide(user.id, body)
    if peptide is None:
        raise HTTPException(status_code=500, detail="Failed to create peptide")
    return peptide


@router.get("/{peptide_id}", response_model=Peptide)
async def get_peptide(
    peptide_id: str,
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    peptide = store.get_peptide(peptide_id, user.id)
    if peptide is None:
        raise HTTPException(status_code=404, detail="Peptide not found")
    return peptide


@router.put("/{peptide_id}", response_model=Peptide)
async def update_peptide(
    peptide_id: str,
    body: PeptideUpdate,
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    """Update one of the caller's own peptides; global entries are read-only."""
    peptide = store.update_peptide(peptide_id, user.id, body)
    if peptide is None:
        raise HTTPException(status_code=404, detail="Peptide not found")
    return peptide


@router.delete("/{peptide_id}", status_code=204)
async def delete_peptide(
    peptide_id: str,
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    if not store.delete_peptide(peptide_id, user.id):
        raise HTTPException(status_code=404, detail="Peptide not found")
