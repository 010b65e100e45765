"""Wellness metric routes."""
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from ..auth import get_current_user
from ..models import User, WellnessMetric, WellnessMetricCreate
from ..models.base import naive_local
from ..models.wellness import WellnessMetricType
from ..services.store import TrackerStore, get_store

router = APIRouter(prefix="/api/wellness-metrics", tags=["Wellness"])


@router.get("", response_model=list[WellnessMetric])
async def get_wellness_metrics(
    metric_type: Optional[WellnessMetricType] = Query(default=None, description="Filter by metric type"),
    start_date: Optional[datetime] = Query(default=None),
    end_date: Optional[datetime] = Query(default=None),
    injection_id: Optional[str] = Query(default=None, description="Metrics linked to one injection"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    return store.get_wellness_metrics(
        user.id,
        metric_type=metric_type,
        start=naive_local(start_date) if start_date else None,
        end=naive_local(end_date) if end_date else None,
        injection_id=injection_id,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=WellnessMetric, status_code=201)
async def create_wellness_metric(
    body: WellnessMetricCreate,
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    if body.injection_id and store.get_injection(body.injection_id, user.id) is None:
        raise HTTPException(status_code=404, detail="Injection not found")

    metric = store.create_wellness_metric(user.id, body)
    if metric is None:
        raise HTTPException(status_code=500, detail="Failed to record metric")
    return metric
