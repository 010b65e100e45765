"""Analytics and report export routes."""
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse
from typing import Optional

from ..auth import get_current_user
from ..models import AnalyticsFilters, DateRange, User
from ..models.analytics import ReportType
from ..models.base import naive_local
from ..services.reports import analytics_to_csv, analytics_to_text
from ..services.store import TrackerStore, get_store

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


def analytics_filters(
    start_date: Optional[datetime] = Query(default=None, description="Range start (needs end_date)"),
    end_date: Optional[datetime] = Query(default=None, description="Range end (needs start_date)"),
    protocol_ids: Optional[str] = Query(default=None, description="Comma-separated protocol ids"),
    report_type: Optional[ReportType] = Query(default=None, description="weekly, monthly or quarterly"),
) -> AnalyticsFilters:
    """Build analytics filters from query parameters."""
    date_range = None
    if start_date and end_date:
        start, end = naive_local(start_date), naive_local(end_date)
        if end < start:
            raise HTTPException(status_code=400, detail="end_date must not be before start_date")
        date_range = DateRange(start=start, end=end)

    ids = [pid for pid in (protocol_ids or "").split(",") if pid] or None
    return AnalyticsFilters(date_range=date_range, protocol_ids=ids, report_type=report_type)


@router.get("")
async def get_analytics(
    type: str = Query(default="comprehensive", description="adherence, sites, timing, variance or comprehensive"),
    filters: AnalyticsFilters = Depends(analytics_filters),
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    """
    Get one analytics view wrapped as ``{"data": ...}``.
    Defaults to the comprehensive report over the last 30 days.
    """
    if type == "adherence":
        data = store.get_protocol_adherence(user.id, filters)
    elif type == "sites":
        data = store.get_injection_site_analytics(user.id, filters)
    elif type == "timing":
        data = store.get_timing_patterns(user.id, filters)
    elif type == "variance":
        data = store.get_dose_variance(user.id, filters)
    elif type == "comprehensive":
        data = store.get_comprehensive_analytics(user.id, filters)
    else:
        raise HTTPException(status_code=400, detail="Invalid analytics type")
    return {"data": data}


@router.get("/export")
async def export_analytics(
    format: str = Query(default="csv", description="csv, text or pdf"),
    filters: AnalyticsFilters = Depends(analytics_filters),
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    """Download the comprehensive report as CSV or plain text."""
    if format not in ("csv", "text", "pdf"):
        raise HTTPException(status_code=400, detail="Unsupported format")

    report = store.get_comprehensive_analytics(user.id, filters)

    if format == "csv":
        return PlainTextResponse(
            analytics_to_csv(report),
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="peptide-analytics.csv"'},
        )

    return PlainTextResponse(
        analytics_to_text(report),
        headers={"Content-Disposition": 'attachment; filename="peptide-analytics-report.txt"'},
    )
