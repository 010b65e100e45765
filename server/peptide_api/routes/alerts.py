"""Alert routes.

Alerts are computed on demand: clients POST ``calculateAlerts`` to run the
evaluators, then list, mark read or dismiss the stored results.
"""
from fastapi import APIRouter, Depends, HTTPException, Query

from ..auth import get_current_user
from ..models import AlertAction, AlertActionResult, AlertList, User
from ..services.store import TrackerStore, get_store

router = APIRouter(prefix="/api/alerts", tags=["Alerts"])


@router.get("", response_model=AlertList)
async def get_alerts(
    unread_only: bool = Query(default=False, description="Only alerts not yet read"),
    active_only: bool = Query(default=True, description="Hide dismissed and expired alerts"),
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    """Get alerts newest first; live ones only unless active_only is false."""
    return AlertList(
        alerts=store.get_alerts(user.id, unread_only=unread_only, active_only=active_only)
    )


@router.post("", response_model=AlertActionResult, response_model_exclude_none=True)
async def alert_action(
    body: AlertAction,
    user: User = Depends(get_current_user),
    store: TrackerStore = Depends(get_store),
):
    if body.action == "calculateAlerts":
        counts = store.calculate_alerts(user.id)
        return AlertActionResult(message=f"Created {counts.total} new alerts", counts=counts)

    if body.action in ("markRead", "dismiss"):
        if not body.alert_id:
            raise HTTPException(status_code=400, detail="Alert ID required")

        if body.action == "markRead":
            updated = store.mark_alert_read(body.alert_id, user.id)
            message = "Alert marked as read"
        else:
            updated = store.dismiss_alert(body.alert_id, user.id)
            message = "Alert dismissed"

        if not updated:
            raise HTTPException(status_code=404, detail="Alert not found")
        return AlertActionResult(message=message)

    raise HTTPException(status_code=400, detail="Invalid action")
