"""Alert models."""
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from .base import ApiModel

AlertType = Literal[
    "dose_limit_warning",
    "dose_limit_exceeded",
    "missed_dose",
    "site_rotation_reminder",
    "protocol_milestone",
    "protocol_complete",
]
AlertSeverity = Literal["info", "warning", "error", "success"]


class AlertMetadata(ApiModel):
    """Context attached to an alert; also the deduplication key material."""

    protocol_id: Optional[str] = None
    peptide_id: Optional[str] = None
    threshold: Optional[float] = None
    current_value: Optional[float] = None
    target_value: Optional[float] = None
    suggestion: Optional[str] = None
    site: Optional[str] = None
    expected_date: Optional[str] = None


class AlertDraft(ApiModel):
    """Alert ready to be stored."""

    alert_type: AlertType
    severity: AlertSeverity
    title: str
    message: str
    action_text: Optional[str] = None
    action_url: Optional[str] = None
    metadata: AlertMetadata = Field(default_factory=AlertMetadata)
    is_read: bool = False
    is_dismissed: bool = False
    expires_at: Optional[datetime] = None


class Alert(AlertDraft):
    """Stored user notification."""

    id: str
    user_id: str
    created_at: datetime


class AlertAction(ApiModel):
    """Body of POST /api/alerts."""

    action: str
    alert_id: Optional[str] = None


class AlertCounts(ApiModel):
    dose: int = 0
    missed_dose: int = 0
    site_rotation: int = 0
    milestones: int = 0

    @property
    def total(self) -> int:
        return self.dose + self.missed_dose + self.site_rotation + self.milestones


class AlertList(ApiModel):
    alerts: list[Alert] = Field(default_factory=list)


class AlertActionResult(ApiModel):
    message: str
    counts: Optional[AlertCounts] = None
