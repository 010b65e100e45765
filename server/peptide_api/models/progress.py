"""Weekly progress and summary models."""
import datetime as dt
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from .base import ApiModel
from .injection import Injection
from .peptide import Peptide
from .protocol import Protocol

ProgressStatus = Literal["on_track", "behind", "ahead", "complete"]
WeeklyTrend = Literal["improving", "declining", "stable"]


class ProtocolProgress(ApiModel):
    """Weekly dose progress for one protocol."""

    protocol: Protocol
    peptide: Peptide
    current_dose: float
    target_dose: float
    progress_percentage: int
    remaining_dose: float
    status: ProgressStatus
    days_remaining: int
    suggested_next_dose: float
    last_injection_date: Optional[datetime] = None
    weekly_injections: list[Injection] = Field(default_factory=list)


class WeeklyProgress(ApiModel):
    week_start: datetime
    week_end: datetime
    protocol_progresses: list[ProtocolProgress] = Field(default_factory=list)
    overall_progress: int = 0
    total_active_protocols: int = 0
    on_track_protocols: int = 0
    behind_protocols: int = 0


class WeeklyProgressTrend(ApiModel):
    week_start: datetime
    total_progress: int
    protocol_count: int
    adherence_score: float


class WeeklyProgressResponse(WeeklyProgress):
    trends: Optional[list[WeeklyProgressTrend]] = None


class DailyInjectionSummary(ApiModel):
    date: dt.date
    injections: list[Injection] = Field(default_factory=list)
    total_doses: int = 0
    unique_peptides: list[str] = Field(default_factory=list)
    sites: list[str] = Field(default_factory=list)


class WeeklySummary(ApiModel):
    """Rolling seven-day activity summary."""

    total_injections: int
    unique_peptides: list[str]
    injection_sites: list[str]
    daily_activity: list[DailyInjectionSummary]
    missed_doses: list[dt.date]
    adherence_score: int
    weekly_trend: WeeklyTrend


class InjectionSiteUsage(ApiModel):
    """Recent use of one (location, side) site."""

    location: str
    side: str
    last_used: datetime
    consecutive_uses: int
    total_uses: int
    days_since_last_use: int
    is_current: bool = False

    @property
    def label(self) -> str:
        return f"{self.location} {self.side}"
