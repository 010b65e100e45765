"""Analytics report models."""
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from .base import ApiModel

DoseTrend = Literal["stable", "increasing", "decreasing"]
ReportType = Literal["weekly", "monthly", "quarterly", "custom"]


class DateRange(ApiModel):
    start: datetime
    end: datetime


class AnalyticsFilters(ApiModel):
    date_range: Optional[DateRange] = None
    protocol_ids: Optional[list[str]] = None
    report_type: Optional[ReportType] = None


class ProtocolAdherence(ApiModel):
    protocol_id: str
    protocol_name: str
    peptide_name: str
    adherence_percentage: float
    total_planned_doses: int
    actual_doses: int
    missed_doses: int
    streak_days: int
    longest_streak: int
    average_time_between_doses: float
    dose_consistency_score: float


class InjectionSiteAnalytics(ApiModel):
    location: str
    side: str
    usage_count: int
    usage_percentage: float
    last_used: datetime
    days_since_last_use: int
    recommended_rotation: bool
    overused: bool


class TimeWindow(ApiModel):
    start: str
    end: str


class TimeCount(ApiModel):
    time: str
    count: int


class DayOfWeekPattern(ApiModel):
    day: str
    average_time: str
    consistency: float


class TimingPatternAnalytics(ApiModel):
    optimal_time_window: TimeWindow = Field(
        default_factory=lambda: TimeWindow(start="09:00", end="10:00")
    )
    consistency_score: float = 0
    average_time: str = "09:00"
    most_common_times: list[TimeCount] = Field(default_factory=list)
    day_of_week_patterns: list[DayOfWeekPattern] = Field(default_factory=list)


class DoseVarianceAnalytics(ApiModel):
    protocol_id: str
    protocol_name: str
    target_dose: float
    average_dose: float
    variance: float
    standard_deviation: float
    coefficient_of_variation: float
    accuracy_percentage: float
    high_variance_dates: list[datetime] = Field(default_factory=list)
    trend: DoseTrend = "stable"


class ComprehensiveAnalytics(ApiModel):
    date_range: DateRange
    protocol_adherence: list[ProtocolAdherence] = Field(default_factory=list)
    injection_sites: list[InjectionSiteAnalytics] = Field(default_factory=list)
    timing_patterns: TimingPatternAnalytics = Field(default_factory=TimingPatternAnalytics)
    dose_variance: list[DoseVarianceAnalytics] = Field(default_factory=list)
    key_insights: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
