"""Pydantic models for peptide tracker API requests and responses."""
from .user import User, UserCreate, UserPreferences
from .peptide import Peptide, PeptideTemplate, PeptideCreate, PeptideUpdate, DoseRange
from .injection import Injection, InjectionCreate, InjectionUpdate, InjectionSite
from .protocol import Protocol, ProtocolTemplate, ProtocolCreate, ProtocolUpdate, ScheduleConfig
from .wellness import WellnessMetric, WellnessMetricCreate
from .alerts import Alert, AlertDraft, AlertMetadata, AlertAction, AlertCounts, AlertList, AlertActionResult
from .preferences import (
    NotificationPreferences,
    NotificationPreferencesResponse,
    NotificationPreferencesUpdate,
)
from .progress import (
    ProtocolProgress,
    WeeklyProgress,
    WeeklyProgressTrend,
    WeeklyProgressResponse,
    DailyInjectionSummary,
    WeeklySummary,
    InjectionSiteUsage,
)
from .analytics import (
    AnalyticsFilters,
    ComprehensiveAnalytics,
    DateRange,
    DoseVarianceAnalytics,
    InjectionSiteAnalytics,
    ProtocolAdherence,
    TimingPatternAnalytics,
)

__all__ = [
    "User",
    "UserCreate",
    "UserPreferences",
    "Peptide",
    "PeptideTemplate",
    "PeptideCreate",
    "PeptideUpdate",
    "DoseRange",
    "Injection",
    "InjectionCreate",
    "InjectionUpdate",
    "InjectionSite",
    "Protocol",
    "ProtocolTemplate",
    "ProtocolCreate",
    "ProtocolUpdate",
    "ScheduleConfig",
    "WellnessMetric",
    "WellnessMetricCreate",
    "Alert",
    "AlertDraft",
    "AlertMetadata",
    "AlertAction",
    "AlertCounts",
    "AlertList",
    "AlertActionResult",
    "NotificationPreferences",
    "NotificationPreferencesUpdate",
    "NotificationPreferencesResponse",
    "ProtocolProgress",
    "WeeklyProgress",
    "WeeklyProgressTrend",
    "WeeklyProgressResponse",
    "DailyInjectionSummary",
    "WeeklySummary",
    "InjectionSiteUsage",
    "AnalyticsFilters",
    "ComprehensiveAnalytics",
    "DateRange",
    "DoseVarianceAnalytics",
    "InjectionSiteAnalytics",
    "ProtocolAdherence",
    "TimingPatternAnalytics",
]
