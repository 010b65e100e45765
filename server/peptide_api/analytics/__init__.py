"""
Peptide tracking analytics.

Pure aggregation functions over already-fetched records: weekly progress,
adherence, site rotation, timing, dose variance, insights and alert rules.
"""

from .progress import build_weekly_summary, summarize_week, trend_point
from .adherence import protocol_adherence
from .sites import site_analytics, site_usage
from .timing import timing_patterns
from .variance import dose_variance
from .insights import generate_insights, generate_recommendations
from .alert_rules import (
    dose_limit_alerts,
    filter_new_alerts,
    milestone_alerts,
    missed_dose_alerts,
    site_rotation_alerts,
)

__all__ = [
    "build_weekly_summary",
    "summarize_week",
    "trend_point",
    "protocol_adherence",
    "site_analytics",
    "site_usage",
    "timing_patterns",
    "dose_variance",
    "generate_insights",
    "generate_recommendations",
    "dose_limit_alerts",
    "filter_new_alerts",
    "milestone_alerts",
    "missed_dose_alerts",
    "site_rotation_alerts",
]
