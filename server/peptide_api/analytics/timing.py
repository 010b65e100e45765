"""Injection timing pattern analytics."""

import logging
import statistics
from collections import Counter

from ..models.analytics import (
    DayOfWeekPattern,
    TimeCount,
    TimeWindow,
    TimingPatternAnalytics,
)
from ..models.injection import Injection
from .schedule import day_name, hour_label, round_half_up

logger = logging.getLogger(__name__)

VARIANCE_SCALE = 10


def hour_consistency(hours: list[int]) -> float:
    """Map the variance of injection hours onto a 0-100 score."""
    return max(0.0, 100 - statistics.pvariance(hours) * VARIANCE_SCALE)


def timing_patterns(injections: list[Injection]) -> TimingPatternAnalytics:
    """
    Hour-of-day habits across a set of injections.

    Returns:
        Consistency score, average and most common hours, per-weekday
        patterns and a suggested two-hour window around the busiest hour.
        Defaults are returned when there are no injections.
    """
    if not injections:
        return TimingPatternAnalytics()

    ordered = sorted(injections, key=lambda inj: inj.timestamp)
    hours = [inj.timestamp.hour for inj in ordered]

    # Counter keeps first-seen order for ties
    hour_counts = Counter(hours)
    most_common = [
        TimeCount(time=hour_label(hour), count=count)
        for hour, count in sorted(hour_counts.items(), key=lambda item: item[1], reverse=True)[:5]
    ]

    average_hour = statistics.mean(hours)

    by_day: dict[str, list[int]] = {}
    for inj in ordered:
        by_day.setdefault(day_name(inj.timestamp.date()), []).append(inj.timestamp.hour)

    day_patterns = [
        DayOfWeekPattern(
            day=day,
            average_time=hour_label(round_half_up(statistics.mean(day_hours))),
            consistency=hour_consistency(day_hours),
        )
        for day, day_hours in by_day.items()
    ]

    optimal_hour = int(most_common[0].time.split(":")[0]) if most_common else 9
    score = hour_consistency(hours)

    logger.debug(f"[ANALYTICS] Timing consistency {score:.1f} over {len(hours)} injections")

    return TimingPatternAnalytics(
        optimal_time_window=TimeWindow(
            start=hour_label(max(0, optimal_hour - 1)),
            end=hour_label(min(23, optimal_hour + 1)),
        ),
        consistency_score=score,
        average_time=hour_label(round_half_up(average_hour)),
        most_common_times=most_common,
        day_of_week_patterns=day_patterns,
    )
