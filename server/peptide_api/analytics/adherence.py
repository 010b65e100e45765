"""
Protocol adherence analytics.

Compares logged doses against what each protocol schedules over a date
range and derives streaks and interval consistency from the log.
"""

import logging
import statistics
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from ..models.analytics import ProtocolAdherence
from ..models.injection import Injection
from ..models.protocol import Protocol
from .schedule import days_between, planned_doses

logger = logging.getLogger(__name__)

EXPECTED_INTERVAL_HOURS = 24
STREAK_GAP_DAYS = 2


@dataclass
class AdherenceMetrics:
    """Streak and interval statistics for a set of injections."""

    streak_days: int = 0
    longest_streak: int = 0
    average_time_between: float = 0.0  # hours
    consistency_score: float = 0.0


def current_streak(days: list[date], today: date) -> int:
    """
    Count consecutive dosing days walking back from today.

    A day continues the streak when it falls at most one day before the
    cursor; the cursor then moves back one day.
    """
    streak = 0
    cursor = today
    for day in sorted(set(days), reverse=True):
        if (cursor - day).days <= 1:
            streak += 1
            cursor -= timedelta(days=1)
        else:
            break
    return streak


def longest_streak(days: list[date]) -> int:
    """Longest run of dosing days separated by gaps of two days or fewer."""
    ordered = sorted(set(days))
    if not ordered:
        return 0

    longest = run = 1
    for previous, current in zip(ordered, ordered[1:]):
        if (current - previous).days <= STREAK_GAP_DAYS:
            run += 1
        else:
            longest = max(longest, run)
            run = 1
    return max(longest, run)


def calculate_adherence_metrics(injections: list[Injection], today: date) -> AdherenceMetrics:
    """Streaks, mean interval and interval consistency for a protocol."""
    if not injections:
        return AdherenceMetrics()

    ordered = sorted(injections, key=lambda inj: inj.timestamp)
    days = [inj.timestamp.date() for inj in ordered]

    intervals = [
        (current.timestamp - previous.timestamp).total_seconds() / 3600
        for previous, current in zip(ordered, ordered[1:])
    ]

    average_between = statistics.mean(intervals) if intervals else 0.0
    consistency = 0.0
    if intervals:
        spread = statistics.pstdev(intervals)
        consistency = max(0.0, 100 - spread / EXPECTED_INTERVAL_HOURS * 100)

    return AdherenceMetrics(
        streak_days=current_streak(days, today),
        longest_streak=longest_streak(days),
        average_time_between=average_between,
        consistency_score=consistency,
    )


def protocol_adherence(
    protocol: Protocol,
    injections: list[Injection],
    start: datetime,
    end: datetime,
    peptide_name: Optional[str] = None,
    today: Optional[date] = None,
) -> ProtocolAdherence:
    """
    Adherence of one protocol over ``start``..``end``.

    Args:
        protocol: Protocol whose schedule defines the planned doses
        injections: Injections of the protocol's peptide inside the range
        start: Range start
        end: Range end
        peptide_name: Display name; falls back to the joined injection name
        today: Reference day for the current streak

    Returns:
        ProtocolAdherence with the percentage clamped to 0-100
    """
    total_days = days_between(start, end)
    planned = planned_doses(protocol, total_days)
    actual = len(injections)

    percentage = actual / planned * 100 if planned > 0 else 0.0
    percentage = min(max(percentage, 0.0), 100.0)

    metrics = calculate_adherence_metrics(injections, today or end.date())

    if peptide_name is None:
        peptide_name = next((inj.peptide_name for inj in injections if inj.peptide_name), "Unknown")

    logger.debug(
        f"[ANALYTICS] Adherence {protocol.name}: {actual}/{planned} "
        f"({percentage:.1f}%), streak={metrics.streak_days}"
    )

    return ProtocolAdherence(
        protocol_id=protocol.id,
        protocol_name=protocol.name,
        peptide_name=peptide_name,
        adherence_percentage=percentage,
        total_planned_doses=planned,
        actual_doses=actual,
        missed_doses=max(planned - actual, 0),
        streak_days=metrics.streak_days,
        longest_streak=metrics.longest_streak,
        average_time_between_doses=metrics.average_time_between,
        dose_consistency_score=metrics.consistency_score,
    )
