"""
Weekly Progress Aggregation.

Derives per-protocol dose progress for a Sunday-based week, the
rolling seven-day activity summary, and the points of the progress trend.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Mapping

from ..models.injection import Injection
from ..models.peptide import Peptide
from ..models.progress import (
    DailyInjectionSummary,
    ProtocolProgress,
    WeeklyProgress,
    WeeklyProgressTrend,
    WeeklySummary,
)
from ..models.protocol import Protocol
from .schedule import (
    day_index,
    days_remaining_in_week,
    end_of_week,
    expected_days_in_window,
    round_half_up,
    scheduled_day_indexes,
    weekly_target_dose,
)

logger = logging.getLogger(__name__)


def classify_status(progress_percentage: float, days_remaining: int) -> str:
    """
    Classify weekly progress.

    Rules are checked in order: complete, on_track (>=90), behind (two or
    fewer days left and under 70), ahead (over 120), otherwise on_track.
    """
    if progress_percentage >= 100:
        return "complete"
    if progress_percentage >= 90:
        return "on_track"
    if days_remaining <= 2 and progress_percentage < 70:
        return "behind"
    if progress_percentage > 120:
        return "ahead"
    return "on_track"


def suggested_next_dose(
    protocol: Protocol,
    remaining_dose: float,
    days_remaining: int,
    today: date,
) -> float:
    """
    Spread the remaining weekly target over the remaining dosing days.

    Args:
        protocol: The protocol being tracked
        remaining_dose: Target minus what was already logged this week
        days_remaining: Whole days left in the week
        today: Reference day used to find the scheduled days still ahead

    Returns:
        Suggested dose for the next injection, 0 when nothing is left
    """
    if remaining_dose <= 0 or days_remaining <= 0:
        return 0.0

    if protocol.schedule_type == "weekly":
        return remaining_dose

    if protocol.schedule_type == "daily":
        return round_half_up(remaining_dose / max(days_remaining, 1), 2)

    # custom and every_other_day: split across scheduled days after today
    today_index = day_index(today)
    upcoming = [index for index in scheduled_day_indexes(protocol) if index > today_index]
    if upcoming:
        return round_half_up(remaining_dose / len(upcoming), 2)

    return remaining_dose


def build_protocol_progress(
    protocol: Protocol,
    peptide: Peptide,
    week_injections: Iterable[Injection],
    week_end: datetime,
    now: datetime,
) -> ProtocolProgress:
    """Compute one protocol's progress from the week's injections."""
    injections = sorted(
        (inj for inj in week_injections if inj.peptide_id == protocol.peptide_id),
        key=lambda inj: inj.timestamp,
        reverse=True,
    )

    current_dose = sum(inj.dose for inj in injections)
    target_dose = weekly_target_dose(protocol)

    if target_dose > 0:
        progress_percentage = min(int(round_half_up(current_dose / target_dose * 100)), 100)
    else:
        progress_percentage = 100
    remaining_dose = max(target_dose - current_dose, 0.0)

    days_remaining = days_remaining_in_week(week_end, now)
    status = classify_status(progress_percentage, days_remaining)

    logger.debug(
        f"[PROGRESS] {protocol.name}: {current_dose}/{target_dose} "
        f"({progress_percentage}%) - {status}, {days_remaining} days left"
    )

    return ProtocolProgress(
        protocol=protocol,
        peptide=peptide,
        current_dose=current_dose,
        target_dose=target_dose,
        progress_percentage=progress_percentage,
        remaining_dose=remaining_dose,
        status=status,
        days_remaining=days_remaining,
        suggested_next_dose=suggested_next_dose(
            protocol, remaining_dose, days_remaining, now.date()
        ),
        last_injection_date=injections[0].timestamp if injections else None,
        weekly_injections=injections,
    )


def summarize_week(
    week_start: datetime,
    protocols: list[Protocol],
    peptides: Mapping[str, Peptide],
    week_injections: list[Injection],
    now: datetime,
) -> WeeklyProgress:
    """
    Aggregate progress across all active protocols for one week.

    Protocols whose peptide cannot be resolved are skipped but still count
    toward ``total_active_protocols``.
    """
    week_end = end_of_week(week_start)

    progresses = []
    for protocol in protocols:
        peptide = peptides.get(protocol.peptide_id)
        if peptide is None:
            logger.info(f"[PROGRESS] Skipping {protocol.id}: peptide {protocol.peptide_id} not found")
            continue
        progresses.append(
            build_protocol_progress(protocol, peptide, week_injections, week_end, now)
        )

    overall = 0
    if progresses:
        overall = int(round_half_up(
            sum(p.progress_percentage for p in progresses) / len(progresses)
        ))

    return WeeklyProgress(
        week_start=week_start,
        week_end=week_end,
        protocol_progresses=progresses,
        overall_progress=overall,
        total_active_protocols=len(protocols),
        on_track_protocols=sum(1 for p in progresses if p.status in ("on_track", "complete")),
        behind_protocols=sum(1 for p in progresses if p.status == "behind"),
    )


def trend_point(progress: WeeklyProgress) -> WeeklyProgressTrend:
    """Reduce a week's progress to one point of the trend line."""
    return WeeklyProgressTrend(
        week_start=progress.week_start,
        total_progress=progress.overall_progress,
        protocol_count=progress.total_active_protocols,
        adherence_score=progress.on_track_protocols / max(progress.total_active_protocols, 1) * 100,
    )


def _unique(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


def build_weekly_summary(
    window_start: date,
    injections: list[Injection],
    protocols: list[Protocol],
) -> WeeklySummary:
    """
    Summarize the seven days starting at ``window_start``.

    Args:
        window_start: First calendar day of the window (today - 6)
        injections: The user's injections inside the window
        protocols: Active protocols used to find missed doses

    Returns:
        WeeklySummary with daily activity, missed doses and adherence
    """
    ordered = sorted(injections, key=lambda inj: inj.timestamp, reverse=True)

    daily_activity = []
    for offset in range(7):
        day = window_start + timedelta(days=offset)
        day_injections = [inj for inj in ordered if inj.timestamp.date() == day]
        daily_activity.append(
            DailyInjectionSummary(
                date=day,
                injections=day_injections,
                total_doses=len(day_injections),
                unique_peptides=_unique(inj.peptide_id for inj in day_injections),
                sites=_unique(inj.injection_site.location for inj in day_injections),
            )
        )

    missed_doses = []
    total_expected = 0
    for protocol in protocols:
        expected_offsets = expected_days_in_window(protocol, window_start)
        total_expected += len(expected_offsets)
        for offset in expected_offsets:
            logged = any(
                inj.peptide_id == protocol.peptide_id
                for inj in daily_activity[offset].injections
            )
            if not logged:
                missed_doses.append(window_start + timedelta(days=offset))

    if total_expected > 0:
        adherence_score = int(round_half_up(
            (total_expected - len(missed_doses)) / total_expected * 100
        ))
    else:
        adherence_score = 100

    first_half = sum(day.total_doses for day in daily_activity[0:3])
    second_half = sum(day.total_doses for day in daily_activity[4:7])
    if second_half > first_half:
        weekly_trend = "improving"
    elif second_half < first_half:
        weekly_trend = "declining"
    else:
        weekly_trend = "stable"

    return WeeklySummary(
        total_injections=len(ordered),
        unique_peptides=_unique(inj.peptide_id for inj in ordered),
        injection_sites=_unique(inj.injection_site.location for inj in ordered),
        daily_activity=daily_activity,
        missed_doses=missed_doses,
        adherence_score=adherence_score,
        weekly_trend=weekly_trend,
    )
