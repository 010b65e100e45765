"""
Calendar and schedule helpers shared by the aggregators.

Weeks run Sunday through Saturday. Weekday indexes follow the same
convention: sunday=0 ... saturday=6.
"""
import math
from datetime import date, datetime, time, timedelta

from ..models.protocol import Protocol, WEEKDAY_NAMES

DAY_INDEX = {name: index for index, name in enumerate(WEEKDAY_NAMES)}
DAY_SECONDS = 24 * 60 * 60


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going up, the way dashboards display percentages."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def day_index(day: date) -> int:
    """Sunday-based weekday index."""
    return (day.weekday() + 1) % 7


def day_name(day: date) -> str:
    return WEEKDAY_NAMES[day_index(day)].title()


def start_of_week(moment: datetime) -> datetime:
    """Midnight of the Sunday that opens the week containing ``moment``."""
    day = moment.date()
    return datetime.combine(day - timedelta(days=day_index(day)), time.min)


def end_of_week(week_start: datetime) -> datetime:
    """Last microsecond of the Saturday closing the week."""
    return week_start + timedelta(days=7) - timedelta(microseconds=1)


def days_remaining_in_week(week_end: datetime, now: datetime) -> int:
    """Whole days left until ``week_end``, rounded up, never negative."""
    seconds = (week_end - now).total_seconds()
    return max(math.ceil(seconds / DAY_SECONDS), 0)


def custom_day_indexes(protocol: Protocol) -> list[int]:
    days = protocol.schedule_config.days or []
    return [DAY_INDEX[day] for day in days if day in DAY_INDEX]


def scheduled_day_indexes(protocol: Protocol) -> list[int]:
    """Weekday indexes on which the protocol expects a dose."""
    if protocol.schedule_type == "daily":
        return list(range(7))
    if protocol.schedule_type == "weekly":
        return [0]
    if protocol.schedule_type == "every_other_day":
        return [0, 2, 4, 6]
    if protocol.schedule_type == "custom":
        return custom_day_indexes(protocol)
    return []


def weekly_target_dose(protocol: Protocol) -> float:
    """
    Weekly dose target for a protocol.

    An explicit weekly target wins; otherwise the daily target is
    multiplied by the number of dosing days in a week.
    """
    if protocol.weekly_target:
        return protocol.weekly_target

    if protocol.daily_target:
        if protocol.schedule_type == "daily":
            return protocol.daily_target * 7
        if protocol.schedule_type == "weekly":
            return protocol.daily_target
        if protocol.schedule_type == "every_other_day":
            return protocol.daily_target * 4
        if protocol.schedule_type == "custom":
            return protocol.daily_target * (len(protocol.schedule_config.days or []) or 1)
        return protocol.daily_target

    return 0.0


def expected_dose_dates(protocol: Protocol, week_start: datetime) -> list[datetime]:
    """Dates in the given week on which the protocol expects a dose."""
    return [
        week_start + timedelta(days=index)
        for index in scheduled_day_indexes(protocol)
    ]


def expected_days_in_window(protocol: Protocol, window_start: date) -> list[int]:
    """
    Offsets (0-6) into a rolling seven-day window that expect a dose.

    Daily, weekly and every-other-day schedules are anchored to the first
    day of the window; custom schedules match weekday names.
    """
    if protocol.schedule_type == "custom":
        wanted = set(custom_day_indexes(protocol))
        return [
            offset for offset in range(7)
            if day_index(window_start + timedelta(days=offset)) in wanted
        ]
    return scheduled_day_indexes(protocol)


def planned_doses(protocol: Protocol, total_days: int) -> int:
    """Number of doses the protocol schedules across ``total_days`` days."""
    if protocol.schedule_type == "daily":
        return total_days
    if protocol.schedule_type == "every_other_day":
        return math.ceil(total_days / 2)
    if protocol.schedule_type == "weekly":
        return math.ceil(total_days / 7)
    if protocol.schedule_type == "custom":
        days = protocol.schedule_config.days
        if days:
            return len(days) * math.ceil(total_days / 7)
        return total_days
    return total_days


def days_between(start: datetime, end: datetime) -> int:
    """Calendar span of a date range, rounded up to whole days."""
    return math.ceil((end - start).total_seconds() / DAY_SECONDS)


def hour_label(hour: float) -> str:
    return f"{int(hour):02d}:00"
