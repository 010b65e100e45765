"""
Alert Rule Evaluation.

Four independent evaluators turn progress, schedule and site data into
alert drafts:

- dose limit: weekly progress crossing the configured threshold
- missed dose: scheduled dates past their grace period with no injection
- site rotation: the current site reused too many times in a row
- protocol milestones: weekly progress crossing percentage milestones

Evaluators are pure; ``filter_new_alerts`` drops drafts that already have a
live alert for the same (type, protocol or site, window).
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Mapping

from ..models.alerts import Alert, AlertDraft, AlertMetadata
from ..models.injection import Injection
from ..models.peptide import Peptide
from ..models.preferences import NotificationPreferences
from ..models.progress import InjectionSiteUsage, WeeklyProgress
from ..models.protocol import Protocol
from .schedule import expected_dose_dates, start_of_week
from .sites import rotation_suggestions

logger = logging.getLogger(__name__)

WEEK_EXPIRY = timedelta(days=7)
MISSED_DOSE_EXPIRY = timedelta(days=3)
SITE_ALERT_WINDOW = timedelta(hours=24)

DOSE_LIMIT_TYPES = ("dose_limit_warning", "dose_limit_exceeded")
MILESTONE_TYPES = ("protocol_milestone", "protocol_complete")


def dose_limit_alerts(
    progress: WeeklyProgress,
    preferences: NotificationPreferences,
    now: datetime,
) -> list[AlertDraft]:
    """Warn when a protocol reaches the threshold, escalate at 100%."""
    if not preferences.dose_limit.enabled:
        return []

    threshold = preferences.dose_limit.threshold
    drafts = []
    for item in progress.protocol_progresses:
        if item.progress_percentage < threshold:
            continue

        peptide = item.peptide
        if item.progress_percentage >= 100:
            drafts.append(AlertDraft(
                alert_type="dose_limit_exceeded",
                severity="error",
                title=f"Weekly target exceeded for {peptide.name}",
                message=(
                    f"You've exceeded your weekly target ({item.progress_percentage}%). "
                    "Consider adjusting your protocol or consulting with your healthcare provider."
                ),
                action_text="Manage Protocol",
                action_url="/dashboard/protocols",
                metadata=AlertMetadata(
                    protocol_id=item.protocol.id,
                    peptide_id=peptide.id,
                    current_value=item.progress_percentage,
                    target_value=100,
                ),
                expires_at=now + WEEK_EXPIRY,
            ))
        else:
            remaining = item.target_dose - item.current_dose
            drafts.append(AlertDraft(
                alert_type="dose_limit_warning",
                severity="warning",
                title=f"Approaching dose limit for {peptide.name}",
                message=(
                    f"You've reached {item.progress_percentage}% of your weekly target. "
                    f"{remaining:.2f} {peptide.typical_dose_range.unit} remaining."
                ),
                action_text="View Progress",
                action_url="/dashboard/protocols",
                metadata=AlertMetadata(
                    protocol_id=item.protocol.id,
                    peptide_id=peptide.id,
                    threshold=threshold,
                    current_value=item.progress_percentage,
                    target_value=100,
                ),
                expires_at=now + WEEK_EXPIRY,
            ))
    return drafts


def missed_dose_alerts(
    protocols: Iterable[Protocol],
    peptides: Mapping[str, Peptide],
    recent_injections: list[Injection],
    preferences: NotificationPreferences,
    now: datetime,
) -> list[AlertDraft]:
    """
    Flag this week's scheduled dates that passed their grace period.

    Args:
        protocols: Active protocols
        peptides: Peptides by id
        recent_injections: The user's injections from the last seven days
        preferences: Supplies the grace period
        now: Reference time

    Returns:
        One draft per (protocol, expected date) without an injection
    """
    if not preferences.missed_dose.enabled:
        return []

    grace_hours = preferences.missed_dose.grace_period_hours
    week_start = start_of_week(now)
    drafts = []

    for protocol in protocols:
        peptide = peptides.get(protocol.peptide_id)
        if peptide is None:
            continue

        peptide_injections = sorted(
            (inj for inj in recent_injections if inj.peptide_id == protocol.peptide_id),
            key=lambda inj: inj.timestamp,
            reverse=True,
        )
        logged_days = {inj.timestamp.date() for inj in peptide_injections}

        for expected in expected_dose_dates(protocol, week_start):
            if not protocol.is_active_on(expected.date()):
                continue

            hours_overdue = (now - expected).total_seconds() / 3600
            if hours_overdue <= grace_hours or expected.date() in logged_days:
                continue

            rounded = round(hours_overdue)
            drafts.append(AlertDraft(
                alert_type="missed_dose",
                severity="warning",
                title=f"Missed dose: {peptide.name}",
                message=(
                    f"Your {peptide.name} dose was due {rounded} "
                    f"{'hour' if rounded == 1 else 'hours'} ago. "
                    "Consider logging it now to stay on track."
                ),
                action_text="Log Injection",
                action_url="/injections/log",
                metadata=AlertMetadata(
                    protocol_id=protocol.id,
                    peptide_id=peptide.id,
                    current_value=hours_overdue,
                    expected_date=expected.date().isoformat(),
                ),
                expires_at=now + MISSED_DOSE_EXPIRY,
            ))
            logger.info(f"[ALERTS] Missed {peptide.name} dose expected {expected.date()}")

    return drafts


def site_rotation_alerts(
    usage: list[InjectionSiteUsage],
    preferences: NotificationPreferences,
    now: datetime,
) -> list[AlertDraft]:
    """Remind the user to rotate when the current site hits the limit."""
    if not preferences.site_rotation.enabled:
        return []

    max_consecutive = preferences.site_rotation.max_consecutive_uses
    drafts = []
    for site in usage:
        if not site.is_current or site.consecutive_uses < max_consecutive:
            continue

        suggestions = rotation_suggestions(site.label)
        drafts.append(AlertDraft(
            alert_type="site_rotation_reminder",
            severity="info",
            title="Consider rotating injection sites",
            message=(
                f"You've used {site.location} ({site.side}) {site.consecutive_uses} times "
                "recently. Try rotating to avoid tissue damage."
            ),
            action_text="View Suggestions",
            action_url="/injections/log",
            metadata=AlertMetadata(
                current_value=site.consecutive_uses,
                target_value=max_consecutive,
                suggestion=", ".join(suggestions),
                site=site.label,
            ),
            expires_at=now + WEEK_EXPIRY,
        ))
    return drafts


def milestone_alerts(
    progress: WeeklyProgress,
    preferences: NotificationPreferences,
    now: datetime,
) -> list[AlertDraft]:
    """Celebrate each configured percentage milestone reached this week."""
    if not preferences.protocol_milestones.enabled:
        return []

    drafts = []
    for item in progress.protocol_progresses:
        name = item.peptide.name
        for milestone in sorted(preferences.protocol_milestones.milestones):
            if item.progress_percentage < milestone:
                continue

            metadata = AlertMetadata(
                protocol_id=item.protocol.id,
                peptide_id=item.peptide.id,
                current_value=milestone,
                target_value=100,
            )
            if milestone >= 100:
                drafts.append(AlertDraft(
                    alert_type="protocol_complete",
                    severity="success",
                    title=f"Weekly target completed: {name}",
                    message=f"Congratulations! You've completed your weekly target for {name}.",
                    action_text="View Progress",
                    action_url="/dashboard/protocols",
                    metadata=metadata,
                    expires_at=now + WEEK_EXPIRY,
                ))
            else:
                drafts.append(AlertDraft(
                    alert_type="protocol_milestone",
                    severity="success",
                    title=f"{milestone}% progress on {name}",
                    message=f"Great job! You've reached {milestone}% of your weekly target for {name}.",
                    action_text="View Progress",
                    action_url="/dashboard/protocols",
                    metadata=metadata,
                    expires_at=now + WEEK_EXPIRY,
                ))
    return drafts


def _same_window(draft: AlertDraft, alert: AlertDraft, created_at: datetime, now: datetime) -> bool:
    """True when ``alert`` covers the same (type, subject, window) as ``draft``."""
    new, old = draft.metadata, alert.metadata

    if draft.alert_type in MILESTONE_TYPES:
        return (
            alert.alert_type in MILESTONE_TYPES
            and old.protocol_id == new.protocol_id
            and old.current_value == new.current_value
            and created_at >= start_of_week(now)
        )

    if alert.alert_type != draft.alert_type:
        return False

    if draft.alert_type in DOSE_LIMIT_TYPES:
        return old.protocol_id == new.protocol_id and created_at >= start_of_week(now)

    if draft.alert_type == "missed_dose":
        return old.protocol_id == new.protocol_id and old.expected_date == new.expected_date

    if draft.alert_type == "site_rotation_reminder":
        return old.site == new.site and created_at > now - SITE_ALERT_WINDOW

    return False


def filter_new_alerts(
    drafts: list[AlertDraft],
    existing: list[Alert],
    now: datetime,
) -> list[AlertDraft]:
    """
    Drop drafts already covered by a live alert or an earlier draft.

    Read and dismissed alerts still count; expired ones do not.
    """
    live = [
        (alert, alert.created_at) for alert in existing
        if alert.expires_at is None or alert.expires_at > now
    ]

    fresh = []
    for draft in drafts:
        if any(_same_window(draft, alert, created, now) for alert, created in live):
            logger.debug(f"[ALERTS] Skipping duplicate {draft.alert_type}: {draft.title}")
            continue
        fresh.append(draft)
        live.append((draft, now))
    return fresh
