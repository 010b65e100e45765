"""Downloadable renderings of the comprehensive analytics report."""
import csv
import io
from datetime import datetime
from typing import Optional

from ..analytics.insights import average_adherence
from ..models import ComprehensiveAnalytics


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def analytics_to_csv(report: ComprehensiveAnalytics) -> str:
    """Render the report as a sectioned CSV document."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    writer.writerow(["PROTOCOL ADHERENCE"])
    writer.writerow([
        "Protocol Name", "Peptide", "Adherence %", "Planned Doses", "Actual Doses",
        "Missed Doses", "Current Streak (days)", "Longest Streak (days)", "Consistency Score",
    ])
    for item in report.protocol_adherence:
        writer.writerow([
            item.protocol_name,
            item.peptide_name,
            f"{item.adherence_percentage:.1f}",
            item.total_planned_doses,
            item.actual_doses,
            item.missed_doses,
            item.streak_days,
            item.longest_streak,
            f"{item.dose_consistency_score:.1f}",
        ])
    writer.writerow([])

    writer.writerow(["INJECTION SITES"])
    writer.writerow([
        "Location", "Side", "Usage Count", "Usage %", "Days Since Last Use", "Overused", "Needs Rotation",
    ])
    for site in report.injection_sites:
        writer.writerow([
            site.location,
            site.side,
            site.usage_count,
            f"{site.usage_percentage:.1f}",
            site.days_since_last_use,
            _yes_no(site.overused),
            _yes_no(site.recommended_rotation),
        ])
    writer.writerow([])

    timing = report.timing_patterns
    writer.writerow(["TIMING PATTERNS"])
    writer.writerow(["Consistency Score", f"{timing.consistency_score:.1f}%"])
    writer.writerow(["Average Time", timing.average_time])
    writer.writerow([
        "Optimal Window", f"{timing.optimal_time_window.start} - {timing.optimal_time_window.end}"
    ])
    writer.writerow([])
    writer.writerow(["Most Common Times"])
    writer.writerow(["Time", "Count"])
    for entry in timing.most_common_times:
        writer.writerow([entry.time, entry.count])
    writer.writerow([])

    writer.writerow(["DOSE VARIANCE"])
    writer.writerow([
        "Protocol", "Target Dose", "Average Dose", "Accuracy %", "Standard Deviation", "Trend",
    ])
    for variance in report.dose_variance:
        writer.writerow([
            variance.protocol_name,
            f"{variance.target_dose:.2f}",
            f"{variance.average_dose:.2f}",
            f"{variance.accuracy_percentage:.1f}",
            f"{variance.standard_deviation:.2f}",
            variance.trend,
        ])
    writer.writerow([])

    writer.writerow(["KEY INSIGHTS"])
    for insight in report.key_insights:
        writer.writerow([insight])
    writer.writerow([])

    writer.writerow(["RECOMMENDATIONS"])
    for recommendation in report.recommendations:
        writer.writerow([recommendation])

    return buffer.getvalue()


def analytics_to_text(report: ComprehensiveAnalytics, generated_at: Optional[datetime] = None) -> str:
    """Render the report as a plain-text summary."""
    generated_at = generated_at or datetime.now()
    span = report.date_range

    lines = [
        "PEPTIDE TRACKER ANALYTICS REPORT",
        f"Generated: {generated_at:%Y-%m-%d %H:%M}",
        f"Period: {span.start:%Y-%m-%d} - {span.end:%Y-%m-%d}",
        "",
        "SUMMARY",
        "========",
        f"Average Protocol Adherence: {average_adherence(report.protocol_adherence):.1f}%",
        f"Timing Consistency: {report.timing_patterns.consistency_score:.1f}%",
        f"Injection Sites Used: {len(report.injection_sites)}",
        f"Key Insights: {len(report.key_insights)}",
        "",
        "PROTOCOL ADHERENCE",
        "==================",
    ]
    for item in report.protocol_adherence:
        lines += [
            f"{item.protocol_name} ({item.peptide_name}): {item.adherence_percentage:.1f}% adherence",
            f"  - {item.actual_doses}/{item.total_planned_doses} doses completed",
            f"  - Current streak: {item.streak_days} days",
            "",
        ]

    lines += ["KEY INSIGHTS", "============"]
    lines += [f"- {insight}" for insight in report.key_insights]

    lines += ["", "RECOMMENDATIONS", "==============="]
    lines += [f"- {recommendation}" for recommendation in report.recommendations]

    return "\n".join(lines) + "\n"
