"""Plain-language insights and recommendations from analytics results."""

from ..models.analytics import (
    DoseVarianceAnalytics,
    InjectionSiteAnalytics,
    ProtocolAdherence,
    TimingPatternAnalytics,
)

UNDERUSED_AFTER_DAYS = 14


def average_adherence(adherence: list[ProtocolAdherence]) -> float:
    return sum(p.adherence_percentage for p in adherence) / max(len(adherence), 1)


def generate_insights(
    adherence: list[ProtocolAdherence],
    sites: list[InjectionSiteAnalytics],
    timing: TimingPatternAnalytics,
    variance: list[DoseVarianceAnalytics],
) -> list[str]:
    insights = []

    avg = average_adherence(adherence)
    if avg >= 90:
        insights.append(f"Excellent protocol adherence at {avg:.1f}%")
    elif avg >= 75:
        insights.append(f"Good protocol adherence at {avg:.1f}%, room for improvement")
    else:
        insights.append(f"Protocol adherence needs attention at {avg:.1f}%")

    overused = [site for site in sites if site.overused]
    if overused:
        insights.append(f"{len(overused)} injection sites may be overused")

    if timing.consistency_score >= 80:
        insights.append(
            f"Very consistent injection timing ({timing.consistency_score:.0f}% consistency)"
        )
    elif timing.consistency_score >= 60:
        insights.append("Moderately consistent timing, consider setting reminders")
    else:
        insights.append("Inconsistent injection timing may affect protocol effectiveness")

    drifting = [v for v in variance if v.trend != "stable"]
    if drifting:
        insights.append(
            f"Doses are drifting for {len(drifting)} protocol(s): "
            + ", ".join(f"{v.protocol_name} ({v.trend})" for v in drifting)
        )

    return insights


def generate_recommendations(
    adherence: list[ProtocolAdherence],
    sites: list[InjectionSiteAnalytics],
    timing: TimingPatternAnalytics,
) -> list[str]:
    recommendations = []

    if any(p.adherence_percentage < 80 for p in adherence):
        recommendations.append("Set up dose reminders for protocols with low adherence")
        recommendations.append("Consider adjusting protocol schedule to better fit your routine")

    overused = [site for site in sites if site.overused]
    if overused:
        recommendations.append(
            f"Rotate away from overused sites: {', '.join(s.location for s in overused)}"
        )

    underused = [site for site in sites if site.days_since_last_use > UNDERUSED_AFTER_DAYS]
    if underused:
        recommendations.append(
            f"Consider using underutilized sites: {', '.join(s.location for s in underused)}"
        )

    if timing.consistency_score < 70:
        recommendations.append(
            f"Try injecting consistently around {timing.average_time} for better results"
        )

    return recommendations
