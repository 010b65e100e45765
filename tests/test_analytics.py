"""
Unit tests for the analytics rollups: adherence, sites, timing, dose variance
and the generated insights.
"""
from datetime import date, datetime, timedelta

import pytest

from server.peptide_api.analytics.adherence import (
    calculate_adherence_metrics,
    current_streak,
    longest_streak,
    protocol_adherence,
)
from server.peptide_api.analytics.insights import generate_insights, generate_recommendations
from server.peptide_api.analytics.sites import rotation_suggestions, site_analytics, site_usage
from server.peptide_api.analytics.timing import timing_patterns
from server.peptide_api.analytics.variance import dose_trend, dose_variance
from server.peptide_api.models import ProtocolAdherence, TimingPatternAnalytics


class TestStreaks:
    """Streak counting over distinct injection dates."""

    def test_current_streak_walks_back_from_today(self):
        days = [date(2026, 3, 11), date(2026, 3, 10), date(2026, 3, 9), date(2026, 3, 5)]
        assert current_streak(days, date(2026, 3, 11)) == 3

    def test_current_streak_starting_yesterday(self):
        days = [date(2026, 3, 10), date(2026, 3, 9)]
        assert current_streak(days, date(2026, 3, 11)) == 2

    def test_current_streak_broken(self):
        assert current_streak([date(2026, 3, 1)], date(2026, 3, 11)) == 0

    def test_duplicate_dates_count_once(self):
        days = [date(2026, 3, 11), date(2026, 3, 11), date(2026, 3, 10)]
        assert current_streak(days, date(2026, 3, 11)) == 2

    def test_longest_streak_allows_one_day_gaps(self):
        days = [date(2026, 3, 1), date(2026, 3, 3), date(2026, 3, 5), date(2026, 3, 9)]
        assert longest_streak(days) == 3

    def test_longest_streak_empty(self):
        assert longest_streak([]) == 0


class TestProtocolAdherence:
    """Adherence against the doses a protocol schedules."""

    def test_partial_adherence(self, now, make_protocol, make_injection):
        start = now - timedelta(days=10)
        injections = [make_injection(now - timedelta(days=offset)) for offset in range(7)]

        result = protocol_adherence(make_protocol(), injections, start, now, today=now.date())

        assert result.total_planned_doses == 10
        assert result.actual_doses == 7
        assert result.missed_doses == 3
        assert result.adherence_percentage == pytest.approx(70.0)
        assert result.streak_days == 7
        assert result.peptide_name == "BPC-157"

    def test_adherence_is_clamped(self, now, make_protocol, make_injection):
        start = now - timedelta(days=10)
        injections = [make_injection(now - timedelta(hours=12 * offset)) for offset in range(15)]

        result = protocol_adherence(make_protocol(), injections, start, now, peptide_name="BPC")

        assert result.adherence_percentage == 100
        assert result.missed_doses == 0
        assert result.peptide_name == "BPC"

    def test_no_injections(self, now, make_protocol):
        result = protocol_adherence(make_protocol(), [], now - timedelta(days=7), now)

        assert result.adherence_percentage == 0
        assert result.missed_doses == 7
        assert result.streak_days == 0
        assert result.peptide_name == "Unknown"

    def test_regular_intervals_are_fully_consistent(self, now, make_injection):
        injections = [make_injection(now - timedelta(days=offset)) for offset in range(5)]

        metrics = calculate_adherence_metrics(injections, now.date())

        assert metrics.average_time_between == pytest.approx(24.0)
        assert metrics.consistency_score == pytest.approx(100.0)

    def test_irregular_intervals_lower_consistency(self, now, make_injection):
        injections = [
            make_injection(now),
            make_injection(now - timedelta(hours=12)),
            make_injection(now - timedelta(hours=60)),
        ]

        metrics = calculate_adherence_metrics(injections, now.date())

        # intervals of 48h and 12h: population stddev 18h
        assert metrics.consistency_score == pytest.approx(25.0)


class TestInjectionSites:
    """Site usage shares and rotation runs."""

    def test_percentages_sum_to_one_hundred(self, now, make_injection):
        injections = [
            make_injection(now - timedelta(days=1)),
            make_injection(now - timedelta(days=2)),
            make_injection(now - timedelta(days=3), side="right"),
            make_injection(now - timedelta(days=20), location="thigh"),
        ]

        sites = site_analytics(injections, now)

        assert sum(site.usage_percentage for site in sites) == pytest.approx(100.0)
        assert sites[0].location == "abdomen"
        assert sites[0].side == "left"
        assert sites[0].usage_count == 2
        assert sites[0].overused is True
        assert sites[0].recommended_rotation is True

        thigh = next(site for site in sites if site.location == "thigh")
        assert thigh.overused is False
        assert thigh.recommended_rotation is False
        assert thigh.days_since_last_use == 20

    def test_no_injections(self, now):
        assert site_analytics([], now) == []

    def test_consecutive_uses_track_latest_run(self, now, make_injection):
        # newest first: abdomen left x3, thigh right, abdomen left x2
        plan = [("abdomen", "left")] * 3 + [("thigh", "right")] + [("abdomen", "left")] * 2
        injections = [
            make_injection(now - timedelta(days=index), location=location, side=side)
            for index, (location, side) in enumerate(plan)
        ]

        usage = site_usage(injections, now)

        current = usage[0]
        assert current.is_current is True
        assert current.label == "abdomen left"
        assert current.consecutive_uses == 3
        assert current.total_uses == 5

        thigh = usage[1]
        assert thigh.is_current is False
        assert thigh.consecutive_uses == 1
        assert thigh.days_since_last_use == 3

    def test_rotation_suggestions_skip_current_site(self):
        suggestions = rotation_suggestions("abdomen left")

        assert len(suggestions) == 3
        assert "abdomen left" not in suggestions


class TestTimingPatterns:
    """Hour-of-day habits."""

    def test_defaults_without_injections(self):
        timing = timing_patterns([])

        assert timing.optimal_time_window.start == "09:00"
        assert timing.optimal_time_window.end == "10:00"
        assert timing.consistency_score == 0
        assert timing.average_time == "09:00"
        assert timing.most_common_times == []
        assert timing.day_of_week_patterns == []

    def test_same_hour_every_day(self, make_injection):
        injections = [make_injection(datetime(2026, 3, day, 8, 15)) for day in range(2, 9)]

        timing = timing_patterns(injections)

        assert timing.consistency_score == 100
        assert timing.average_time == "08:00"
        assert timing.optimal_time_window.start == "07:00"
        assert timing.optimal_time_window.end == "09:00"
        assert timing.most_common_times[0].time == "08:00"
        assert timing.most_common_times[0].count == 7
        assert len(timing.day_of_week_patterns) == 7

    def test_window_is_clamped_at_midnight(self, make_injection):
        timing = timing_patterns([make_injection(datetime(2026, 3, 9, 0, 30))])
        assert timing.optimal_time_window.start == "00:00"
        assert timing.optimal_time_window.end == "01:00"

    def test_variance_lowers_consistency(self, make_injection):
        injections = [
            make_injection(datetime(2026, 3, 9, 8)),
            make_injection(datetime(2026, 3, 10, 10)),
        ]

        timing = timing_patterns(injections)

        # population variance of [8, 10] is 1
        assert timing.consistency_score == pytest.approx(90.0)
        assert timing.average_time == "09:00"


class TestDoseVariance:
    """Spread of logged doses."""

    def test_equal_doses_have_zero_spread(self, now, make_protocol, make_injection):
        injections = [make_injection(now - timedelta(days=offset)) for offset in range(4)]

        result = dose_variance(make_protocol(), injections)

        assert result.standard_deviation == 0
        assert result.variance == 0
        assert result.coefficient_of_variation == 0
        assert result.accuracy_percentage == pytest.approx(100.0)
        assert result.high_variance_dates == []
        assert result.trend == "stable"

    def test_increasing_doses(self, now, make_protocol, make_injection):
        doses = [1.0, 1.5, 2.0, 2.5]
        injections = [
            make_injection(now - timedelta(days=3 - index), dose=dose)
            for index, dose in enumerate(doses)
        ]

        result = dose_variance(make_protocol(), injections)

        assert result.average_dose == pytest.approx(1.75)
        assert result.trend == "increasing"
        assert len(result.high_variance_dates) == 2

    def test_accuracy_without_target(self, now, make_protocol, make_injection):
        result = dose_variance(make_protocol(daily_target=None), [make_injection(now)])
        assert result.target_dose == 0
        assert result.accuracy_percentage == 0

    def test_no_doses(self, make_protocol):
        assert dose_variance(make_protocol(), []) is None

    @pytest.mark.parametrize("doses,expected", [
        ([1.0], "stable"),
        ([1.0, 1.05, 1.0, 1.05], "stable"),
        ([3.0, 2.0, 1.0], "decreasing"),
    ])
    def test_trend(self, doses, expected):
        assert dose_trend(doses) == expected


def _adherence(percentage: float) -> ProtocolAdherence:
    return ProtocolAdherence(
        protocol_id="p1",
        protocol_name="BPC-157 Daily",
        peptide_name="BPC-157",
        adherence_percentage=percentage,
        total_planned_doses=10,
        actual_doses=int(percentage / 10),
        missed_doses=10 - int(percentage / 10),
        streak_days=0,
        longest_streak=0,
        average_time_between_doses=24,
        dose_consistency_score=100,
    )


class TestInsights:
    """Plain-language insights and recommendations."""

    def test_excellent_adherence_and_timing(self):
        insights = generate_insights(
            [_adherence(95)], [], TimingPatternAnalytics(consistency_score=85), []
        )

        assert insights[0] == "Excellent protocol adherence at 95.0%"
        assert any("Very consistent injection timing" in insight for insight in insights)

    def test_low_adherence_recommendations(self):
        recommendations = generate_recommendations(
            [_adherence(50)], [], TimingPatternAnalytics(consistency_score=50, average_time="08:00")
        )

        assert "Set up dose reminders for protocols with low adherence" in recommendations
        assert "Try injecting consistently around 08:00 for better results" in recommendations

    def test_overused_sites_are_reported(self, now, make_injection):
        sites = site_analytics([make_injection(now), make_injection(now - timedelta(days=1))], now)

        insights = generate_insights([], sites, TimingPatternAnalytics(), [])
        recommendations = generate_recommendations([], sites, TimingPatternAnalytics())

        assert "1 injection sites may be overused" in insights
        assert "Rotate away from overused sites: abdomen" in recommendations
