"""
Unit tests for the report trend & ranking utilities

Covers half-split trend classification, two-point module trends,
stable top-N ranking, half-up rounding and the nutrition engagement score.
"""

import pytest
from services.report_trends import (
    Trend,
    delta_vs_previous,
    engagement_score,
    frequency_count,
    rank_descending,
    round_half_up,
    rounded_mean,
    top_tags,
    trend_from_halves,
    trend_vs_previous,
)


class TestTrendFromHalves:
    """Second-half mean vs first-half mean, 3-point threshold."""

    def test_improving_series(self):
        assert trend_from_halves([50, 50, 50, 60, 70, 80]) == Trend.IMPROVING

    def test_declining_series(self):
        assert trend_from_halves([80, 80, 80, 50, 50, 50]) == Trend.DECLINING

    def test_flat_series_is_stable(self):
        assert trend_from_halves([60, 60, 60, 61, 59, 60]) == Trend.STABLE

    def test_too_few_points_is_stable(self):
        assert trend_from_halves([]) == Trend.STABLE
        assert trend_from_halves([40]) == Trend.STABLE
        assert trend_from_halves([40, 90]) == Trend.STABLE

    def test_odd_length_puts_extra_point_in_second_half(self):
        # first half [50], second half [50, 70] -> 50 vs 60
        assert trend_from_halves([50, 50, 70]) == Trend.IMPROVING

    def test_difference_equal_to_threshold_is_stable(self):
        assert trend_from_halves([60, 60, 63, 63], threshold=3) == Trend.STABLE

    def test_custom_threshold(self):
        assert trend_from_halves([60, 60, 65, 65], threshold=10) == Trend.STABLE
        assert trend_from_halves([60, 60, 65, 65], threshold=2) == Trend.IMPROVING

    def test_value_is_serializable_string(self):
        assert trend_from_halves([1, 2, 3]).value in {"improving", "stable", "declining"}


class TestTrendVsPrevious:

    def test_missing_side_is_insufficient(self):
        assert trend_vs_previous(None, 70) == Trend.INSUFFICIENT
        assert trend_vs_previous(70, None) == Trend.INSUFFICIENT
        assert trend_vs_previous(None, None) == Trend.INSUFFICIENT

    def test_directions(self):
        assert trend_vs_previous(75, 70) == Trend.IMPROVING
        assert trend_vs_previous(70, 70) == Trend.STABLE
        assert trend_vs_previous(72, 70) == Trend.STABLE
        assert trend_vs_previous(66, 70) == Trend.DECLINING

    def test_delta(self):
        assert delta_vs_previous(80, 72) == 8
        assert delta_vs_previous(60, 72) == -12
        assert delta_vs_previous(None, 72) is None
        assert delta_vs_previous(80, None) is None


class TestRanking:

    def test_ties_keep_first_appearance_order(self):
        ranked = top_tags(["a", "b", "a", "b", "c"], 2)
        assert ranked == [{"label": "a", "count": 2}, {"label": "b", "count": 2}]

    def test_tie_order_follows_input_not_alphabet(self):
        ranked = top_tags(["b", "a", "a", "b"], 2)
        assert [r["label"] for r in ranked] == ["b", "a"]

    def test_higher_count_wins(self):
        ranked = top_tags(["x", "y", "y", "z", "y", "x"], 3)
        assert [r["label"] for r in ranked] == ["y", "x", "z"]
        assert ranked[0]["count"] == 3

    def test_top_n_larger_than_distinct(self):
        assert len(top_tags(["a"], 5)) == 1

    def test_empty_input(self):
        assert top_tags([], 5) == []
        assert rank_descending({}, 3) == []

    def test_frequency_count_skips_blank_and_non_strings(self):
        counts = frequency_count(["Stay back", " Stay back ", "", "   ", None, 3])
        assert counts == {"Stay back": 2}

    def test_frequency_count_is_case_sensitive(self):
        assert frequency_count(["Drill", "drill"]) == {"Drill": 1, "drill": 1}


class TestRounding:

    def test_half_rounds_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(72.5) == 73

    def test_returns_int_at_zero_digits(self):
        assert isinstance(round_half_up(33.33), int)
        assert round_half_up(33.33) == 33

    def test_one_decimal(self):
        assert round_half_up(72.45, 1) == pytest.approx(72.5)
        assert round_half_up(1.25, 1) == pytest.approx(1.3)

    def test_rounded_mean(self):
        assert rounded_mean([]) is None
        assert rounded_mean([70, 71]) == 71
        assert rounded_mean([85, 90]) == 88


class TestEngagementScore:

    def test_no_engagement_is_zero(self):
        assert engagement_score(0, 0, 30, badges_earned=0) == 0

    def test_full_engagement_is_hundred(self):
        assert engagement_score(30, 60, 30, badges_earned=5) == 100

    def test_saturates_at_hundred(self):
        assert engagement_score(500, 5000, 30, badges_earned=50) == 100

    def test_streak_only_counts_days_inside_period(self):
        # 10 credited streak days -> 10/30 * 100 * 0.3 = 10
        assert engagement_score(45, 0, 10) == 10

    def test_component_weights(self):
        assert engagement_score(0, 30, 30) == 20
        assert engagement_score(0, 0, 30, badges_earned=5) == 30

    def test_non_decreasing_in_each_argument(self):
        previous = -1
        for streak in range(0, 40):
            score = engagement_score(streak, 10, 30, badges_earned=1)
            assert score >= previous
            previous = score

        previous = -1
        for views in range(0, 80, 5):
            score = engagement_score(5, views, 30, badges_earned=1)
            assert score >= previous
            previous = score

        previous = -1
        for badges in range(0, 8):
            score = engagement_score(5, 10, 30, badges_earned=badges)
            assert score >= previous
            previous = score

        previous = -1
        for days in range(0, 40):
            score = engagement_score(20, 10, days, badges_earned=1)
            assert score >= previous
            previous = score

    def test_always_within_bounds(self):
        for args in [(-5, -5, -5, -5), (0, 0, 0, 0), (100, 100, 100, 100)]:
            score = engagement_score(*args[:3], badges_earned=args[3])
            assert 0 <= score <= 100
