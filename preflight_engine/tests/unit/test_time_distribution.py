# preflight_engine/tests/unit/test_time_distribution.py

"""
Tests for TimeDistributionAnalyzer statistics and the concentration penalty.
"""

import math
from datetime import timedelta

import pytest

from preflight_engine.analysis.time_distribution import TimeDistributionAnalyzer
from preflight_engine.config import TimeConcentrationConfig
from preflight_engine.tests.conftest import MONDAY, make_assignment


@pytest.fixture
def analyzer():
    return TimeDistributionAnalyzer(
        TimeConcentrationConfig(ideal_daily_exams=4, max_daily_exams=8)
    )


class TestComputeStats:
    def test_skewed_distribution(self, analyzer, skewed_assignments):
        stats = analyzer.compute_stats(skewed_assignments)

        assert stats.daily_exam_count == [8, 1, 1]
        assert stats.total_exams == 10
        assert stats.active_days == 3
        assert stats.mean == pytest.approx(10 / 3)
        assert stats.variance == pytest.approx(98 / 9)
        assert stats.std_dev == pytest.approx(math.sqrt(98 / 9))
        assert stats.concentration_score == pytest.approx(math.sqrt(98 / 9) / 5 * 100)
        assert stats.max_exams_per_day == 8
        assert stats.min_exams_per_day == 1

    def test_days_are_ordered(self, analyzer):
        assignments = [
            make_assignment("A1", MONDAY + timedelta(days=2)),
            make_assignment("A2", MONDAY),
            make_assignment("A3", MONDAY + timedelta(days=1)),
        ]
        stats = analyzer.compute_stats(assignments)
        assert list(stats.daily_counts) == sorted(stats.daily_counts)

    def test_empty_input(self, analyzer):
        stats = analyzer.compute_stats([])
        assert stats.total_exams == 0
        assert stats.std_dev == 0
        assert stats.concentration_score == 0
        assert not analyzer.needs_optimization(stats)

    def test_concentration_is_bounded(self, analyzer):
        assignments = [make_assignment("A1", MONDAY)]
        assignments += [
            make_assignment(f"B{i}", MONDAY + timedelta(days=1)) for i in range(50)
        ]
        stats = analyzer.compute_stats(assignments)
        assert 0 <= stats.concentration_score <= 100

    def test_to_dict(self, analyzer, skewed_assignments):
        data = analyzer.compute_stats(skewed_assignments).to_dict()
        assert data["daily_counts"] == {
            "2024-01-08": 8,
            "2024-01-09": 1,
            "2024-01-10": 1,
        }


class TestNeedsOptimization:
    def test_busy_day_triggers(self, analyzer, skewed_assignments):
        stats = analyzer.compute_stats(skewed_assignments)
        assert analyzer.needs_optimization(stats)

    def test_balanced_schedule_does_not(self, analyzer, balanced_assignments):
        stats = analyzer.compute_stats(balanced_assignments)
        assert not analyzer.needs_optimization(stats)


class TestPenaltyAndSuggestions:
    def test_penalty_for_skewed_schedule(self, analyzer, skewed_assignments):
        # (std^2 * 2 + (8 - 4)^2) * 60 / 100
        expected = (98 / 9 * 2 + 16) * 0.6
        assert analyzer.concentration_penalty(skewed_assignments) == pytest.approx(
            expected
        )

    def test_penalty_counts_days_over_the_maximum(self, analyzer):
        assignments = [make_assignment(f"A{i}", MONDAY) for i in range(10)]
        assignments += [
            make_assignment(f"B{i}", MONDAY + timedelta(days=1)) for i in range(10)
        ]
        # std 0; two days 6 over ideal and 2 over max
        expected = (2 * 36 + 2 * 8 * 10) * 0.6
        assert analyzer.concentration_penalty(assignments) == pytest.approx(expected)

    def test_penalty_is_zero_when_disabled_or_balanced(self, balanced_assignments):
        disabled = TimeDistributionAnalyzer(TimeConcentrationConfig(enabled=False))
        assert disabled.concentration_penalty(balanced_assignments) == 0
        default = TimeDistributionAnalyzer()
        assert default.concentration_penalty(balanced_assignments) == 0
        assert default.concentration_penalty([]) == 0

    def test_penalty_is_capped(self):
        analyzer = TimeDistributionAnalyzer(TimeConcentrationConfig(weight=100))
        assignments = [make_assignment(f"A{i}", MONDAY) for i in range(40)]
        assignments.append(make_assignment("B", MONDAY + timedelta(days=1)))
        assert analyzer.concentration_penalty(assignments) == 1000

    def test_suggestions_for_single_overloaded_day(self, analyzer):
        assignments = [make_assignment(f"A{i}", MONDAY) for i in range(12)]
        suggestions = analyzer.suggestions(analyzer.compute_stats(assignments))

        assert len(suggestions) == 2
        assert "daily maximum" in suggestions[0]
        assert "Too few exam dates" in suggestions[1]

    def test_no_suggestions_for_balanced_schedule(self, analyzer, balanced_assignments):
        assert analyzer.suggestions(analyzer.compute_stats(balanced_assignments)) == []

    def test_optimization_impact(self, analyzer, skewed_assignments):
        stats = analyzer.compute_stats(skewed_assignments)
        impact = analyzer.optimization_impact(stats)

        assert impact["active_days"] == 3
        assert impact["mean"] == pytest.approx(10 / 3)
        assert impact["std_dev"] < stats.std_dev
        assert impact["concentration_score"] <= 30
