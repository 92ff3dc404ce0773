# preflight_engine/tests/unit/test_risk_aggregator.py

"""
Tests for RiskAggregator scoring, recommendations and correction suggestions.
"""

import pytest

from preflight_engine.analysis.risk_aggregator import RiskAggregator
from preflight_engine.core.constraint_types import (
    ConflictDetectionResult,
    ConflictSeverity,
    ConflictType,
)


def _conflict(
    conflict_id="C1",
    severity=ConflictSeverity.CRITICAL,
    conflict_type=ConflictType.DUTY_SHIFT,
    impact=95,
    actions=("first", "second", "third"),
):
    return ConflictDetectionResult(
        id=conflict_id,
        conflict_type=conflict_type,
        severity=severity,
        description="test conflict",
        suggested_actions=actions,
        estimated_impact=impact,
    )


@pytest.fixture
def aggregator():
    return RiskAggregator()


class TestAggregate:
    def test_empty_list(self, aggregator):
        result = aggregator.aggregate([])

        assert result.is_valid
        assert result.total_conflicts == 0
        assert result.overall_risk_score == 0
        assert result.estimated_resolution_time == 0
        assert result.recommendations == []
        assert set(result.conflicts_by_severity) == set(ConflictSeverity)
        assert all(count == 0 for count in result.conflicts_by_severity.values())

    def test_single_critical(self, aggregator):
        result = aggregator.aggregate([_conflict()])

        assert not result.is_valid
        assert result.conflicts_by_severity[ConflictSeverity.CRITICAL] == 1
        assert result.overall_risk_score == pytest.approx(19.0)
        assert result.estimated_resolution_time == 30
        assert len(result.recommendations) == 1
        assert "1 critical" in result.recommendations[0]

    def test_risk_score_formula(self, aggregator):
        conflicts = [
            _conflict("C1", ConflictSeverity.HIGH, impact=80),
            _conflict("C2", ConflictSeverity.MEDIUM, impact=60),
            _conflict("C3", ConflictSeverity.LOW, impact=50),
        ]
        result = aggregator.aggregate(conflicts)

        # 5 * (3*0.8 + 2*0.6 + 1*0.5)
        assert result.overall_risk_score == pytest.approx(20.5)
        assert result.estimated_resolution_time == 35
        assert result.is_valid

    def test_risk_score_is_capped(self, aggregator):
        conflicts = [_conflict(f"C{i}", impact=100) for i in range(10)]
        assert aggregator.aggregate(conflicts).overall_risk_score == 100

    def test_many_conflicts_recommendation(self, aggregator):
        conflicts = [
            _conflict(f"C{i}", ConflictSeverity.LOW, impact=10) for i in range(11)
        ]
        result = aggregator.aggregate(conflicts)
        assert len(result.recommendations) == 1
        assert result.recommendations[0].startswith("Many conflicts")

    @pytest.mark.parametrize(
        "severities",
        [
            [],
            [ConflictSeverity.HIGH, ConflictSeverity.LOW],
            [ConflictSeverity.CRITICAL],
            [ConflictSeverity.MEDIUM, ConflictSeverity.CRITICAL],
        ],
    )
    def test_validity_matches_critical_count(self, aggregator, severities):
        conflicts = [
            _conflict(f"C{i}", severity) for i, severity in enumerate(severities)
        ]
        result = aggregator.aggregate(conflicts)
        assert result.is_valid == (
            result.conflicts_by_severity[ConflictSeverity.CRITICAL] == 0
        )

    def test_to_dict_uses_string_keys(self, aggregator):
        data = aggregator.aggregate([_conflict()]).to_dict()
        assert data["conflicts_by_severity"]["critical"] == 1
        assert data["conflicts"][0]["type"] == "duty_shift"


class TestCorrectionSuggestions:
    def test_one_suggestion_per_action(self, aggregator):
        suggestions = aggregator.generate_correction_suggestions([_conflict()])

        assert [s.priority for s in suggestions] == [100, 95, 90]
        assert [s.expected_improvement for s in suggestions] == [90, 75, 60]
        assert all(s.estimated_effort == 15 for s in suggestions)
        assert [s.action for s in suggestions] == ["first", "second", "third"]

    def test_sorted_by_priority_across_conflicts(self, aggregator):
        conflicts = [
            _conflict(
                "M1",
                ConflictSeverity.MEDIUM,
                ConflictType.WORKLOAD,
                actions=("rebalance",),
            ),
            _conflict("C1", actions=("replace", "move")),
        ]
        suggestions = aggregator.generate_correction_suggestions(conflicts)

        assert [(s.conflict_id, s.priority) for s in suggestions] == [
            ("C1", 100),
            ("C1", 95),
            ("M1", 60),
        ]
        assert suggestions[-1].estimated_effort == 25

    def test_improvement_has_a_floor(self, aggregator):
        conflict = _conflict(
            severity=ConflictSeverity.LOW, actions=("a", "b", "c", "d")
        )
        suggestions = aggregator.generate_correction_suggestions([conflict])
        assert [s.expected_improvement for s in suggestions] == [30, 15, 10, 10]
