# preflight_engine/tests/unit/test_weight_adjuster.py

"""
Tests for rule conditions and the WeightAdjuster state machine.

Tests cover:
- Condition parsing and evaluation
- Rule application, clamping and priority order
- Critical dominance enforcement
- Idempotent reset, history and configuration import/export
"""

import logging
from datetime import date

import pytest

from preflight_engine.adaptive.conditions import (
    ComparisonOperator,
    Condition,
    ConditionParseError,
    Counter,
)
from preflight_engine.adaptive.weight_adjuster import (
    AdjusterState,
    AdjustmentType,
    SystemState,
    WeightAdjuster,
    WeightAdjustmentRule,
)
from preflight_engine.analysis.conflict_scanner import ConflictScanner
from preflight_engine.analysis.risk_aggregator import RiskAggregator
from preflight_engine.config import WeightAdjusterConfig
from preflight_engine.core.constraint_registry import (
    WeightRegistry,
    default_constraint_weights,
)
from preflight_engine.core.constraint_types import (
    ConflictSeverity,
    ConflictType,
    ConstraintCategory,
    ConstraintType,
    ConstraintWeight,
)
from preflight_engine.core.problem_model import Teacher
from preflight_engine.tests.conftest import MONDAY, make_assignment


def _state(by_type=None, by_severity=None, risk=0.0, success=True) -> SystemState:
    severity_counts = {severity: 0 for severity in ConflictSeverity}
    severity_counts.update(by_severity or {})
    by_type = by_type or {}
    return SystemState(
        conflict_count=sum(by_type.values()),
        conflicts_by_severity=severity_counts,
        conflicts_by_type=dict(by_type),
        overall_risk_score=risk,
        scheduling_success=success,
    )


def _always(rule_id, targets, adjustment_type, value, priority, enabled=True):
    return WeightAdjustmentRule.from_expression(
        rule_id,
        rule_id,
        "total_conflicts >= 0",
        targets,
        adjustment_type,
        value,
        priority,
        enabled=enabled,
    )


def _critical_weight(weight_id, base, low, high, adjustable=True) -> ConstraintWeight:
    return ConstraintWeight(
        id=weight_id,
        name=weight_id,
        constraint_type=ConstraintType.HARD,
        base_weight=base,
        current_weight=base,
        priority=1,
        category=ConstraintCategory.SAFETY_CRITICAL,
        is_adjustable=adjustable,
        min_weight=low,
        max_weight=high,
    )


def _assert_critical_dominance(adjuster):
    weights = adjuster.get_weights().values()
    ceiling = max(w.current_weight for w in weights if not w.is_critical)
    for weight in weights:
        if weight.is_critical:
            assert weight.current_weight > ceiling, weight.id


def _assert_weight_invariant(adjuster):
    for weight in adjuster.get_weights().values():
        assert weight.min_weight <= weight.current_weight <= weight.max_weight
        if not weight.is_adjustable:
            assert weight.current_weight == weight.base_weight


class TestCondition:
    def test_parse(self):
        condition = Condition.parse("duty_shift_conflicts > 3")
        assert condition.counter == Counter.DUTY_SHIFT_CONFLICTS
        assert condition.op == ComparisonOperator.GT
        assert condition.threshold == 3
        assert str(condition) == "duty_shift_conflicts > 3"

    def test_double_equals_is_accepted(self):
        assert Condition.parse("critical_conflicts == 0").op == ComparisonOperator.EQ

    @pytest.mark.parametrize(
        "text",
        ["duty_shift_conflicts >> 3", "bogus_counter > 1", "total_conflicts > x", ""],
    )
    def test_parse_errors(self, text):
        with pytest.raises(ConditionParseError):
            Condition.parse(text)

    @pytest.mark.parametrize(
        "op, threshold, expected",
        [
            (ComparisonOperator.GT, 3, True),
            (ComparisonOperator.GT, 4, False),
            (ComparisonOperator.GE, 4, True),
            (ComparisonOperator.LT, 5, True),
            (ComparisonOperator.LE, 3, False),
            (ComparisonOperator.EQ, 4, True),
        ],
    )
    def test_evaluate(self, op, threshold, expected):
        state = _state(by_type={ConflictType.DUTY_SHIFT: 4})
        condition = Condition(Counter.DUTY_SHIFT_CONFLICTS, op, threshold)
        assert condition.evaluate(state) is expected

    def test_counters_read_every_dimension(self):
        state = _state(
            by_type={ConflictType.WORKLOAD: 2, ConflictType.LEGAL_REST: 1},
            by_severity={ConflictSeverity.HIGH: 2},
            risk=71.5,
        )
        assert state.counter_value(Counter.WORKLOAD_CONFLICTS) == 2
        assert state.counter_value(Counter.LEGAL_REST_CONFLICTS) == 1
        assert state.counter_value(Counter.AVAILABILITY_CONFLICTS) == 0
        assert state.counter_value(Counter.HIGH_CONFLICTS) == 2
        assert state.counter_value(Counter.TOTAL_CONFLICTS) == 3
        assert state.counter_value(Counter.OVERALL_RISK_SCORE) == 71.5


class TestWeightAdjustmentRule:
    def test_malformed_expression_keeps_rule_inert(self, caplog):
        with caplog.at_level(logging.WARNING):
            rule = WeightAdjustmentRule.from_expression(
                "bad",
                "Bad rule",
                "duty_shift_conflicts >> 3",
                ["HC4"],
                AdjustmentType.SET,
                9000,
                1,
            )
        assert rule.condition is None
        assert not rule.evaluate(_state(by_type={ConflictType.DUTY_SHIFT: 10}))
        assert "bad" in caplog.text

    @pytest.mark.parametrize(
        "adjustment_type, value, expected",
        [
            (AdjustmentType.MULTIPLY, 1.5, 150),
            (AdjustmentType.ADD, 50, 150),
            (AdjustmentType.SET, 42, 42),
        ],
    )
    def test_apply(self, adjustment_type, value, expected):
        rule = WeightAdjustmentRule.from_expression(
            "r", "r", "total_conflicts >= 0", ["SC1"], adjustment_type, value, 1
        )
        assert rule.apply(100) == expected


class TestWeightAdjuster:
    def test_duty_shift_rule_multiplies_hc4(self):
        adjuster = WeightAdjuster()
        hc4 = adjuster.get_weights()["HC4"]

        adjusted = adjuster.adjust_weights(_state(by_type={ConflictType.DUTY_SHIFT: 4}))

        expected = min(hc4.max_weight, hc4.base_weight * 1.5)
        assert expected == 7500
        assert adjusted == {"HC4": expected}
        assert adjuster.get_weights()["HC4"].current_weight == expected
        assert adjuster.state == AdjusterState.IDLE

    def test_quiet_state_leaves_base_weights(self):
        adjuster = WeightAdjuster()
        assert adjuster.adjust_weights(_state()) == {}
        assert adjuster.get_history() == []

    def test_set_rule_is_clamped_and_skips_fixed_constraints(self):
        adjuster = WeightAdjuster()
        adjusted = adjuster.adjust_weights(
            _state(
                by_type={ConflictType.DUTY_SHIFT: 4},
                by_severity={ConflictSeverity.CRITICAL: 4},
            )
        )
        assert adjusted == {"HC3": 2000, "HC4": 10000}
        weights = adjuster.get_weights()
        assert weights["HC1"].current_weight == weights["HC1"].base_weight
        assert weights["HC2"].current_weight == weights["HC2"].base_weight

    def test_rules_apply_in_priority_order(self):
        rules = [
            _always("add", ["SC10"], AdjustmentType.ADD, 50, 2),
            _always("double", ["SC10"], AdjustmentType.MULTIPLY, 2.0, 1),
        ]
        adjuster = WeightAdjuster(rules=rules)
        # (150 * 2) + 50
        assert adjuster.adjust_weights(_state())["SC10"] == 350

    def test_disabled_rules_are_ignored(self):
        rule = _always("off", ["SC10"], AdjustmentType.SET, 300, 1, enabled=False)
        assert WeightAdjuster(rules=[rule]).adjust_weights(_state()) == {}

    def test_malformed_rule_does_not_abort_cycle(self):
        rules = [
            WeightAdjustmentRule.from_expression(
                "bad", "bad", "not a condition", ["HC4"], AdjustmentType.SET, 9000, 1
            ),
            _always("good", ["SC10"], AdjustmentType.SET, 300, 2),
        ]
        adjuster = WeightAdjuster(rules=rules)
        assert adjuster.adjust_weights(_state()) == {"SC10": 300}

    def test_critical_weight_is_raised_to_dominate(self):
        registry = WeightRegistry(
            default_constraint_weights() + [_critical_weight("X1", 1000, 500, 5000)]
        )
        rule = _always("boost_hc3", ["HC3"], AdjustmentType.SET, 2000, 1)
        adjuster = WeightAdjuster(registry=registry, rules=[rule])

        adjusted = adjuster.adjust_weights(_state())

        assert adjusted["HC3"] == 2000
        assert adjusted["X1"] == 4000
        _assert_critical_dominance(adjuster)
        reasons = {h.constraint_id: h.reason for h in adjuster.get_history()}
        assert reasons == {"HC3": "boost_hc3", "X1": "critical dominance"}

    def test_impossible_dominance_is_logged(self, caplog):
        registry = WeightRegistry(
            default_constraint_weights()
            + [_critical_weight("X2", 500, 500, 500, adjustable=False)]
        )
        adjuster = WeightAdjuster(registry=registry, rules=[])

        with caplog.at_level(logging.WARNING):
            adjuster.adjust_weights(_state())

        assert adjuster.get_weights()["X2"].current_weight == 500
        assert "X2" in caplog.text
        _assert_weight_invariant(adjuster)

    @pytest.mark.parametrize(
        "state",
        [
            _state(),
            _state(by_type={ConflictType.DUTY_SHIFT: 4}),
            _state(by_type={ConflictType.DEPARTMENT: 3, ConflictType.WORKLOAD: 2}),
            _state(by_type={ConflictType.CONTINUOUS_WORK: 1}, risk=90),
            _state(by_severity={ConflictSeverity.CRITICAL: 2}),
        ],
    )
    def test_invariants_hold_after_every_cycle(self, state):
        adjuster = WeightAdjuster()
        adjuster.adjust_weights(state)
        _assert_critical_dominance(adjuster)
        _assert_weight_invariant(adjuster)

    def test_adjustment_is_idempotent(self):
        adjuster = WeightAdjuster()
        state = _state(
            by_type={ConflictType.DEPARTMENT: 3, ConflictType.CONTINUOUS_WORK: 2},
            risk=80,
        )
        first = adjuster.adjust_weights(state)
        first_weights = {k: w.current_weight for k, w in adjuster.get_weights().items()}
        second = adjuster.adjust_weights(state)
        second_weights = {
            k: w.current_weight for k, w in adjuster.get_weights().items()
        }

        assert first == second
        assert first_weights == second_weights
        assert first == {"HC3": 1300, "HC7": 1300, "SC10": 200, "SC11": 25}

    def test_reset_is_recorded_in_history(self):
        adjuster = WeightAdjuster()
        adjuster.adjust_weights(_state(by_type={ConflictType.DUTY_SHIFT: 4}))
        assert adjuster.adjust_weights(_state()) == {}

        history = adjuster.get_history()
        assert [(h.constraint_id, h.old_weight, h.new_weight) for h in history] == [
            ("HC4", 5000, 7500),
            ("HC4", 7500, 5000),
        ]
        assert history[0].reason == "rule_duty_conflict_boost"
        assert history[1].reason == "reset to base"

    def test_history_is_compacted(self):
        adjuster = WeightAdjuster(
            config=WeightAdjusterConfig(history_limit=10, history_compact_to=5)
        )
        busy = _state(by_type={ConflictType.DUTY_SHIFT: 4})
        for _ in range(8):
            adjuster.adjust_weights(busy)
            adjuster.adjust_weights(_state())

        history = adjuster.get_history(limit=100)
        assert len(history) <= 10
        assert history[-1].new_weight == 5000
        assert len(adjuster.get_history(limit=3)) == 3

    def test_add_and_remove_rules(self):
        adjuster = WeightAdjuster(rules=[])
        rule = WeightAdjustmentRule.from_expression(
            "r1", "r1", "high_conflicts > 0", ["SC1"], AdjustmentType.MULTIPLY, 2, 1
        )
        adjuster.add_rule(rule)
        adjuster.add_rule(rule)
        assert len(adjuster.rules) == 1

        high = _state(by_severity={ConflictSeverity.HIGH: 1})
        assert adjuster.adjust_weights(high) == {"SC1": 200}
        assert adjuster.remove_rule("r1")
        assert not adjuster.remove_rule("r1")
        assert adjuster.adjust_weights(high) == {}

    def test_update_base_weight(self):
        adjuster = WeightAdjuster()
        assert adjuster.update_base_weight("HC4", 6000)
        assert not adjuster.update_base_weight("HC1", 6000)
        assert adjuster.get_weights()["HC4"].base_weight == 6000

    def test_recommendations(self):
        adjuster = WeightAdjuster()
        state = _state(
            by_type={ConflictType.DUTY_SHIFT: 3},
            by_severity={ConflictSeverity.CRITICAL: 3},
            risk=75,
            success=False,
        )
        assert len(adjuster.get_recommendations(state)) == 4
        assert adjuster.get_recommendations(_state()) == []

    def test_export_and_import_configuration(self):
        source = WeightAdjuster()
        source.update_base_weight("SC10", 200)
        payload = source.export_configuration()

        target = WeightAdjuster(rules=[])
        assert target.import_configuration(payload)

        assert target.get_weights()["SC10"].base_weight == 200
        assert [r.id for r in target.rules] == [r.id for r in source.rules]
        state = _state(by_type={ConflictType.DUTY_SHIFT: 4})
        assert target.adjust_weights(state) == source.adjust_weights(state)

    def test_invalid_import_leaves_adjuster_untouched(self):
        adjuster = WeightAdjuster()
        payload = adjuster.export_configuration()
        payload["constraints"][0]["min_weight"] = 99999

        assert not adjuster.import_configuration(payload)
        assert len(adjuster.get_weights()) == 19
        assert adjuster.get_weights()["HC1"].min_weight == 5000
        assert not adjuster.import_configuration({"rules": [{"id": "x"}]})

    def test_state_from_validation_result(self, students):
        on_duty = Teacher(
            id="T1",
            name="One",
            department="Cardiology",
            duty_dates=frozenset({MONDAY}),
        )
        teachers = [on_duty]
        assignments = [
            make_assignment("A1", MONDAY),
            make_assignment("A2", date(2024, 1, 13)),
        ]
        result = RiskAggregator().aggregate(
            ConflictScanner().scan(assignments, teachers, students)
        )

        state = SystemState.from_validation_result(result)

        assert state.conflict_count == 2
        assert state.conflicts_by_type[ConflictType.DUTY_SHIFT] == 1
        assert state.conflicts_by_type[ConflictType.LEGAL_REST] == 1
        assert state.conflicts_by_severity[ConflictSeverity.CRITICAL] == 1
        assert not state.scheduling_success
        assert state.overall_risk_score == result.overall_risk_score
