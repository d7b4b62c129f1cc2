"""
Unit tests for the diagnostic rules engine and ruleset.
"""
import pytest
from pydantic import ValidationError

from stormwater.core.diagnostic_rule_config import DIAGNOSTIC_RULES, rules_by_category
from stormwater.schemas.diagnosticSchemas import DiagnosticCondition, DiagnosticRule
from stormwater.services.diagnostic_rule_engine import evaluate_condition, run_rules_engine, score_rule


def test_no_matching_conditions_gives_no_results(features_factory):
    assert run_rules_engine(features_factory()) == []


def test_leak_seep_ranks_first(features_factory):
    features = features_factory(drawdown_is_steep=True, baseline_below_pool=True, baseline_trend="falling")

    results = run_rules_engine(features)

    assert results[0].rule_id == "leak_seep"
    assert results[0].confidence >= 0.8
    assert results[0].category == "Asset"
    assert [r.rule_id for r in results] == ["leak_seep", "valve_open", "animal_burrows"]


def test_leak_seep_without_trend(features_factory):
    features = features_factory(drawdown_is_steep=True, baseline_below_pool=True)

    confidences = {r.rule_id: r.confidence for r in run_rules_engine(features)}

    assert confidences["leak_seep"] == pytest.approx(0.8)
    assert confidences["valve_open"] == pytest.approx(1.0)


def test_shallow_drawdown_ranking_is_stable(features_factory):
    results = run_rules_engine(features_factory(drawdown_is_shallow=True))

    assert [(r.rule_id, r.confidence) for r in results] == [
        ("veg_clog", pytest.approx(0.7)),
        ("outlet_blocked", pytest.approx(0.6)),
        ("valve_throttled", pytest.approx(0.6)),
        ("beaver_activity", pytest.approx(0.5)),
    ]


def test_low_confidence_rules_are_dropped(features_factory):
    # below pool alone: valve_open 0.2, leak_seep 0.4, animal_burrows 0.5
    results = run_rules_engine(features_factory(baseline_below_pool=True))

    assert [r.rule_id for r in results] == ["animal_burrows", "leak_seep"]


def test_confidence_is_clamped(features_factory):
    rule = DiagnosticRule(
        id="heavy", category="Asset", issue="Heavy", investigation="Look",
        conditions=[
            {"feature": "drawdownIsSteep", "operator": "eq", "value": True, "weight": 0.9},
            {"feature": "baselineBelowPool", "operator": "eq", "value": True, "weight": 0.9},
        ],
    )

    results = run_rules_engine(features_factory(drawdown_is_steep=True, baseline_below_pool=True), rules=[rule])

    assert results[0].confidence == 1.0


def test_every_confidence_is_within_bounds(features_factory):
    features = features_factory(
        drawdown_is_steep=True, drawdown_is_shallow=True, baseline_below_pool=True,
        baseline_above_pool=True, baseline_trend="rising", peak_over_baseline=0.9,
    )

    for result in run_rules_engine(features):
        assert 0.3 < result.confidence <= 1.0


@pytest.mark.parametrize("operator, threshold, value, expected", [
    ("gt", 0.5, 0.6, True),
    ("gt", 0.5, 0.5, False),
    ("lt", 0.5, 0.4, True),
    ("lt", 0.5, float("nan"), False),
    ("gt", 0.5, float("nan"), False),
])
def test_numeric_conditions(features_factory, operator, threshold, value, expected):
    condition = DiagnosticCondition(feature="peakOverBaseline", operator=operator, value=threshold, weight=0.5)

    assert evaluate_condition(features_factory(peak_over_baseline=value), condition) is expected


def test_undefined_feature_never_matches(features_factory):
    condition = DiagnosticCondition(feature="drawdownRate", operator="lt", value=-0.1, weight=0.5)

    assert evaluate_condition(features_factory(drawdown_rate=None), condition) is False
    assert evaluate_condition(features_factory(drawdown_rate=-0.5), condition) is True


def test_equality_does_not_mix_bool_and_number(features_factory):
    condition = DiagnosticCondition(feature="peakOverBaseline", operator="gt", value=0.0, weight=0.5)
    as_bool = DiagnosticCondition(feature="drawdownIsSteep", operator="eq", value=True, weight=0.5)

    assert evaluate_condition(features_factory(peak_over_baseline=1.0), condition) is True
    assert evaluate_condition(features_factory(drawdown_is_steep=False), as_bool) is False


def test_score_rule_counts_met_conditions(features_factory):
    leak = next(r for r in DIAGNOSTIC_RULES if r.id == "leak_seep")

    confidence, met = score_rule(features_factory(drawdown_is_steep=True, baseline_trend="falling"), leak)

    assert met == 2
    assert confidence == pytest.approx(0.6)


def test_engine_is_deterministic(features_factory):
    features = features_factory(drawdown_is_shallow=True, baseline_trend="rising", baseline_above_pool=True)

    assert run_rules_engine(features) == run_rules_engine(features)


def test_ruleset_layout():
    assert [r.id for r in DIAGNOSTIC_RULES] == [
        "leak_seep", "valve_open", "outlet_blocked", "valve_throttled",
        "veg_clog", "beaver_activity", "animal_burrows",
    ]
    grouped = rules_by_category()
    assert list(grouped) == ["Asset", "Environmental"]
    assert len(grouped["Asset"]) == 4
    assert len(grouped["Environmental"]) == 3


def test_unknown_feature_is_rejected():
    with pytest.raises(ValidationError):
        DiagnosticCondition(feature="outletColour", operator="eq", value=True, weight=0.5)


def test_threshold_operator_needs_number():
    with pytest.raises(ValidationError):
        DiagnosticCondition(feature="drawdownIsSteep", operator="gt", value=True, weight=0.5)


def test_rules_by_category_groups_given_rules():
    environmental = [r for r in DIAGNOSTIC_RULES if r.category == "Environmental"]

    grouped = rules_by_category(environmental)

    assert list(grouped) == ["Environmental"]
    assert [r.id for r in grouped["Environmental"]] == ["veg_clog", "beaver_activity", "animal_burrows"]
    assert rules_by_category([]) == {}
