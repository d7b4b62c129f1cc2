import math
import numbers
from typing import Any, Callable, Dict, List
from stormwater.core.analysis_config import AnalysisConfig
from stormwater.core.diagnostic_rule_config import DIAGNOSTIC_RULES
from stormwater.features.feature_engineering import FEATURE_EXTRACTORS
from stormwater.schemas.diagnosticSchemas import (
    DiagnosticCondition,
    DiagnosticResult,
    DiagnosticRule,
    HydrographFeatures,
)


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and math.isfinite(value)


def _greater_than(actual: Any, expected: Any) -> bool:
    return _is_number(actual) and _is_number(expected) and actual > expected

def _less_than(actual: Any, expected: Any) -> bool:
    return _is_number(actual) and _is_number(expected) and actual < expected

def _equals(actual: Any, expected: Any) -> bool:
    # bool vs number must not match (True == 1 in Python)
    if actual is None or isinstance(actual, bool) != isinstance(expected, bool):
        return False
    return actual == expected

OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    'eq': _equals,
    'gt': _greater_than,
    'lt': _less_than,
}


def evaluate_condition(features: HydrographFeatures, condition: DiagnosticCondition) -> bool:
    """
    Evaluate one rule condition against the extracted features.

    Missing, NaN or mistyped feature values never match and never raise.
    """
    extractor = FEATURE_EXTRACTORS.get(condition.feature)
    operator = OPERATORS.get(condition.operator)
    if extractor is None or operator is None:
        return False
    return operator(extractor(features), condition.value)


def score_rule(features: HydrographFeatures, rule: DiagnosticRule):
    """
    Additive confidence of a rule

    Returns:
        (confidence clamped to 1.0, number of conditions met)
    """
    confidence = 0.0
    conditions_met = 0
    for condition in rule.conditions:
        if evaluate_condition(features, condition):
            confidence += condition.weight
            conditions_met += 1
    return min(AnalysisConfig.MAX_DIAGNOSTIC_CONFIDENCE, confidence), conditions_met


def run_rules_engine(features: HydrographFeatures,
                     rules: List[DiagnosticRule] = DIAGNOSTIC_RULES,
                     min_confidence: float = AnalysisConfig.MIN_DIAGNOSTIC_CONFIDENCE) -> List[DiagnosticResult]:
    """
    Rank probable causes for one event.

    Args:
        features: hydrograph features of the event
        rules: ruleset, in declaration order
        min_confidence: results must score strictly above this

    Returns:
        List[DiagnosticResult]: by confidence descending, ties in ruleset order
    """
    diagnoses = []
    for rule in rules:
        confidence, conditions_met = score_rule(features, rule)
        if conditions_met > 0 and confidence > min_confidence:
            diagnoses.append(DiagnosticResult(
                rule_id=rule.id,
                title=rule.issue,
                category=rule.category,
                confidence=confidence,
                investigation=rule.investigation,
            ))

    # sorted() is stable, equal confidences keep declaration order
    return sorted(diagnoses, key=lambda d: d.confidence, reverse=True)
