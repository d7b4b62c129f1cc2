# Diagnostic ruleset for stormwater asset hydrographs
# Each condition adds its weight to the rule's confidence when it holds.
# Feature names refer to HydrographFeatures (camelCase), operators are eq / gt / lt.

from collections import OrderedDict
from typing import Dict, List, Optional
from stormwater.schemas.diagnosticSchemas import DiagnosticRule

_RULE_TABLE = [
    # Asset related issues
    {
        "id": "leak_seep",
        "category": "Asset",
        "issue": "Hidden leak / disjointed pipe / berm seep",
        "conditions": [
            {"feature": "drawdownIsSteep", "operator": "eq", "value": True, "weight": 0.4},
            {"feature": "baselineBelowPool", "operator": "eq", "value": True, "weight": 0.4},
            {"feature": "baselineTrend", "operator": "eq", "value": "falling", "weight": 0.2},
        ],
        "investigation": "Walk berms for wet spots and boils, check toe drains, inspect outlet pipe joints, "
                         "CCTV if possible, look for clear seepage pathways, check old repair notes.",
    },
    {
        "id": "valve_open",
        "category": "Asset",
        "issue": "Valve left open / oversized underdrain",
        "conditions": [
            {"feature": "drawdownIsSteep", "operator": "eq", "value": True, "weight": 0.8},
            {"feature": "baselineBelowPool", "operator": "eq", "value": True, "weight": 0.2},
        ],
        "investigation": "Check valves on underdrains/low outlets, compare installed vs design orifice sizes, "
                         "confirm actual settings vs drawings.",
    },
    {
        "id": "outlet_blocked",
        "category": "Asset",
        "issue": "Outlet orifice partially blocked internally",
        "conditions": [
            {"feature": "drawdownIsShallow", "operator": "eq", "value": True, "weight": 0.6},
            {"feature": "peakOverBaseline", "operator": "gt", "value": 0.5, "weight": 0.2},  # m
            {"feature": "baselineAbovePool", "operator": "eq", "value": True, "weight": 0.2},
        ],
        "investigation": "Inspect inside riser, check for sediment build-up, measure actual orifice opening, "
                         "confirm trash rack condition.",
    },
    {
        "id": "valve_throttled",
        "category": "Asset",
        "issue": "Outlet valve incorrectly set (too closed)",
        "conditions": [
            {"feature": "drawdownIsShallow", "operator": "eq", "value": True, "weight": 0.6},
            {"feature": "baselineTrend", "operator": "eq", "value": "rising", "weight": 0.4},
        ],
        "investigation": "Confirm valve setting vs design, check ops logs, note any recent \"temporary\" "
                         "adjustments that never got undone.",
    },

    # Environmental related issues
    {
        "id": "veg_clog",
        "category": "Environmental",
        "issue": "Vegetation or algae clogging outlet",
        "conditions": [
            {"feature": "drawdownIsShallow", "operator": "eq", "value": True, "weight": 0.7},
        ],
        "investigation": "Inspect around structure, look for algae mats pulled into orifice, cattails and root "
                         "masses at outlet, seasonal patterns (worse in summer).",
    },
    {
        "id": "beaver_activity",
        "category": "Environmental",
        "issue": "Beaver dam at outlet / downstream channel",
        "conditions": [
            {"feature": "baselineTrend", "operator": "eq", "value": "rising", "weight": 0.5},
            {"feature": "drawdownIsShallow", "operator": "eq", "value": True, "weight": 0.5},
        ],
        "investigation": "Look for fresh sticks/mud at culverts, gnawed trees, beaver slides, dams downstream.",
    },
    {
        "id": "animal_burrows",
        "category": "Environmental",
        "issue": "Burrowing animals causing seep",
        "conditions": [
            {"feature": "drawdownIsSteep", "operator": "eq", "value": True, "weight": 0.5},
            {"feature": "baselineBelowPool", "operator": "eq", "value": True, "weight": 0.5},
        ],
        "investigation": "Inspect banks for burrow holes, slumping, animal activity; look for localized wet "
                         "spots at toe.",
    },
]

# Validated once at import so a typo in the table fails fast
DIAGNOSTIC_RULES: List[DiagnosticRule] = [DiagnosticRule.model_validate(rule) for rule in _RULE_TABLE]


def rules_by_category(rules: Optional[List[DiagnosticRule]] = None) -> Dict[str, List[DiagnosticRule]]:
    """Group rules (the built-in ruleset by default) by category, keeping declaration order."""
    if rules is None:
        rules = DIAGNOSTIC_RULES
    grouped: Dict[str, List[DiagnosticRule]] = OrderedDict()
    for rule in rules:
        grouped.setdefault(rule.category, []).append(rule)
    return grouped
