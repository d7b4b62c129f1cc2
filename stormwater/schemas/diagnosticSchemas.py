from pydantic import BaseModel, ConfigDict, field_validator, ValidationInfo
from pydantic.alias_generators import to_camel
from typing import Optional, List, Literal, Union

TrendDirection = Literal["rising", "falling", "stable"]

# Features a diagnostic rule is allowed to reference
FeatureName = Literal[
    "drawdownIsSteep",
    "drawdownIsShallow",
    "baselineBelowPool",
    "baselineAbovePool",
    "baselineTrend",
    "peakOverBaseline",
    "drawdownRate",
    "risingLimbRate",
    "rainToPeakRatio",
]
FeatureOperator = Literal["eq", "gt", "lt"]
FeatureValue = Union[bool, TrendDirection, float]


class HydrographFeatures(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    event_id: str
    peak_water_level: Optional[float] = None
    baseline_water_level: Optional[float] = None
    peak_over_baseline: float = 0.0
    drawdown_duration: Optional[float] = None  # hours
    drawdown_rate: Optional[float] = None  # m/hr
    drawdown_is_steep: bool = False
    drawdown_is_shallow: bool = False
    rising_limb_rate: Optional[float] = None  # m/hr
    rain_to_peak_ratio: float = 0.0  # m/mm
    total_rainfall: float = 0.0

    baseline_trend: TrendDirection = "stable"
    baseline_below_pool: bool = False
    baseline_above_pool: bool = False


class DiagnosticCondition(BaseModel):
    feature: FeatureName
    operator: FeatureOperator
    value: FeatureValue
    weight: float  # contribution to confidence when met

    @field_validator("value")
    @classmethod
    def numeric_value_for_threshold(cls, v, info: ValidationInfo):
        operator = info.data.get("operator")
        if operator in ("gt", "lt") and (isinstance(v, (bool, str))):
            raise ValueError(f"operator '{operator}' needs a numeric value, got {v!r}")
        return v


class DiagnosticRule(BaseModel):
    id: str
    category: Literal["Asset", "Environmental"]
    issue: str
    conditions: List[DiagnosticCondition]
    investigation: str


class DiagnosticResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    rule_id: str
    title: str
    category: str
    confidence: float
    investigation: str
