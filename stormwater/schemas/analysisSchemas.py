from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Literal
from stormwater.core.config import get_settings
from stormwater.schemas.diagnosticSchemas import DiagnosticResult

EventStatus = Literal["normal", "not_normal", "holding_water", "leaking"]


class CamelModel(BaseModel):
    # snake_case attributes, camelCase on the wire
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Raw inputs
class SensorReading(CamelModel):
    timestamp: int
    water_level: float
    raw_water_level: Optional[float] = None

class WeatherReading(CamelModel):
    timestamp: int
    precipitation: float
    temperature: Optional[float] = None

class SurveyPoint(CamelModel):
    timestamp: int
    elevation: float
    source: Optional[Literal["manual", "tape-down"]] = None
    tape_down_measurement: Optional[float] = None
    stillwell_top_elevation: Optional[float] = None

class AssetConfig(CamelModel):
    asset_id: Optional[str] = None
    permanent_pool_elevation: float
    design_drawdown_hours: float = Field(
        default_factory=lambda: get_settings().DEFAULT_DESIGN_DRAWDOWN_HOURS, gt=0
    )


# Merged series
class ChartablePoint(CamelModel):
    timestamp: int
    water_level: Optional[float] = None
    raw_water_level: Optional[float] = None
    precipitation: Optional[float] = None
    elevation: Optional[float] = None
    temperature: Optional[float] = None


# Events
class AnalystReview(CamelModel):
    status: Optional[EventStatus] = None
    notes: Optional[str] = None
    analyst_initials: Optional[str] = None
    estimated_true_baseline: Optional[float] = None
    margin_of_error: Optional[float] = None
    disregarded: bool = False

class EventAnalysis(AnalystReview):
    baseline_elevation: Optional[float] = None
    peak_elevation: Optional[float] = None
    peak_timestamp: Optional[int] = None
    post_event_elevation: Optional[float] = None
    time_to_baseline: Optional[str] = None
    time_to_baseline_hours: Optional[float] = None
    drawdown_analysis: Optional[str] = None

class AnalysisPeriod(CamelModel):
    id: str
    asset_id: Optional[str] = None
    start_date: int
    end_date: int
    rain_end_date: int
    total_precipitation: float = 0.0
    truncated: bool = False
    data_points: List[ChartablePoint] = Field(default_factory=list)
    analysis: Optional[EventAnalysis] = None

    @property
    def is_disregarded(self) -> bool:
        return self.analysis is not None and self.analysis.disregarded


# Outputs
class WeatherSummary(CamelModel):
    total_precipitation: float
    events: List[AnalysisPeriod]

class AssetAnalysis(CamelModel):
    points: List[ChartablePoint]
    events: List[AnalysisPeriod]
    diagnostics: Dict[str, List[DiagnosticResult]]
