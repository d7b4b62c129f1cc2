"""
data model module

contains the pydantic models exchanged between the analysis stages and with external callers.
"""

from .diagnosticSchemas import (
    HydrographFeatures,
    DiagnosticCondition,
    DiagnosticRule,
    DiagnosticResult,
)
from .analysisSchemas import (
    SensorReading,
    WeatherReading,
    SurveyPoint,
    AssetConfig,
    ChartablePoint,
    AnalystReview,
    EventAnalysis,
    AnalysisPeriod,
    WeatherSummary,
    AssetAnalysis,
)

__all__ = [
    "HydrographFeatures",
    "DiagnosticCondition",
    "DiagnosticRule",
    "DiagnosticResult",
    "SensorReading",
    "WeatherReading",
    "SurveyPoint",
    "AssetConfig",
    "ChartablePoint",
    "AnalystReview",
    "EventAnalysis",
    "AnalysisPeriod",
    "WeatherSummary",
    "AssetAnalysis",
]

# diagnosticSchemas has no dependencies on analysisSchemas, import it first
