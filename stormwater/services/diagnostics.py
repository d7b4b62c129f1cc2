from typing import Any, Dict, Iterable, List, Mapping, Optional
from stormwater.features.feature_engineering import HydrographFeatureExtractor
from stormwater.schemas.analysisSchemas import (
    AnalysisPeriod,
    AnalystReview,
    AssetAnalysis,
    AssetConfig,
    EventAnalysis,
)
from stormwater.schemas.diagnosticSchemas import DiagnosticResult
from stormwater.services.diagnostic_rule_engine import run_rules_engine
from stormwater.services.event_metrics import calculate_all_event_metrics, water_level_frame
from stormwater.services.precipitation_event_selector import PrecipitationEventConfig, PrecipitationEventSelector
from stormwater.services.time_series_processor import coerce_records, merge_time_series
from stormwater.utils.logger_config import get_stormwater_logger, log_function_call

logger = get_stormwater_logger("diagnostics")


def run_diagnostics(points: Iterable[Any], events: List[AnalysisPeriod],
                    permanent_pool_elevation: float,
                    design_drawdown_hours: float) -> Dict[str, List[DiagnosticResult]]:
    """
    Diagnose every event that an analyst has not disregarded.

    Args:
        points: full merged series
        events: events with calculated analysis
        permanent_pool_elevation: asset permanent pool (m)
        design_drawdown_hours: asset design drawdown (hours)

    Returns:
        Dict[str, List[DiagnosticResult]]: ranked diagnoses keyed by event id;
        disregarded events have no entry
    """
    extractor = HydrographFeatureExtractor(permanent_pool_elevation, design_drawdown_hours)
    levels = water_level_frame(points)

    diagnostics: Dict[str, List[DiagnosticResult]] = {}
    for event in events:
        if event.is_disregarded:
            logger.debug(f"Skipping disregarded event {event.id}")
            continue
        features = extractor.extract_all_features(event, levels)
        diagnostics[event.id] = run_rules_engine(features)
    return diagnostics


def apply_analyst_review(events: List[AnalysisPeriod],
                         reviews: Optional[Mapping[str, Any]]) -> List[AnalysisPeriod]:
    """
    Overlay analyst-owned fields (status, notes, disregarded, ...) onto events.
    Calculated metrics are left untouched.

    Args:
        events: events, usually with calculated analysis
        reviews: AnalystReview (or dict) keyed by event id

    Returns:
        List[AnalysisPeriod]: new event objects
    """
    if not reviews:
        return list(events)

    reviewed = []
    for event in events:
        review = reviews.get(event.id)
        if review is None:
            reviewed.append(event)
            continue
        review = coerce_records([review], AnalystReview)[0]
        analysis = event.analysis or EventAnalysis()
        analysis = analysis.model_copy(update=review.model_dump(exclude_unset=True))
        reviewed.append(event.model_copy(update={'analysis': analysis}))
    return reviewed


@log_function_call(logger)
def analyze_asset(sensor_readings: Optional[Iterable[Any]],
                  weather_readings: Optional[Iterable[Any]],
                  asset_config: Any,
                  survey_points: Optional[Iterable[Any]] = None,
                  event_config: Optional[PrecipitationEventConfig] = None,
                  reviews: Optional[Mapping[str, Any]] = None) -> AssetAnalysis:
    """
    Full pipeline for one asset: merge, segment, calculate metrics, diagnose.

    Args:
        sensor_readings: water elevation readings
        weather_readings: precipitation readings
        asset_config: AssetConfig (or dict)
        survey_points: manual / tape-down elevations
        event_config: segmentation thresholds
        reviews: analyst reviews keyed by event id

    Returns:
        AssetAnalysis: merged points, events with metrics, diagnostics per event
    """
    if not isinstance(asset_config, AssetConfig):
        asset_config = AssetConfig.model_validate(asset_config)

    points = merge_time_series(sensor_readings, weather_readings, survey_points)
    events = PrecipitationEventSelector(event_config).extract_events(points, asset_id=asset_config.asset_id)
    events = calculate_all_event_metrics(events, points, asset_config.design_drawdown_hours)
    events = apply_analyst_review(events, reviews)
    diagnostics = run_diagnostics(
        points,
        events,
        asset_config.permanent_pool_elevation,
        asset_config.design_drawdown_hours,
    )

    flagged = sum(1 for results in diagnostics.values() if results)
    logger.info(f"Asset {asset_config.asset_id or '-'}: {len(points)} points, {len(events)} events, "
                f"{flagged} with probable issues")
    return AssetAnalysis(points=points, events=events, diagnostics=diagnostics)
