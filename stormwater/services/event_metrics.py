from typing import Any, Iterable, List, Optional, Tuple
import pandas as pd
from stormwater.core.analysis_config import AnalysisConfig, MS_PER_HOUR, MS_PER_MINUTE
from stormwater.schemas.analysisSchemas import AnalysisPeriod, AnalystReview, EventAnalysis
from stormwater.services.time_series_processor import points_to_frame
from stormwater.utils.logger_config import get_stormwater_logger

logger = get_stormwater_logger("event_metrics")

ANALYST_FIELDS = tuple(AnalystReview.model_fields.keys())


def water_level_frame(points: Iterable[Any]) -> pd.DataFrame:
    """timestamp / water_level rows with a finite water level, sorted"""
    frame = points_to_frame(points)
    return frame.loc[frame['water_level'].notna(), ['timestamp', 'water_level']].reset_index(drop=True)


def window_mean(levels: pd.DataFrame, start: int, end: int, include_end: bool = True) -> Optional[float]:
    """
    mean water level in [start, end] (or [start, end) when include_end is False)

    Returns None when the window holds fewer than MIN_METRIC_SAMPLES samples.
    """
    upper = levels['timestamp'] <= end if include_end else levels['timestamp'] < end
    values = levels.loc[(levels['timestamp'] >= start) & upper, 'water_level']
    if len(values) < AnalysisConfig.MIN_METRIC_SAMPLES:
        return None
    return float(values.mean())


def find_peak(levels: pd.DataFrame, start: int, end: int) -> Tuple[Optional[float], Optional[int]]:
    """maximum water level in [start, end] and its first timestamp"""
    window = levels[(levels['timestamp'] >= start) & (levels['timestamp'] <= end)]
    if len(window) < AnalysisConfig.MIN_METRIC_SAMPLES:
        return None, None
    peak_idx = window['water_level'].idxmax()
    return float(window.at[peak_idx, 'water_level']), int(window.at[peak_idx, 'timestamp'])


def find_baseline_return(levels: pd.DataFrame, peak_timestamp: int, end: int,
                         baseline: float) -> Optional[int]:
    """timestamp of the first sample after the peak back within tolerance of baseline"""
    after = levels[(levels['timestamp'] > peak_timestamp) & (levels['timestamp'] <= end)]
    returned = after[(after['water_level'] - baseline).abs() <= AnalysisConfig.BASELINE_RETURN_TOLERANCE]
    if returned.empty:
        return None
    return int(returned['timestamp'].iloc[0])


def format_duration(duration_ms: int) -> str:
    """e.g. 5h 30m"""
    hours, minutes = divmod(int(round(duration_ms / MS_PER_MINUTE)), 60)
    return f"{hours}h {minutes}m"


def has_response(peak: Optional[float], baseline: Optional[float]) -> bool:
    """True when the peak rises beyond the baseline return tolerance"""
    if peak is None or baseline is None:
        return False
    return peak - baseline > AnalysisConfig.BASELINE_RETURN_TOLERANCE


def describe_drawdown(time_to_baseline: Optional[str], hours: Optional[float],
                      truncated: bool, design_drawdown_hours: Optional[float],
                      responded: bool = True) -> str:
    if not responded:
        return "No water level response beyond baseline tolerance; no drawdown to assess."
    if time_to_baseline is None:
        return "Insufficient water level data to assess drawdown."
    if hours is None:
        suffix = " (record ends before the observation window closes)" if truncated else ""
        return f"Water level did not return to baseline within the observation window{suffix}."
    if design_drawdown_hours is None:
        return f"Returned to baseline in {time_to_baseline}."
    if hours < design_drawdown_hours * AnalysisConfig.STEEP_DRAWDOWN_FACTOR:
        comparison = "faster than"
    elif hours > design_drawdown_hours * AnalysisConfig.SHALLOW_DRAWDOWN_FACTOR:
        comparison = "slower than"
    else:
        comparison = "within"
    return f"Returned to baseline in {time_to_baseline}, {comparison} the {design_drawdown_hours:g}h design drawdown."


def _event_analysis(event: AnalysisPeriod, levels: pd.DataFrame,
                    design_drawdown_hours: Optional[float]) -> EventAnalysis:
    lookback_ms = int(AnalysisConfig.BASELINE_LOOKBACK_HOURS * MS_PER_HOUR)
    baseline = window_mean(levels, event.start_date - lookback_ms, event.start_date, include_end=False)
    peak, peak_timestamp = find_peak(levels, event.start_date, event.end_date)

    post_event = None
    if not event.truncated:
        averaging_ms = int(AnalysisConfig.POST_EVENT_AVERAGING_HOURS * MS_PER_HOUR)
        post_event = window_mean(levels, event.end_date - averaging_ms, event.end_date)

    time_to_baseline = None
    hours = None
    measurable = baseline is not None and peak_timestamp is not None
    # a level that never leaves the tolerance band has no drawdown to time
    responded = has_response(peak, baseline) if measurable else True
    if measurable and responded:
        returned_at = find_baseline_return(levels, peak_timestamp, event.end_date, baseline)
        if returned_at is None:
            time_to_baseline = AnalysisConfig.NOT_REACHED
        else:
            time_to_baseline = format_duration(returned_at - peak_timestamp)
            hours = (returned_at - peak_timestamp) / MS_PER_HOUR

    # analyst fields survive a recalculation
    reviewed = event.analysis.model_dump(include=set(ANALYST_FIELDS)) if event.analysis is not None else {}
    return EventAnalysis(
        **reviewed,
        baseline_elevation=baseline,
        peak_elevation=peak,
        peak_timestamp=peak_timestamp,
        post_event_elevation=post_event,
        time_to_baseline=time_to_baseline,
        time_to_baseline_hours=hours,
        drawdown_analysis=describe_drawdown(time_to_baseline, hours, event.truncated, design_drawdown_hours,
                                            responded=responded),
    )


def calculate_event_metrics(event: AnalysisPeriod, points: Iterable[Any],
                            design_drawdown_hours: Optional[float] = None) -> AnalysisPeriod:
    """
    Compute baseline, peak, post-event elevation and time to baseline for one event.

    Args:
        event: detected event
        points: merged series the event was detected in
        design_drawdown_hours: asset design drawdown, used only for the drawdown summary

    Returns:
        AnalysisPeriod: copy of the event with analysis populated
    """
    levels = water_level_frame(points)
    return event.model_copy(update={'analysis': _event_analysis(event, levels, design_drawdown_hours)})


def calculate_all_event_metrics(events: List[AnalysisPeriod], points: Iterable[Any],
                                design_drawdown_hours: Optional[float] = None) -> List[AnalysisPeriod]:
    """
    Compute metrics for every event against one merged series.

    Args:
        events: detected events
        points: merged series the events were detected in
        design_drawdown_hours: asset design drawdown, used only for the drawdown summary

    Returns:
        List[AnalysisPeriod]: copies of the events, in input order, with analysis populated
    """
    levels = water_level_frame(points)
    calculated = [
        event.model_copy(update={'analysis': _event_analysis(event, levels, design_drawdown_hours)})
        for event in events
    ]
    undefined = sum(1 for e in calculated if e.analysis.peak_elevation is None)
    if undefined:
        logger.debug(f"{undefined}/{len(calculated)} events lack enough water level data for a peak")
    return calculated
