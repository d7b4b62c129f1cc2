"""
Hydrograph feature extraction for diagnostic rules
Turns a precipitation event and its surrounding series into flat named signals
"""
import math
from typing import Any, Callable, Dict, Iterable, Optional
import numpy as np
import pandas as pd
from scipy import stats
from stormwater.core.analysis_config import AnalysisConfig, MS_PER_HOUR
from stormwater.schemas.analysisSchemas import AnalysisPeriod
from stormwater.schemas.diagnosticSchemas import HydrographFeatures, TrendDirection
from stormwater.services.event_metrics import water_level_frame
from stormwater.utils.logger_config import get_stormwater_logger

logger = get_stormwater_logger("feature_engineering")

# Rule-addressable feature name -> accessor; the only place rule conditions meet features
FEATURE_EXTRACTORS: Dict[str, Callable[[HydrographFeatures], Any]] = {
    'drawdownIsSteep': lambda f: f.drawdown_is_steep,
    'drawdownIsShallow': lambda f: f.drawdown_is_shallow,
    'baselineBelowPool': lambda f: f.baseline_below_pool,
    'baselineAbovePool': lambda f: f.baseline_above_pool,
    'baselineTrend': lambda f: f.baseline_trend,
    'peakOverBaseline': lambda f: f.peak_over_baseline,
    'drawdownRate': lambda f: f.drawdown_rate,
    'risingLimbRate': lambda f: f.rising_limb_rate,
    'rainToPeakRatio': lambda f: f.rain_to_peak_ratio,
}


def calculate_slope(limb: pd.DataFrame) -> Optional[float]:
    """
    Ordinary least-squares slope of water level against time

    Args:
        limb: timestamp / water_level rows

    Returns:
        Slope in m/hr, None with fewer than two distinct finite samples
    """
    limb = limb[np.isfinite(limb['water_level'])]
    if len(limb) < 2 or limb['timestamp'].nunique() < 2:
        return None
    hours = (limb['timestamp'] - limb['timestamp'].iloc[0]) / MS_PER_HOUR
    result = stats.linregress(hours.to_numpy(dtype=float), limb['water_level'].to_numpy(dtype=float))
    slope = float(result.slope)
    return slope if math.isfinite(slope) else None


class HydrographFeatureExtractor:
    """
    Extract HydrographFeatures for events of one asset
    """

    def __init__(self, permanent_pool_elevation: float, design_drawdown_hours: float):
        self.permanent_pool_elevation = permanent_pool_elevation
        self.design_drawdown_hours = design_drawdown_hours

    def extract_limb_rates(self, event: AnalysisPeriod):
        """
        Rising-limb and drawdown regression slopes

        Args:
            event: event with analysis

        Returns:
            (rising_limb_rate, drawdown_rate), each None when undefined
        """
        peak_timestamp = event.analysis.peak_timestamp if event.analysis is not None else None
        if peak_timestamp is None:
            return None, None

        levels = water_level_frame(event.data_points)
        in_event = levels[(levels['timestamp'] >= event.start_date) & (levels['timestamp'] <= event.end_date)]
        rising = in_event[in_event['timestamp'] <= peak_timestamp]
        falling = in_event[in_event['timestamp'] >= peak_timestamp]
        return calculate_slope(rising), calculate_slope(falling)

    def classify_drawdown(self, drawdown_duration: Optional[float]):
        """(steep, shallow) relative to the design drawdown"""
        if drawdown_duration is None:
            return False, False
        steep = drawdown_duration < self.design_drawdown_hours * AnalysisConfig.STEEP_DRAWDOWN_FACTOR
        shallow = drawdown_duration > self.design_drawdown_hours * AnalysisConfig.SHALLOW_DRAWDOWN_FACTOR
        return steep, shallow

    def extract_baseline_trend(self, event: AnalysisPeriod, levels: pd.DataFrame) -> TrendDirection:
        """
        Compare mean level just before the event with mean level just after it

        Args:
            event: event
            levels: full-series timestamp / water_level rows

        Returns:
            'rising', 'falling' or 'stable'
        """
        window = AnalysisConfig.TREND_WINDOW_SAMPLES
        before = levels.loc[levels['timestamp'] < event.start_date, 'water_level'].tail(window)
        after = levels.loc[levels['timestamp'] > event.end_date, 'water_level'].head(window)
        if len(before) < AnalysisConfig.TREND_MIN_SAMPLES or len(after) < AnalysisConfig.TREND_MIN_SAMPLES:
            return 'stable'

        change = float(after.mean()) - float(before.mean())
        if change > AnalysisConfig.TREND_TOLERANCE:
            return 'rising'
        if change < -AnalysisConfig.TREND_TOLERANCE:
            return 'falling'
        return 'stable'

    def extract_pool_position(self, baseline: Optional[float]):
        """(below_pool, above_pool); the pool itself stands in for a missing baseline"""
        reference = baseline if baseline is not None else self.permanent_pool_elevation
        below = reference < self.permanent_pool_elevation - AnalysisConfig.POOL_TOLERANCE
        above = reference > self.permanent_pool_elevation + AnalysisConfig.POOL_TOLERANCE
        return below, above

    def extract_all_features(self, event: AnalysisPeriod, levels: pd.DataFrame) -> HydrographFeatures:
        """
        Extract all features for one event

        Args:
            event: event with calculated analysis
            levels: full-series timestamp / water_level rows

        Returns:
            HydrographFeatures
        """
        analysis = event.analysis
        peak = analysis.peak_elevation if analysis is not None else None
        baseline = analysis.baseline_elevation if analysis is not None else None
        drawdown_duration = analysis.time_to_baseline_hours if analysis is not None else None

        peak_over_baseline = peak - baseline if peak is not None and baseline is not None else 0.0
        rising_limb_rate, drawdown_rate = self.extract_limb_rates(event)
        steep, shallow = self.classify_drawdown(drawdown_duration)
        below_pool, above_pool = self.extract_pool_position(baseline)
        total_rainfall = event.total_precipitation
        if peak is None or baseline is None:
            logger.debug(f"Event {event.id}: peak or baseline undefined, peakOverBaseline set to 0")

        return HydrographFeatures(
            event_id=event.id,
            peak_water_level=peak,
            baseline_water_level=baseline,
            peak_over_baseline=peak_over_baseline,
            drawdown_duration=drawdown_duration,
            drawdown_rate=drawdown_rate,
            drawdown_is_steep=steep,
            drawdown_is_shallow=shallow,
            rising_limb_rate=rising_limb_rate,
            rain_to_peak_ratio=peak_over_baseline / total_rainfall if total_rainfall > 0 else 0.0,
            total_rainfall=total_rainfall,
            baseline_trend=self.extract_baseline_trend(event, levels),
            baseline_below_pool=below_pool,
            baseline_above_pool=above_pool,
        )


def extract_features(event: AnalysisPeriod, points: Iterable[Any],
                     permanent_pool_elevation: float, design_drawdown_hours: float) -> HydrographFeatures:
    """Features for a single event against the full merged series."""
    extractor = HydrographFeatureExtractor(permanent_pool_elevation, design_drawdown_hours)
    return extractor.extract_all_features(event, water_level_frame(points))
