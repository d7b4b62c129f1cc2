import numpy as np
import pandas as pd
from typing import Any, Iterable, List, Optional, Tuple
from dataclasses import dataclass
from stormwater.core.analysis_config import AnalysisConfig, MS_PER_HOUR, MS_PER_MINUTE
from stormwater.schemas.analysisSchemas import AnalysisPeriod, ChartablePoint
from stormwater.services.time_series_processor import coerce_records, points_to_frame
from stormwater.utils.logger_config import get_stormwater_logger

logger = get_stormwater_logger("precipitation_event_selector")


@dataclass
class PrecipitationEventConfig:
    """precipitation event segmentation configuration"""
    max_gap_hours: float = AnalysisConfig.EVENT_MAX_GAP_HOURS
    post_event_hours: float = AnalysisConfig.POST_EVENT_WINDOW_HOURS
    min_rain_threshold: float = AnalysisConfig.MIN_RAIN_THRESHOLD  # mm per sample
    min_total_precipitation: float = AnalysisConfig.MIN_EVENT_PRECIPITATION  # mm
    min_duration_minutes: int = AnalysisConfig.MIN_EVENT_DURATION_MINUTES
    baseline_lookback_hours: float = AnalysisConfig.BASELINE_LOOKBACK_HOURS

@dataclass
class EventWindow:
    """event window boundaries (epoch ms)"""
    start: int
    rain_end: int
    end: int
    truncated: bool = False

class PrecipitationEventSelector:
    """precipitation event selector"""

    def __init__(self, config: Optional[PrecipitationEventConfig] = None):
        self.config = config or PrecipitationEventConfig()

    def find_wet_groups(self, rain: pd.DataFrame) -> List[Tuple[int, int]]:
        """
        group wet samples separated by no more than the gap tolerance

        Args:
            rain: DataFrame with timestamp and precipitation columns, sorted, no NaN

        Returns:
            List[Tuple[int, int]]: (first wet timestamp, last wet timestamp) per group
        """
        wet = rain[rain['precipitation'] > self.config.min_rain_threshold]
        if wet.empty:
            return []

        timestamps = wet['timestamp'].to_numpy()
        max_gap_ms = self.config.max_gap_hours * MS_PER_HOUR
        breaks = np.flatnonzero(np.diff(timestamps) > max_gap_ms)
        starts = np.concatenate(([0], breaks + 1))
        ends = np.concatenate((breaks, [len(timestamps) - 1]))
        return [(int(timestamps[s]), int(timestamps[e])) for s, e in zip(starts, ends)]

    def is_significant(self, rain: pd.DataFrame, group: Tuple[int, int]) -> bool:
        """
        check a wet group against the trace-rain thresholds

        Args:
            rain: precipitation samples
            group: (first wet timestamp, last wet timestamp)

        Returns:
            bool: whether the group is kept as an event
        """
        start, end = group
        in_group = rain[(rain['timestamp'] >= start) & (rain['timestamp'] <= end)]
        total = float(in_group['precipitation'].sum())
        duration_minutes = (end - start) / MS_PER_MINUTE
        if total < self.config.min_total_precipitation or duration_minutes < self.config.min_duration_minutes:
            logger.debug(f"Discarding trace rain {start}-{end}: {total:.2f} mm over {duration_minutes:.0f} min")
            return False
        return True

    def expand_event_boundaries(self, group: Tuple[int, int], series_end: int) -> EventWindow:
        """
        append the post-event observation window, clamped to the end of the series

        Args:
            group: (first wet timestamp, last wet timestamp)
            series_end: last timestamp of the merged series

        Returns:
            EventWindow: event window
        """
        start, rain_end = group
        end = rain_end + int(self.config.post_event_hours * MS_PER_HOUR)
        if end > series_end:
            return EventWindow(start=start, rain_end=rain_end, end=max(series_end, rain_end), truncated=True)
        return EventWindow(start=start, rain_end=rain_end, end=end)

    def merge_overlapping_windows(self, windows: List[EventWindow]) -> List[EventWindow]:
        """
        merge windows whose extended boundaries touch or overlap

        Args:
            windows: windows in chronological order

        Returns:
            List[EventWindow]: non-overlapping windows
        """
        merged: List[EventWindow] = []
        for window in windows:
            if merged and window.start <= merged[-1].end:
                current = merged[-1]
                merged[-1] = EventWindow(
                    start=current.start,
                    rain_end=max(current.rain_end, window.rain_end),
                    end=max(current.end, window.end),
                    truncated=current.truncated or window.truncated,
                )
            else:
                merged.append(window)
        return merged

    def build_event(self, window: EventWindow, frame: pd.DataFrame,
                    points: List[ChartablePoint], asset_id: Optional[str]) -> AnalysisPeriod:
        """
        build the event for a window

        Args:
            window: event window
            frame: DataFrame view of points (same order)
            points: merged series
            asset_id: asset identifier, used in the event id

        Returns:
            AnalysisPeriod: event without analysis
        """
        in_window = (frame['timestamp'] >= window.start) & (frame['timestamp'] <= window.end)
        total_precipitation = float(frame.loc[in_window, 'precipitation'].sum())

        timestamps = frame['timestamp'].to_numpy()
        lookback_start = window.start - int(self.config.baseline_lookback_hours * MS_PER_HOUR)
        first = int(np.searchsorted(timestamps, lookback_start, side='left'))
        last = int(np.searchsorted(timestamps, window.end, side='right'))

        return AnalysisPeriod(
            id=f"{asset_id or 'event'}-{window.start}",
            asset_id=asset_id,
            start_date=window.start,
            end_date=window.end,
            rain_end_date=window.rain_end,
            total_precipitation=total_precipitation,
            truncated=window.truncated,
            data_points=points[first:last],
        )

    def extract_events(self, points: Iterable[Any], asset_id: Optional[str] = None) -> List[AnalysisPeriod]:
        """
        extract precipitation events

        Args:
            points: merged chartable series
            asset_id: asset identifier

        Returns:
            List[AnalysisPeriod]: chronological, non-overlapping events
        """
        points = sorted(coerce_records(points, ChartablePoint), key=lambda p: p.timestamp)
        if not points:
            return []

        frame = points_to_frame(points)
        rain = frame.loc[frame['precipitation'].notna(), ['timestamp', 'precipitation']]

        groups = [g for g in self.find_wet_groups(rain) if self.is_significant(rain, g)]
        if not groups:
            logger.info(f"No precipitation events found for {asset_id or 'series'}")
            return []

        series_end = int(frame['timestamp'].iloc[-1])
        windows = self.merge_overlapping_windows(
            [self.expand_event_boundaries(g, series_end) for g in groups]
        )
        events = [self.build_event(w, frame, points, asset_id) for w in windows]
        logger.info(f"Extracted {len(events)} precipitation events from {len(groups)} wet periods "
                    f"for {asset_id or 'series'}")
        return events
