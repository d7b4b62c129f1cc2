import math
from typing import Any, Iterable, List, Optional, Sequence, Type, TypeVar
import numpy as np
import pandas as pd
from pydantic import BaseModel, ValidationError
from stormwater.core.exceptions import InvalidReadingError
from stormwater.schemas.analysisSchemas import (
    AnalysisPeriod,
    ChartablePoint,
    SensorReading,
    SurveyPoint,
    WeatherReading,
    WeatherSummary,
)
from stormwater.utils.logger_config import get_stormwater_logger

logger = get_stormwater_logger("time_series_processor")

# Optional per-source fields carried by a ChartablePoint
CHART_COLUMNS = ['water_level', 'raw_water_level', 'precipitation', 'elevation', 'temperature']

ModelT = TypeVar('ModelT', bound=BaseModel)


def coerce_records(records: Optional[Iterable[Any]], model: Type[ModelT]) -> List[ModelT]:
    """
    Validate plain dicts (camelCase or snake_case keys) into model instances.
    Instances of the model are passed through untouched.
    """
    coerced = []
    for record in records or []:
        if isinstance(record, model):
            coerced.append(record)
            continue
        try:
            coerced.append(model.model_validate(record))
        except ValidationError as e:
            raise InvalidReadingError(f"Invalid {model.__name__} record {record!r}: {e}") from e
    return coerced


def _clean_numeric(frame: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    """Coerce columns to float and replace non-finite values with NaN."""
    for col in columns:
        values = pd.to_numeric(frame[col], errors='coerce').astype(float)
        frame[col] = values.where(np.isfinite(values))
    frame['timestamp'] = frame['timestamp'].astype('int64')
    return frame


def _records_frame(records, model, columns: Sequence[str]) -> pd.DataFrame:
    rows = [r.model_dump(include={'timestamp', *columns}) for r in coerce_records(records, model)]
    frame = pd.DataFrame(rows, columns=['timestamp', *columns])
    return _clean_numeric(frame, columns)


def _optional_float(value) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def merge_time_series(sensor_readings: Optional[Iterable[Any]],
                      weather_readings: Optional[Iterable[Any]],
                      survey_points: Optional[Iterable[Any]] = None) -> List[ChartablePoint]:
    """
    Merge sensor, weather and survey readings into one chartable series.

    Args:
        sensor_readings: water level readings (SensorReading or dicts)
        weather_readings: precipitation readings (WeatherReading or dicts)
        survey_points: manual / tape-down elevations (SurveyPoint or dicts)

    Returns:
        List[ChartablePoint]: sorted by timestamp, one point per timestamp.
        Points sharing a timestamp are unioned field by field; a value is
        never replaced by a missing one. Conflicting readings from one source
        resolve to the reading with the lowest value. No interpolation is done.
    """
    frames = [
        _records_frame(sensor_readings, SensorReading, ['water_level', 'raw_water_level']),
        _records_frame(weather_readings, WeatherReading, ['precipitation', 'temperature']),
        _records_frame(survey_points, SurveyPoint, ['elevation']),
    ]
    frames = [f.reindex(columns=['timestamp', *CHART_COLUMNS]) for f in frames if not f.empty]
    if not frames:
        return []

    combined = pd.concat(frames, ignore_index=True)
    # full-row sort: conflicting readings resolve the same way in any input order
    combined = combined.sort_values(['timestamp', *CHART_COLUMNS], na_position='last')
    # first() skips NaN, so each field takes the first reading that has it
    merged = combined.groupby('timestamp', sort=True)[CHART_COLUMNS].first()

    points = [
        ChartablePoint(timestamp=int(timestamp), **{col: _optional_float(v) for col, v in row.items()})
        for timestamp, row in zip(merged.index, merged.to_dict('records'))
    ]
    logger.debug(f"Merged {len(combined)} readings into {len(points)} points")
    return points


def points_to_frame(points: Optional[Iterable[Any]]) -> pd.DataFrame:
    """
    DataFrame view of a chartable series: one row per point, NaN where a
    field is missing or non-finite, sorted by timestamp.
    """
    rows = [p.model_dump(include={'timestamp', *CHART_COLUMNS}) for p in coerce_records(points, ChartablePoint)]
    frame = pd.DataFrame(rows, columns=['timestamp', *CHART_COLUMNS])
    frame = _clean_numeric(frame, CHART_COLUMNS)
    return frame.sort_values('timestamp', kind='mergesort').reset_index(drop=True)


def sensor_readings_to_elevation(raw_readings: Iterable[Any], sensor_elevation: float) -> List[SensorReading]:
    """
    Convert raw sensor depth readings to water elevation.

    Args:
        raw_readings: records with timestamp and waterLevel (depth above sensor, m)
        sensor_elevation: surveyed elevation of the sensor (m)

    Returns:
        List[SensorReading]: water_level = raw + sensor_elevation, raw kept in raw_water_level
    """
    readings = []
    for reading in coerce_records(raw_readings, SensorReading):
        if not math.isfinite(reading.water_level):
            continue
        readings.append(SensorReading(
            timestamp=reading.timestamp,
            water_level=reading.water_level + sensor_elevation,
            raw_water_level=reading.water_level,
        ))
    return readings


def tape_down_to_survey_point(timestamp: int, stillwell_top_elevation: float,
                              tape_down_measurement: float) -> SurveyPoint:
    """Water elevation from a tape-down taken from the top of the stillwell."""
    return SurveyPoint(
        timestamp=timestamp,
        elevation=stillwell_top_elevation - tape_down_measurement,
        source='tape-down',
        tape_down_measurement=tape_down_measurement,
        stillwell_top_elevation=stillwell_top_elevation,
    )


def summarize_weather(points: Iterable[ChartablePoint], events: List[AnalysisPeriod]) -> WeatherSummary:
    total = sum(
        p.precipitation for p in points
        if p.precipitation is not None and math.isfinite(p.precipitation)
    )
    return WeatherSummary(total_precipitation=float(total), events=events)
