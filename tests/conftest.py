"""
Shared fixtures for stormwater analysis tests
"""
import pytest

from series_builders import hourly_weather, sensor_series, pulse_level, leak_level
from stormwater.schemas.diagnosticSchemas import HydrographFeatures
from stormwater.services.time_series_processor import merge_time_series


@pytest.fixture
def pulse_readings():
    """Single 2 h, 10 mm/h pulse at hour 24 over a 120 h record."""
    return sensor_series(120, pulse_level), hourly_weather(120, {24: 10.0, 25: 10.0})


@pytest.fixture
def pulse_points(pulse_readings):
    sensor, weather = pulse_readings
    return merge_time_series(sensor, weather)


@pytest.fixture
def leak_readings():
    """Same storm, level drains fast and settles 0.15 m below the pre-event baseline."""
    return sensor_series(120, leak_level), hourly_weather(120, {24: 10.0, 25: 10.0})


@pytest.fixture
def features_factory():
    """Build HydrographFeatures with neutral defaults."""
    def build(**overrides):
        values = {"event_id": "evt-1", "peak_over_baseline": 0.1}
        values.update(overrides)
        return HydrographFeatures(**values)
    return build
