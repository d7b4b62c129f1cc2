"""
End-to-end tests for the diagnostics stage and the asset pipeline.
"""
import pytest
from pydantic import ValidationError

from series_builders import at, hourly_weather, sensor_series
from stormwater.schemas.analysisSchemas import AnalystReview, AssetConfig
from stormwater.services.diagnostics import analyze_asset, apply_analyst_review, run_diagnostics


@pytest.fixture
def pulse_asset():
    return AssetConfig(asset_id="pond-1", permanent_pool_elevation=100.0, design_drawdown_hours=24)


@pytest.fixture
def leak_asset():
    return {"assetId": "pond-2", "permanentPoolElevation": 99.95, "designDrawdownHours": 24}


def test_single_pulse_has_no_outlet_or_valve_diagnosis(pulse_readings, pulse_asset):
    sensor, weather = pulse_readings

    result = analyze_asset(sensor, weather, pulse_asset)

    assert len(result.events) == 1
    event = result.events[0]
    assert event.analysis.time_to_baseline == "21h 45m"
    rule_ids = {d.rule_id for d in result.diagnostics[event.id]}
    assert "outlet_blocked" not in rule_ids
    assert "valve_open" not in rule_ids


def test_leak_scenario_ranks_leak_seep_first(leak_readings, leak_asset):
    sensor, weather = leak_readings

    result = analyze_asset(sensor, weather, leak_asset)

    diagnoses = result.diagnostics[result.events[0].id]
    assert diagnoses[0].rule_id == "leak_seep"
    assert diagnoses[0].confidence >= 0.8


def test_disregarded_event_has_no_diagnostics_entry(leak_readings, leak_asset):
    sensor, weather = leak_readings
    event_id = f"pond-2-{at(24)}"

    result = analyze_asset(sensor, weather, leak_asset, reviews={event_id: {"disregarded": True}})

    assert [e.id for e in result.events] == [event_id]
    assert result.events[0].analysis.disregarded is True
    assert event_id not in result.diagnostics
    assert result.diagnostics == {}


def test_run_diagnostics_skips_disregarded(leak_readings, leak_asset):
    sensor, weather = leak_readings
    result = analyze_asset(sensor, weather, leak_asset)
    reviewed = apply_analyst_review(result.events, {result.events[0].id: AnalystReview(disregarded=True)})

    assert run_diagnostics(result.points, reviewed, 99.95, 24) == {}


def test_review_keeps_calculated_metrics(leak_readings, leak_asset):
    sensor, weather = leak_readings
    result = analyze_asset(sensor, weather, leak_asset)
    event = result.events[0]

    reviewed = apply_analyst_review(result.events, {event.id: {"notes": "berm seep found", "status": "leaking"}})[0]

    assert reviewed.analysis.notes == "berm seep found"
    assert reviewed.analysis.status == "leaking"
    assert reviewed.analysis.peak_elevation == event.analysis.peak_elevation
    assert reviewed.analysis.disregarded is False


def test_pipeline_is_deterministic(pulse_readings, pulse_asset):
    sensor = pulse_readings[0]
    weather = hourly_weather(120, {24: 10.0, 25: 10.0, 90: 3.0})

    first = analyze_asset(sensor, weather, pulse_asset)
    second = analyze_asset(sensor, weather, pulse_asset)

    assert first == second
    assert first.model_dump(by_alias=True) == second.model_dump(by_alias=True)


def test_every_reported_confidence_is_bounded(leak_readings, leak_asset):
    sensor, weather = leak_readings

    result = analyze_asset(sensor, weather, leak_asset)

    for diagnoses in result.diagnostics.values():
        for diagnosis in diagnoses:
            assert 0.3 < diagnosis.confidence <= 1.0


def test_empty_input_gives_empty_analysis(pulse_asset):
    result = analyze_asset([], [], pulse_asset)

    assert result.points == []
    assert result.events == []
    assert result.diagnostics == {}


def test_dry_record_gives_no_events(pulse_asset):
    sensor = sensor_series(72, lambda hour: 100.0)

    result = analyze_asset(sensor, hourly_weather(72, {}), pulse_asset)

    assert result.events == []
    assert result.diagnostics == {}


def test_rain_without_level_response_gives_no_diagnoses(pulse_asset):
    sensor = sensor_series(120, lambda hour: 100.0)

    result = analyze_asset(sensor, hourly_weather(120, {24: 10.0, 25: 10.0}), pulse_asset)

    assert len(result.events) == 1
    event = result.events[0]
    assert event.analysis.time_to_baseline_hours is None
    assert result.diagnostics[event.id] == []


def test_invalid_asset_config_is_rejected():
    with pytest.raises(ValidationError):
        AssetConfig(permanent_pool_elevation=100.0, design_drawdown_hours=0)
