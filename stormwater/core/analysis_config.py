# Thresholds for precipitation event detection and hydrograph diagnostics
# Timestamps are epoch milliseconds, elevations are metres, rainfall is mm

MS_PER_HOUR = 60 * 60 * 1000
MS_PER_MINUTE = 60 * 1000


class AnalysisConfig:
    # Wet samples closer together than this belong to the same event
    EVENT_MAX_GAP_HOURS = 6.0

    # Observation window appended after the last wet sample to capture drawdown
    POST_EVENT_WINDOW_HOURS = 48.0

    # A sample counts as wet when precipitation is strictly above this value (mm)
    MIN_RAIN_THRESHOLD = 0.0

    # Trace-rain filter: events below this total or duration are discarded
    MIN_EVENT_PRECIPITATION = 1.0  # mm
    MIN_EVENT_DURATION_MINUTES = 0

    # Baseline = mean water level over this window immediately before the event
    BASELINE_LOOKBACK_HOURS = 3.0

    # Post-event elevation = mean water level over this window ending at the event end
    POST_EVENT_AVERAGING_HOURS = 3.0

    # Metrics computed from fewer samples than this are left undefined
    MIN_METRIC_SAMPLES = 2

    # Water level is "back to baseline" within this band
    BASELINE_RETURN_TOLERANCE = 0.05  # m

    # Drawdown classification relative to the design drawdown duration
    STEEP_DRAWDOWN_FACTOR = 0.75
    SHALLOW_DRAWDOWN_FACTOR = 1.25

    # Long-window baseline trend: pre-event vs post-event sample means
    TREND_WINDOW_SAMPLES = 10
    TREND_MIN_SAMPLES = 3
    TREND_TOLERANCE = 0.05  # m

    # Baseline vs permanent pool comparison band
    POOL_TOLERANCE = 0.05  # m

    # Diagnoses at or below this confidence are not reported
    MIN_DIAGNOSTIC_CONFIDENCE = 0.3
    MAX_DIAGNOSTIC_CONFIDENCE = 1.0

    NOT_REACHED = "not reached"
