"""
Ride Telemetry

Records live cycling sensor data (power, heart rate, cadence, speed,
distance, altitude, GPS), tracks time in training zones, merges the streams
onto a 1-second timeline and exports workouts as CSV, TCX or JSON.

This file re-exports the public functions of the submodules so callers can
simply `import ride_telemetry`.
"""

# Import constants
from .constants import (
    VALIDATION_LIMITS,
    RESAMPLE_STEP_MS,
    MATCH_TOLERANCE_MS,
    POWER_ZONES,
    HR_ZONES,
    ZoneBand,
)

# Import utility functions
from .utils import (
    safe_float,
    round_float,
    round_half_up,
    iso_timestamp,
)

# Import measurement store
from .measurements import (
    MeasurementType,
    MeasurementsState,
    UnknownMeasurementTypeError,
    get_sequence,
)

# Import metrics functions
from .metrics import (
    haversine_m,
    track_distance_m,
    workout_time_range,
    compute_workout_summary,
)

# Import time series functions
from .time_series import (
    values_at_timestamps,
    build_timeline,
    merge_measurements,
    merged_dataframe,
)

# Import zone functions
from .zones import (
    classify_percent,
    percent_in_zone,
    ZoneTracker,
    ZoneState,
)

# Import lap analysis functions
from .lap_analysis import (
    lap_number_at,
    build_lap_boundaries,
    summarize_laps,
    AutoLapper,
)

# Import export functions
from .export import (
    get_csv_string,
    get_tcx_string,
    build_export_payload,
    get_json_string,
)

# Import session
from .session import (
    RecordingSession,
)

__all__ = [
    # Constants
    "VALIDATION_LIMITS",
    "RESAMPLE_STEP_MS",
    "MATCH_TOLERANCE_MS",
    "POWER_ZONES",
    "HR_ZONES",
    "ZoneBand",
    # Utilities
    "safe_float",
    "round_float",
    "round_half_up",
    "iso_timestamp",
    # Measurements
    "MeasurementType",
    "MeasurementsState",
    "UnknownMeasurementTypeError",
    "get_sequence",
    # Metrics
    "haversine_m",
    "track_distance_m",
    "workout_time_range",
    "compute_workout_summary",
    # Time series
    "values_at_timestamps",
    "build_timeline",
    "merge_measurements",
    "merged_dataframe",
    # Zones
    "classify_percent",
    "percent_in_zone",
    "ZoneTracker",
    "ZoneState",
    # Lap analysis
    "lap_number_at",
    "build_lap_boundaries",
    "summarize_laps",
    "AutoLapper",
    # Export
    "get_csv_string",
    "get_tcx_string",
    "build_export_payload",
    "get_json_string",
    # Session
    "RecordingSession",
]
