"""
Constants for Ride Telemetry

This module defines the static tables used throughout the recording and
export pipeline: sensor validation limits, the resampling grid, zone tables
and the XML namespaces written into TCX files.
"""

from typing import NamedTuple, Optional


# Sensor validation limits. Upper bounds are exclusive for every metric,
# lower bounds are inclusive except for heart rate (a 0 bpm reading is a
# strap that lost contact, not a measurement).
VALIDATION_LIMITS = {
    "heartrate": {"min": 0, "max": 300, "min_inclusive": False},
    "power": {"min": 0, "max": 3000, "min_inclusive": True},
    "cadence": {"min": 0, "max": 300, "min_inclusive": True},
    "speed": {"min": 0, "max": 150, "min_inclusive": True},  # km/h
    "distance": {"min": 0, "max": 1_000_000, "min_inclusive": True},  # meters
    "altitude": {"min": -500, "max": 9000, "min_inclusive": True},  # meters
}

# Merged timeline grid
RESAMPLE_STEP_MS = 1000
MATCH_TOLERANCE_MS = 1000

# Order of the scalar metrics inside a merged data point
MERGED_METRICS = ("heartrate", "cadence", "power", "speed", "distance", "altitude")


class ZoneBand(NamedTuple):
    """One named band of a zone table, bounds in percent of the reference value."""

    number: int
    name: str
    min_pct: Optional[float]
    max_pct: Optional[float]
    # Span used for percent-in-zone when a bound is open
    nominal_min_pct: float
    nominal_max_pct: float


# Coggan 7-zone model, percent of FTP
POWER_ZONES = (
    ZoneBand(1, "Active Recovery", None, 55.0, 0.0, 55.0),
    ZoneBand(2, "Endurance", 55.0, 75.0, 55.0, 75.0),
    ZoneBand(3, "Tempo", 75.0, 90.0, 75.0, 90.0),
    ZoneBand(4, "Threshold", 90.0, 105.0, 90.0, 105.0),
    ZoneBand(5, "VO2max", 105.0, 120.0, 105.0, 120.0),
    ZoneBand(6, "Anaerobic", 120.0, 150.0, 120.0, 150.0),
    ZoneBand(7, "Neuromuscular", 150.0, None, 150.0, 300.0),
)

# 5-zone model, percent of max heart rate
HR_ZONES = (
    ZoneBand(1, "Recovery", None, 60.0, 50.0, 60.0),
    ZoneBand(2, "Aerobic", 60.0, 70.0, 60.0, 70.0),
    ZoneBand(3, "Tempo", 70.0, 80.0, 70.0, 80.0),
    ZoneBand(4, "Threshold", 80.0, 90.0, 80.0, 90.0),
    ZoneBand(5, "Anaerobic", 90.0, None, 90.0, 100.0),
)

# Export formats
CSV_COLUMNS = (
    "timestamp", "lap", "power", "cadence", "heartrate",
    "speed", "distance", "altitude", "lat", "lon",
)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
TCX_NAMESPACE = "http://www.garmin.com/xmlschemas/TrainingCenterDatabase/v2"
ACTIVITY_EXTENSION_NAMESPACE = "http://www.garmin.com/xmlschemas/ActivityExtension/v2"
TCX_SPORT = "Biking"

JSON_EXPORT_VERSION = "1.0"
