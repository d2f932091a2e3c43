import math

import numpy as np
import pytest

from ride_telemetry import (
    compute_workout_summary,
    haversine_m,
    iso_timestamp,
    round_float,
    round_half_up,
    safe_float,
    track_distance_m,
    workout_time_range,
)
from ride_telemetry.utils import format_fixed, format_int, is_finite_number, max_or_none, mean_or_none


def test_iso_timestamp(base_time):
    assert iso_timestamp(0) == "1970-01-01T00:00:00.000Z"
    assert iso_timestamp(1500) == "1970-01-01T00:00:01.500Z"
    assert iso_timestamp(base_time) == "2025-01-15T10:00:00.000Z"


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(200.5) == 201
    assert round_half_up(-2.5) == -2
    assert round_half_up(None) is None
    assert round_half_up(float("nan")) is None


def test_formatting_helpers():
    assert format_fixed(None, 1) == ""
    assert format_fixed(8.333, 1) == "8.3"
    assert format_int(None) == ""
    assert format_int(79.5) == "80"


def test_is_finite_number():
    assert is_finite_number(1)
    assert is_finite_number(np.float64(1.5))
    assert not is_finite_number(True)
    assert not is_finite_number(float("nan"))
    assert not is_finite_number("1")


def test_value_helpers():
    assert math.isnan(safe_float("abc"))
    assert safe_float("2.5") == 2.5
    assert round_float(1.23456) == 1.235
    assert round_float(float("inf")) is None
    assert mean_or_none([1, None, 3]) == 2.0
    assert mean_or_none([]) is None
    assert max_or_none([1, float("nan"), 3]) == 3.0


def test_haversine():
    assert haversine_m(52.0, 4.0, 52.0, 4.0) == 0.0
    assert haversine_m(0.0, 0.0, 1.0, 0.0) == pytest.approx(111195, rel=1e-3)


def test_track_distance():
    points = [{"lat": 0.0, "lon": 0.0}, {"lat": 0.0, "lon": 0.001}, {"lat": 0.0, "lon": 0.002}]
    assert track_distance_m(points) == pytest.approx(222.39, abs=0.1)
    assert track_distance_m(points[:1]) == 0.0


def test_workout_time_range(ride, base_time):
    assert workout_time_range({}) is None
    assert workout_time_range(ride.to_json()) == {"start": base_time, "end": base_time + 9000}


def test_workout_summary(ride, base_time):
    summary = compute_workout_summary(ride.to_json())
    assert summary["avgPower"] == 204.5
    assert summary["maxPower"] == 209
    assert summary["avgHeartrate"] == 144.5
    assert summary["maxCadence"] == 90
    assert summary["totalDistance"] is None
    assert summary["totalDuration"] == 9000
    assert summary["startTime"] == base_time


def test_workout_summary_empty():
    summary = compute_workout_summary({})
    assert summary["avgPower"] is None
    assert summary["totalDuration"] == 0
    assert summary["endTime"] is None
