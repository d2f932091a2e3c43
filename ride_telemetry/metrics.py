"""
Metrics Computation for Ride Telemetry

This module computes derived quantities from recorded measurements:
great-circle distances between GPS fixes and whole-workout summary
statistics.
"""

from typing import Dict, List, Optional

import numpy as np

from . import constants
from . import utils


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great-circle distance between two points on Earth.

    Uses the Haversine formula to compute distance along the surface of a sphere.

    Args:
        lat1, lon1: Latitude and longitude of first point in degrees.
        lat2, lon2: Latitude and longitude of second point in degrees.

    Returns:
        Distance in meters between the two points.
    """
    R = 6371000.0  # Earth radius in meters
    lat1_rad, lon1_rad = np.deg2rad(lat1), np.deg2rad(lon1)
    lat2_rad, lon2_rad = np.deg2rad(lat2), np.deg2rad(lon2)

    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad

    a = np.sin(dlat / 2) ** 2 + np.cos(lat1_rad) * np.cos(lat2_rad) * np.sin(dlon / 2) ** 2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    return float(R * c)


def track_distance_m(gps_points: List[Dict]) -> float:
    """
    Total distance along a GPS track.

    Args:
        gps_points: GPS point dictionaries with "lat" and "lon" keys.

    Returns:
        Sum of haversine distances between consecutive points, in meters.
    """
    total = 0.0
    for prev, curr in zip(gps_points, gps_points[1:]):
        total += haversine_m(prev["lat"], prev["lon"], curr["lat"], curr["lon"])
    return total


def _values(sequence: List[Dict]) -> List[float]:
    return [entry["value"] for entry in sequence]


def workout_time_range(measurements: Dict) -> Optional[Dict]:
    """
    Earliest and latest timestamp across every metric and GPS sequence.

    Returns:
        {"start": ms, "end": ms}, or None when nothing has been recorded.
    """
    sequences = [measurements.get(metric, []) for metric in constants.MERGED_METRICS]
    sequences.append(measurements.get("gps", []))
    non_empty = [seq for seq in sequences if seq]
    if not non_empty:
        return None
    return {
        "start": min(seq[0]["timestamp"] for seq in non_empty),
        "end": max(seq[-1]["timestamp"] for seq in non_empty),
    }


def compute_workout_summary(measurements: Dict) -> Dict:
    """
    Compute whole-workout summary statistics from raw measurements.

    Averages and maxima are taken over the raw samples (not the resampled
    timeline), so a sensor that reports more often weighs more.

    Args:
        measurements: MeasurementsData dictionary (see MeasurementsState.to_json()).

    Returns:
        Dictionary with avgPower, maxPower, avgCadence, maxCadence,
        avgHeartrate, maxHeartrate, totalDistance, totalDuration (ms),
        startTime and endTime (ms). Statistics without samples are None.
    """
    power = _values(measurements.get("power", []))
    cadence = _values(measurements.get("cadence", []))
    heartrate = _values(measurements.get("heartrate", []))
    distance = _values(measurements.get("distance", []))
    time_range = workout_time_range(measurements)

    return {
        "avgPower": utils.round_float(utils.mean_or_none(power), 1),
        "maxPower": utils.max_or_none(power),
        "avgCadence": utils.round_float(utils.mean_or_none(cadence), 1),
        "maxCadence": utils.max_or_none(cadence),
        "avgHeartrate": utils.round_float(utils.mean_or_none(heartrate), 1),
        "maxHeartrate": utils.max_or_none(heartrate),
        "totalDistance": utils.round_float(distance[-1] - distance[0], 1) if distance else None,
        "totalDuration": time_range["end"] - time_range["start"] if time_range else 0,
        "startTime": time_range["start"] if time_range else None,
        "endTime": time_range["end"] if time_range else None,
    }
