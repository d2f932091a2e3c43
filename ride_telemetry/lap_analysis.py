"""
Lap Analysis for Ride Telemetry

This module handles lap segmentation: mapping timestamps to lap numbers,
splitting a workout into lap spans at the recorded markers, computing
per-lap summary statistics and triggering automatic laps.
"""

import logging
import math
from typing import Dict, List, Optional, Union

from . import constants
from . import metrics
from . import utils
from .measurements import MeasurementsState, get_sequence


logger = logging.getLogger(__name__)


def lap_number_at(timestamp: float, laps: List[Dict]) -> int:
    """
    Lap number a timestamp belongs to.

    A marker closes the lap it carries the number of, so the lap in
    progress after marker N is lap N + 1.

    Args:
        timestamp: Time in Unix ms.
        laps: Lap markers in append order.

    Returns:
        Number of the last marker at or before timestamp, plus 1; or 1 if
        timestamp precedes every marker.
    """
    number = 1
    for lap in laps:
        if lap["timestamp"] > timestamp:
            break
        number = lap["number"] + 1
    return number


def build_lap_boundaries(first_timestamp: float, last_timestamp: float,
                         laps: List[Dict]) -> List[Dict]:
    """
    Split a workout into lap spans at the lap markers.

    The first span starts at the first sample and every later span at its
    marker. Spans are half-open [start, end); the final span's end is one
    millisecond past the last sample so the last sample is included.

    Args:
        first_timestamp: Earliest sample time in Unix ms.
        last_timestamp: Latest sample time in Unix ms.
        laps: Lap markers in append order.

    Returns:
        List of span dictionaries with lap_number, start, end and is_manual
        (True for spans closed by a marker). Markers at or before the
        current span start do not produce empty spans, and no final span
        follows a marker placed after the last sample.
    """
    spans = []
    start = first_timestamp
    number = 1

    for lap in laps:
        marker_ts = lap["timestamp"]
        if marker_ts > start:
            spans.append({
                "lap_number": number,
                "start": start,
                "end": marker_ts,
                "is_manual": True,
            })
            start = marker_ts
        number = lap["number"] + 1

    # A marker at or after the last sample leaves nothing for a final lap
    if start <= last_timestamp:
        spans.append({
            "lap_number": number,
            "start": start,
            "end": last_timestamp + 1,
            "is_manual": False,
        })
    return spans


def samples_in_span(sequence: List[Dict], span: Dict) -> List[Dict]:
    """Entries of a timestamp-sorted sequence that fall inside a lap span."""
    return [entry for entry in sequence if span["start"] <= entry["timestamp"] < span["end"]]


def summarize_laps(measurements: Union[MeasurementsState, Dict]) -> List[Dict]:
    """
    Compute summary statistics for each lap from the raw measurements.

    Args:
        measurements: MeasurementsState or a to_json() snapshot.

    Returns:
        List of lap summary dictionaries with lap_number, start_time,
        start_ms, end_ms, lap_time_s, distance_m, avg/max power,
        avg/max heart rate and avg cadence. Empty list if nothing was
        recorded.
    """
    time_range = metrics.workout_time_range(
        {name: get_sequence(measurements, name)
         for name in (*constants.MERGED_METRICS, "gps")}
    )
    if time_range is None:
        return []

    power = get_sequence(measurements, "power")
    heartrate = get_sequence(measurements, "heartrate")
    cadence = get_sequence(measurements, "cadence")
    distance = get_sequence(measurements, "distance")
    spans = build_lap_boundaries(time_range["start"], time_range["end"],
                                 get_sequence(measurements, "laps"))

    summaries = []
    for span in spans:
        end_ms = min(span["end"], time_range["end"])
        lap_power = [e["value"] for e in samples_in_span(power, span)]
        lap_hr = [e["value"] for e in samples_in_span(heartrate, span)]
        lap_cadence = [e["value"] for e in samples_in_span(cadence, span)]
        lap_distance = [e["value"] for e in samples_in_span(distance, span)]

        summaries.append({
            "lap_number": span["lap_number"],
            "start_time": utils.iso_timestamp(span["start"]),
            "start_ms": span["start"],
            "end_ms": end_ms,
            "lap_time_s": utils.round_float((end_ms - span["start"]) / 1000),
            "distance_m": utils.round_float(lap_distance[-1] - lap_distance[0], 1) if lap_distance else None,
            "avg_power": utils.round_float(utils.mean_or_none(lap_power), 1),
            "max_power": utils.max_or_none(lap_power),
            "avg_heartrate": utils.round_float(utils.mean_or_none(lap_hr), 1),
            "max_heartrate": utils.max_or_none(lap_hr),
            "avg_cadence": utils.round_float(utils.mean_or_none(lap_cadence), 1),
            "is_manual": span["is_manual"],
        })

    return summaries


class AutoLapper:
    """
    Marks laps automatically every N kilometers or every N minutes.

    The caller drives it by calling check() as samples arrive (or on a
    timer); it never reads the wall clock itself.

    Args:
        mode: "distance" (interval in km, read from the distance sequence)
              or "time" (interval in minutes, elapsed since the store's
              start time).
        interval: Kilometers or minutes per lap; must be positive.
    """

    def __init__(self, mode: str, interval: float):
        if mode not in ("distance", "time"):
            raise ValueError(f"Unknown auto-lap mode: {mode!r}")
        if not utils.is_finite_number(interval) or interval <= 0:
            raise ValueError(f"Auto-lap interval must be positive, got {interval!r}")
        self.mode = mode
        self.interval = interval
        self._last_mark = 0.0

    def _progress(self, measurements: MeasurementsState, now: float) -> Optional[float]:
        if self.mode == "distance":
            if not measurements.distance:
                return None
            return measurements.distance[-1]["value"] / 1000
        start_time = measurements.get_start_time()
        if start_time is None:
            return None
        return (now - start_time) / 60000

    def check(self, measurements: MeasurementsState, now: float) -> Optional[Dict]:
        """
        Mark a lap if a new interval boundary has been crossed.

        Args:
            measurements: The session's store; the lap is added to it.
            now: Current time in Unix ms, used as the lap timestamp.

        Returns:
            The new lap marker, or None if no boundary was crossed.
        """
        progress = self._progress(measurements, now)
        if progress is None or progress <= 0:
            return None

        if math.floor(progress / self.interval) <= math.floor(self._last_mark / self.interval):
            return None

        lap = measurements.add_lap(now)
        if lap is not None:
            self._last_mark = progress
            logger.info("Auto lap %s (%s mode) at %s", lap["number"], self.mode, now)
        return lap

    def reset(self) -> None:
        self._last_mark = 0.0
