"""
Time Series Resampling for Ride Telemetry

This module aligns independently sampled sensor streams onto one shared
1-second timeline. Each metric is snapped to its nearest real sample within
a fixed tolerance; there is no interpolation between samples.
"""

from typing import Dict, List, Optional, Union

import pandas as pd

from . import constants
from .measurements import MeasurementsState, get_sequence


def values_at_timestamps(sequence: List[Dict], timestamps: List[int],
                         tolerance_ms: int = constants.MATCH_TOLERANCE_MS) -> List[Optional[float]]:
    """
    Look up a metric's value at each target timestamp by nearest neighbour.

    Walks a forward-only cursor over the sequence, so both the sequence and
    the timestamps must be in ascending order. The cursor lives only for
    this call.

    Args:
        sequence: Measurement dictionaries sorted by timestamp.
        timestamps: Target timestamps in ascending order.
        tolerance_ms: A sample is used only if it lies strictly closer than
                      this to the target. Default 1000.

    Returns:
        One value per target timestamp, None where no sample is close enough.
    """
    values = []
    index = 0

    for ts in timestamps:
        # First sample at or after the target
        while index < len(sequence) and sequence[index]["timestamp"] < ts:
            index += 1

        if index == 0:
            candidate = sequence[0] if sequence else None
        elif index >= len(sequence):
            candidate = sequence[-1]
        else:
            before = sequence[index - 1]
            after = sequence[index]
            # Ties go to the earlier sample
            if ts - before["timestamp"] <= after["timestamp"] - ts:
                candidate = before
            else:
                candidate = after

        if candidate is not None and abs(candidate["timestamp"] - ts) < tolerance_ms:
            values.append(candidate["value"])
        else:
            values.append(None)

    return values


def build_timeline(sources: List[List[Dict]],
                   step_ms: int = constants.RESAMPLE_STEP_MS) -> List[int]:
    """
    Build the shared tick grid spanning every non-empty source.

    Args:
        sources: Timestamp-sorted sequences of dictionaries with a "timestamp" key.
        step_ms: Grid spacing in milliseconds. Default 1000.

    Returns:
        Ticks start, start + step, ... up to and including the latest sample.
        Empty if every source is empty.
    """
    non_empty = [source for source in sources if source]
    if not non_empty:
        return []

    start = min(source[0]["timestamp"] for source in non_empty)
    end = max(source[-1]["timestamp"] for source in non_empty)

    timeline = []
    tick = start
    while tick <= end:
        timeline.append(tick)
        tick += step_ms
    return timeline


def merge_measurements(measurements: Union[MeasurementsState, Dict]) -> List[Dict]:
    """
    Merge every metric onto one 1-second timeline.

    GPS latitude and longitude are treated as two independent metrics. The
    result is a pure function of the input: calling it twice on unchanged
    measurements returns equal lists.

    Args:
        measurements: MeasurementsState or a to_json() snapshot.

    Returns:
        List of merged data point dictionaries with keys timestamp,
        heartrate, cadence, power, speed, distance, altitude, lat, lon.
        Empty list if nothing has been recorded.
    """
    gps = get_sequence(measurements, "gps")
    sources = {
        metric: get_sequence(measurements, metric)
        for metric in constants.MERGED_METRICS
    }
    sources["lat"] = [{"timestamp": p["timestamp"], "value": p["lat"]} for p in gps]
    sources["lon"] = [{"timestamp": p["timestamp"], "value": p["lon"]} for p in gps]

    timeline = build_timeline(list(sources.values()))
    if not timeline:
        return []

    synced = {
        name: values_at_timestamps(sequence, timeline)
        for name, sequence in sources.items()
    }

    points = []
    for i, ts in enumerate(timeline):
        point = {"timestamp": ts}
        for name in sources:
            point[name] = synced[name][i]
        points.append(point)

    return points


def merged_dataframe(measurements: Union[MeasurementsState, Dict]) -> pd.DataFrame:
    """
    Merged timeline as a DataFrame for analysis.

    Args:
        measurements: MeasurementsState or a to_json() snapshot.

    Returns:
        DataFrame with columns timestamp_ms, timestamp (UTC datetime),
        heartrate, cadence, power, speed, distance, altitude, lat, lon.
        Missing values are NaN. Empty DataFrame if nothing was recorded.
    """
    columns = ["timestamp_ms", *constants.MERGED_METRICS, "lat", "lon"]
    points = merge_measurements(measurements)
    if not points:
        return pd.DataFrame(columns=[*columns, "timestamp"])

    df = pd.DataFrame(points).rename(columns={"timestamp": "timestamp_ms"})
    df = df[columns].astype({name: "float64" for name in columns[1:]})
    df["timestamp"] = pd.to_datetime(df["timestamp_ms"], unit="ms", utc=True)
    return df.reset_index(drop=True)
