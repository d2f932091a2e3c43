"""
Export Functions for Ride Telemetry

This module serializes a recorded workout to CSV, TCX (Garmin Training
Center XML) and JSON. All formatters are pure: they read the measurements
and return a string, or an empty string when there is nothing to export.
Writing the result to disk or sending it anywhere is the caller's job.
"""

import csv
import io
import json
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Union

from . import constants
from . import lap_analysis
from . import metrics
from . import time_series
from . import utils
from .measurements import MeasurementsState, get_sequence
from .zones import ZoneState


def get_csv_string(measurements: Union[MeasurementsState, Dict], include_laps: bool = True) -> str:
    """
    Export the merged 1-second timeline as CSV.

    Columns: timestamp,lap,power,cadence,heartrate,speed,distance,altitude,lat,lon
    (the lap column is left out when include_laps is False). Timestamps are
    ISO-8601 UTC; power, cadence, heart rate, distance and altitude are
    rounded to integers, speed to one decimal and lat/lon to six decimals.
    Missing values are empty fields.

    Args:
        measurements: MeasurementsState or a to_json() snapshot.
        include_laps: Add the lap number column. Default True.

    Returns:
        CSV text with a header row and "\\n" line endings, or "" if nothing
        was recorded.
    """
    points = time_series.merge_measurements(measurements)
    if not points:
        return ""

    laps = get_sequence(measurements, "laps")
    header = list(constants.CSV_COLUMNS)
    if not include_laps:
        header.remove("lap")

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)

    for point in points:
        row = [utils.iso_timestamp(point["timestamp"])]
        if include_laps:
            row.append(lap_analysis.lap_number_at(point["timestamp"], laps))
        row.extend([
            utils.format_int(point["power"]),
            utils.format_int(point["cadence"]),
            utils.format_int(point["heartrate"]),
            utils.format_fixed(point["speed"], 1),
            utils.format_int(point["distance"]),
            utils.format_int(point["altitude"]),
            utils.format_fixed(point["lat"], 6),
            utils.format_fixed(point["lon"], 6),
        ])
        writer.writerow(row)

    return buffer.getvalue().rstrip("\n")


def _by_timestamp(sequence: List[Dict]) -> Dict:
    # Later samples win when a sensor reports twice at the same millisecond
    return {entry["timestamp"]: entry for entry in sequence}


def _add_trackpoint(track: ET.Element, timestamp, samples: Dict[str, Dict]) -> None:
    """
    Append one <Trackpoint> carrying only the metrics sampled at timestamp.

    Children follow the TCX schema order: Time, Position, AltitudeMeters,
    DistanceMeters, HeartRateBpm, Cadence, Extensions.
    """
    trackpoint = ET.SubElement(track, "Trackpoint")
    ET.SubElement(trackpoint, "Time").text = utils.iso_timestamp(timestamp)

    gps = samples["gps"].get(timestamp)
    if gps is not None:
        position = ET.SubElement(trackpoint, "Position")
        ET.SubElement(position, "LatitudeDegrees").text = utils.format_fixed(gps["lat"], 6)
        ET.SubElement(position, "LongitudeDegrees").text = utils.format_fixed(gps["lon"], 6)

    altitude = samples["altitude"].get(timestamp)
    if altitude is not None:
        ET.SubElement(trackpoint, "AltitudeMeters").text = utils.format_fixed(altitude["value"], 1)

    distance = samples["distance"].get(timestamp)
    if distance is not None:
        ET.SubElement(trackpoint, "DistanceMeters").text = utils.format_fixed(distance["value"], 1)

    heartrate = samples["heartrate"].get(timestamp)
    if heartrate is not None:
        hr_element = ET.SubElement(trackpoint, "HeartRateBpm")
        ET.SubElement(hr_element, "Value").text = utils.format_int(heartrate["value"])

    cadence = samples["cadence"].get(timestamp)
    if cadence is not None:
        ET.SubElement(trackpoint, "Cadence").text = utils.format_int(cadence["value"])

    power = samples["power"].get(timestamp)
    if power is not None:
        extensions = ET.SubElement(trackpoint, "Extensions")
        tpx = ET.SubElement(extensions, "TPX", xmlns=constants.ACTIVITY_EXTENSION_NAMESPACE)
        ET.SubElement(tpx, "Watts").text = utils.format_int(power["value"])


def _add_lap(activity: ET.Element, span: Dict, span_timestamps: List, lap_timestamps: List,
             samples: Dict[str, Dict], sequences: Dict[str, List[Dict]]) -> None:
    """
    Append one <Lap> with its summary fields and trackpoints.

    TotalTimeSeconds spans the lap's trackpoints; a lap without any (only
    GPS, speed, distance or altitude recorded) uses its other samples and
    gets no <Track>.
    """
    lap_hr = [e["value"] for e in lap_analysis.samples_in_span(sequences["heartrate"], span)]
    lap_cadence = [e["value"] for e in lap_analysis.samples_in_span(sequences["cadence"], span)]
    lap_power = [e["value"] for e in lap_analysis.samples_in_span(sequences["power"], span)]
    lap_distance = [e["value"] for e in lap_analysis.samples_in_span(sequences["distance"], span)]

    lap = ET.SubElement(activity, "Lap", StartTime=utils.iso_timestamp(span["start"]))
    timed = lap_timestamps or span_timestamps
    total_seconds = int((timed[-1] - timed[0]) / 1000)
    ET.SubElement(lap, "TotalTimeSeconds").text = str(total_seconds)
    distance_m = lap_distance[-1] - lap_distance[0] if lap_distance else 0
    ET.SubElement(lap, "DistanceMeters").text = utils.format_int(distance_m)
    ET.SubElement(lap, "Calories").text = "0"

    avg_hr = utils.mean_or_none(lap_hr)
    if avg_hr is not None:
        avg_element = ET.SubElement(lap, "AverageHeartRateBpm")
        ET.SubElement(avg_element, "Value").text = utils.format_int(avg_hr)
        max_element = ET.SubElement(lap, "MaximumHeartRateBpm")
        ET.SubElement(max_element, "Value").text = utils.format_int(utils.max_or_none(lap_hr))

    ET.SubElement(lap, "Intensity").text = "Active"

    avg_cadence = utils.mean_or_none(lap_cadence)
    if avg_cadence is not None:
        ET.SubElement(lap, "Cadence").text = utils.format_int(avg_cadence)

    ET.SubElement(lap, "TriggerMethod").text = "Manual" if span["is_manual"] else "Distance"

    if lap_timestamps:
        track = ET.SubElement(lap, "Track")
        for timestamp in lap_timestamps:
            _add_trackpoint(track, timestamp, samples)

    avg_power = utils.mean_or_none(lap_power)
    if avg_power is not None:
        extensions = ET.SubElement(lap, "Extensions")
        lx = ET.SubElement(extensions, "LX", xmlns=constants.ACTIVITY_EXTENSION_NAMESPACE)
        ET.SubElement(lx, "AvgWatts").text = utils.format_int(avg_power)


def get_tcx_string(measurements: Union[MeasurementsState, Dict]) -> str:
    """
    Export the workout as a Garmin TCX document.

    The activity Id and the first lap start at the earliest sample of any
    metric, GPS included. Trackpoints are written at the raw sample times of
    power, cadence and heart rate (not the resampled grid), each carrying
    only the metrics measured at exactly that time. Power goes into the
    ActivityExtension v2 <TPX> extension. One <Lap> is written per lap span
    that holds at least one sample.

    Args:
        measurements: MeasurementsState or a to_json() snapshot.

    Returns:
        TCX XML text starting with the XML declaration, or "" if nothing
        was recorded.
    """
    sequences = {
        name: get_sequence(measurements, name)
        for name in (*constants.MERGED_METRICS, "gps")
    }
    time_range = metrics.workout_time_range(sequences)
    if time_range is None:
        return ""

    all_timestamps = sorted({entry["timestamp"] for sequence in sequences.values() for entry in sequence})
    trackpoint_timestamps = sorted({
        entry["timestamp"]
        for name in ("power", "cadence", "heartrate")
        for entry in sequences[name]
    })

    samples = {name: _by_timestamp(sequence) for name, sequence in sequences.items()}
    spans = lap_analysis.build_lap_boundaries(
        time_range["start"], time_range["end"], get_sequence(measurements, "laps")
    )

    root = ET.Element("TrainingCenterDatabase", xmlns=constants.TCX_NAMESPACE)
    activities = ET.SubElement(root, "Activities")
    activity = ET.SubElement(activities, "Activity", Sport=constants.TCX_SPORT)
    ET.SubElement(activity, "Id").text = utils.iso_timestamp(time_range["start"])

    for span in spans:
        span_timestamps = [ts for ts in all_timestamps if span["start"] <= ts < span["end"]]
        if not span_timestamps:
            continue
        lap_timestamps = [ts for ts in trackpoint_timestamps if span["start"] <= ts < span["end"]]
        _add_lap(activity, span, span_timestamps, lap_timestamps, samples, sequences)

    return constants.XML_DECLARATION + "\n" + ET.tostring(root, encoding="unicode")


def build_export_payload(measurements: Union[MeasurementsState, Dict],
                         zone_state: Optional[ZoneState] = None,
                         exported_at: Optional[int] = None) -> Optional[Dict]:
    """
    Build the JSON export structure.

    Args:
        measurements: MeasurementsState or a to_json() snapshot.
        zone_state: Optional zone state whose distributions are included.
        exported_at: Export time in Unix ms. Defaults to now.

    Returns:
        Dictionary with version, exportedAt, workout, laps, zones (only if
        zone_state is given) and measurements; None if nothing was recorded.
    """
    if isinstance(measurements, MeasurementsState):
        snapshot = measurements.to_json()
    else:
        snapshot = {name: list(get_sequence(measurements, name))
                    for name in (*constants.MERGED_METRICS, "gps", "laps")}

    time_range = metrics.workout_time_range(snapshot)
    if time_range is None:
        return None

    payload = {
        "version": constants.JSON_EXPORT_VERSION,
        "exportedAt": utils.iso_timestamp(exported_at if exported_at is not None else utils.now_ms()),
        "workout": {
            "startTime": utils.iso_timestamp(time_range["start"]),
            "endTime": utils.iso_timestamp(time_range["end"]),
            "duration": time_range["end"] - time_range["start"],
            "summary": metrics.compute_workout_summary(snapshot),
        },
        "laps": lap_analysis.summarize_laps(snapshot),
    }
    if zone_state is not None:
        payload["zones"] = zone_state.to_json()
    payload["measurements"] = snapshot
    return payload


def get_json_string(measurements: Union[MeasurementsState, Dict],
                    zone_state: Optional[ZoneState] = None,
                    exported_at: Optional[int] = None) -> str:
    """
    Export the workout as indented JSON.

    Returns:
        JSON text (see build_export_payload), or "" if nothing was recorded.
    """
    payload = build_export_payload(measurements, zone_state, exported_at)
    if payload is None:
        return ""
    return json.dumps(payload, indent=2)
