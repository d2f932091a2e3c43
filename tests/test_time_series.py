import math

import pandas as pd

from ride_telemetry import build_timeline, merge_measurements, merged_dataframe, values_at_timestamps


def test_empty_measurements_merge_to_nothing(state):
    assert merge_measurements(state) == []
    assert merge_measurements({}) == []


def test_value_outside_tolerance_is_none():
    power = [{"timestamp": 0, "value": 200}]
    assert values_at_timestamps(power, [0, 1_000_000]) == [200, None]


def test_tolerance_is_strict():
    power = [{"timestamp": 0, "value": 200}]
    assert values_at_timestamps(power, [999, 1000]) == [200, None]


def test_ties_go_to_earlier_sample():
    sequence = [{"timestamp": 0, "value": 1}, {"timestamp": 1000, "value": 2}]
    assert values_at_timestamps(sequence, [500]) == [1]


def test_nearest_later_sample_wins():
    sequence = [{"timestamp": 0, "value": 1}, {"timestamp": 600, "value": 2}]
    assert values_at_timestamps(sequence, [500]) == [2]


def test_empty_sequence_gives_none():
    assert values_at_timestamps([], [0, 1000]) == [None, None]


def test_timeline_spans_all_sources():
    sources = [
        [{"timestamp": 1000}, {"timestamp": 2500}],
        [],
        [{"timestamp": 0}],
    ]
    assert build_timeline(sources) == [0, 1000, 2000]
    assert build_timeline([[], []]) == []


def test_merge_is_idempotent(ride):
    first = merge_measurements(ride)
    second = merge_measurements(ride)
    assert first == second
    assert len(first) == 10


def test_merge_accepts_snapshot(ride):
    assert merge_measurements(ride.to_json()) == merge_measurements(ride)


def test_merged_point_fields(ride, base_time):
    point = merge_measurements(ride)[3]
    assert point == {
        "timestamp": base_time + 3000,
        "heartrate": 143,
        "cadence": 90,
        "power": 203,
        "speed": None,
        "distance": None,
        "altitude": None,
        "lat": None,
        "lon": None,
    }


def test_gps_coordinates_are_merged(state):
    state.add_gps({"timestamp": 0, "lat": 52.0, "lon": 4.0})
    state.add_gps({"timestamp": 1000, "lat": 52.001, "lon": 4.002})

    points = merge_measurements(state)
    assert [p["lat"] for p in points] == [52.0, 52.001]
    assert [p["lon"] for p in points] == [4.0, 4.002]
    assert points[0]["distance"] == 0


def test_merged_dataframe(state):
    state.add_power({"timestamp": 0, "value": 200})
    state.add_power({"timestamp": 2000, "value": 220})

    df = merged_dataframe(state)
    assert list(df["timestamp_ms"]) == [0, 1000, 2000]
    assert df["power"].iloc[0] == 200
    assert math.isnan(df["power"].iloc[1])
    assert df["heartrate"].isna().all()
    assert df["timestamp"].iloc[0] == pd.Timestamp("1970-01-01", tz="UTC")


def test_merged_dataframe_empty(state):
    df = merged_dataframe(state)
    assert df.empty
    assert "timestamp_ms" in df.columns
    assert "power" in df.columns
