from ride_telemetry import get_csv_string


def test_empty_measurements_export_nothing(state):
    assert get_csv_string(state) == ""
    assert get_csv_string({}) == ""


def test_single_row():
    measurements = {
        "power": [{"timestamp": 0, "value": 200}],
        "cadence": [{"timestamp": 0, "value": 80}],
        "heartrate": [{"timestamp": 0, "value": 120}],
    }
    lines = get_csv_string(measurements).split("\n")

    assert lines == [
        "timestamp,lap,power,cadence,heartrate,speed,distance,altitude,lat,lon",
        "1970-01-01T00:00:00.000Z,1,200,80,120,,,,,",
    ]


def test_without_lap_column():
    measurements = {"power": [{"timestamp": 0, "value": 200}]}
    lines = get_csv_string(measurements, include_laps=False).split("\n")

    assert lines[0] == "timestamp,power,cadence,heartrate,speed,distance,altitude,lat,lon"
    assert lines[1] == "1970-01-01T00:00:00.000Z,200,,,,,,,"


def test_number_formatting(state, base_time):
    state.add_power({"timestamp": base_time, "value": 200.5})
    state.add_speed({"timestamp": base_time, "value": 25.26})
    state.add_altitude({"timestamp": base_time, "value": 12.4})
    state.add_gps({"timestamp": base_time, "lat": 51.1234567, "lon": -0.1})

    row = get_csv_string(state).split("\n")[1].split(",")
    assert row == ["2025-01-15T10:00:00.000Z", "1", "201", "", "", "25.3", "0", "12", "51.123457", "-0.100000"]


def test_lap_column_follows_markers(ride):
    rows = get_csv_string(ride).split("\n")[1:]
    assert len(rows) == 10
    assert [row.split(",")[1] for row in rows] == ["1"] * 5 + ["2"] * 5


def test_no_trailing_newline(ride):
    assert not get_csv_string(ride).endswith("\n")
