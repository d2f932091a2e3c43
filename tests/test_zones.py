import pytest

from ride_telemetry import HR_ZONES, POWER_ZONES, ZoneState, ZoneTracker, classify_percent


def test_power_zone_table():
    assert len(POWER_ZONES) == 7
    assert [band.name for band in POWER_ZONES][:4] == ["Active Recovery", "Endurance", "Tempo", "Threshold"]
    assert POWER_ZONES[-1].max_pct is None


def test_heartrate_zone_table():
    assert len(HR_ZONES) == 5
    assert HR_ZONES[-1].name == "Anaerobic"


def test_boundary_belongs_to_upper_band():
    assert classify_percent(POWER_ZONES, 90.0).number == 4
    assert classify_percent(POWER_ZONES, 89.99).number == 3
    assert classify_percent(HR_ZONES, 60.0).number == 2
    assert classify_percent(HR_ZONES, 10.0).number == 1


def test_exactly_90_percent_ftp_is_threshold():
    zones = ZoneState(ftp=200)
    status = zones.update_power(180, 0)
    assert status["zone"] == 4
    assert status["name"] == "Threshold"


def test_dwell_time_accounting():
    zones = ZoneState(ftp=200)
    zones.update_power(200, 0)
    zones.update_power(200, 1000)

    distribution = zones.get_power_zone_distribution()
    assert 900 <= distribution["zones"][3]["timeInZoneMs"] <= 1100
    assert distribution["totalTimeMs"] == 1000


def test_dwell_time_goes_to_zone_just_left():
    tracker = ZoneTracker(POWER_ZONES, 200)
    tracker.update(100, 0)
    tracker.update(200, 1000)

    zones = tracker.get_distribution()["zones"]
    assert zones[0]["timeInZoneMs"] == 1000
    assert zones[3]["timeInZoneMs"] == 0


def test_no_reference_value_disables_tracking():
    zones = ZoneState()
    assert zones.update_power(250, 0) is None
    assert zones.update_heartrate(150, 0) is None
    assert zones.has_power_zones() is False
    assert zones.get_current_power_zone() is None
    assert zones.get_power_zone_distribution()["totalTimeMs"] == 0
    assert zones.get_power_zone_distribution()["zones"][0]["min"] is None


@pytest.mark.parametrize("value", [float("nan"), float("inf"), None])
def test_non_finite_sample_is_a_no_op(value):
    tracker = ZoneTracker(POWER_ZONES, 200)
    tracker.update(200, 0)

    assert tracker.update(value, 1000) is None
    assert tracker.get_distribution()["totalTimeMs"] == 0
    assert tracker.current_zone["zone"] == 4


def test_reset_clears_accumulation():
    zones = ZoneState(ftp=200, max_hr=190)
    zones.update_power(200, 0)
    zones.update_power(300, 1000)
    zones.update_heartrate(150, 0)
    zones.update_heartrate(160, 1000)
    zones.reset()

    assert zones.get_current_power_zone() is None
    assert zones.get_current_hr_zone() is None
    assert zones.get_power_zone_distribution()["totalTimeMs"] == 0
    assert zones.get_hr_zone_distribution()["totalTimeMs"] == 0
    assert zones.ftp == 200

    # No dwell is credited across a reset
    zones.update_power(200, 5000)
    assert zones.get_power_zone_distribution()["totalTimeMs"] == 0


def test_percent_in_zone_top_power_band():
    tracker = ZoneTracker(POWER_ZONES, 100)
    assert tracker.update(225, 0)["percentInZone"] == pytest.approx(50.0)
    assert tracker.update(400, 1000)["percentInZone"] == 100.0


def test_percent_in_zone_top_heartrate_band():
    tracker = ZoneTracker(HR_ZONES, 200)
    status = tracker.update(190, 0)
    assert status["zone"] == 5
    assert status["percentInZone"] == pytest.approx(50.0)


def test_percent_in_zone_middle_band():
    tracker = ZoneTracker(POWER_ZONES, 200)
    status = tracker.update(190, 0)
    assert status["zone"] == 4
    assert status["percentInZone"] == pytest.approx(100 / 3)


def test_zero_power_is_bottom_of_recovery():
    tracker = ZoneTracker(POWER_ZONES, 200)
    status = tracker.update(0, 0)
    assert status == {"zone": 1, "name": "Active Recovery", "percentInZone": 0.0}


def test_gap_cap_skips_long_gaps():
    tracker = ZoneTracker(POWER_ZONES, 200, max_gap_ms=5000)
    tracker.update(200, 0)
    tracker.update(200, 10000)
    tracker.update(200, 11000)
    assert tracker.get_distribution()["totalTimeMs"] == 1000


def test_power_and_heartrate_are_independent():
    zones = ZoneState(ftp=200, max_hr=200)
    zones.update_power(200, 0)
    zones.update_heartrate(150, 500)
    zones.update_power(200, 1000)
    zones.update_heartrate(150, 1500)

    assert zones.get_power_zone_distribution()["totalTimeMs"] == 1000
    assert zones.get_hr_zone_distribution()["totalTimeMs"] == 1000


def test_distribution_bounds_in_watts():
    zones = ZoneState(ftp=200).get_power_zone_distribution()["zones"]
    assert (zones[0]["min"], zones[0]["max"]) == (0, 110)
    assert (zones[3]["min"], zones[3]["max"]) == (180, 210)
    assert (zones[6]["min"], zones[6]["max"]) == (300, None)


def test_distribution_is_a_copy():
    tracker = ZoneTracker(POWER_ZONES, 200)
    tracker.update(200, 0)
    tracker.get_distribution()["zones"][3]["timeInZoneMs"] = 99999
    assert tracker.get_distribution()["zones"][3]["timeInZoneMs"] == 0


def test_set_profile_restarts_accumulation():
    zones = ZoneState(ftp=200)
    zones.update_power(200, 0)
    zones.update_power(200, 1000)
    zones.set_profile(250, 180)

    assert zones.ftp == 250
    assert zones.max_hr == 180
    assert zones.get_power_zone_distribution()["totalTimeMs"] == 0


def test_to_json():
    zones = ZoneState(ftp=200, max_hr=190)
    zones.update_power(140, 0)
    data = zones.to_json()

    assert data["ftp"] == 200
    assert data["maxHr"] == 190
    assert len(data["powerZones"]) == 7
    assert len(data["hrZones"]) == 5
    assert data["currentPowerZone"]["zone"] == 2
    assert data["currentHrZone"] is None
