"""
Shared fixtures for the ride telemetry tests.
"""

import pytest

from ride_telemetry import MeasurementsState


BASE_TIME = 1736935200000  # 2025-01-15T10:00:00.000Z


@pytest.fixture
def base_time():
    return BASE_TIME


@pytest.fixture
def state():
    return MeasurementsState()


@pytest.fixture
def ride(state, base_time):
    """Ten seconds of power, cadence and heart rate with a lap marker at 5 s."""
    state.set_start_time(base_time)
    for i in range(10):
        ts = base_time + i * 1000
        state.add_power({"timestamp": ts, "value": 200 + i})
        state.add_cadence({"timestamp": ts, "value": 90})
        state.add_heartrate({"timestamp": ts, "value": 140 + i})
    state.add_lap(base_time + 5000)
    return state
