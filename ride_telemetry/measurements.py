"""
Measurement Store for Ride Telemetry

This module holds the append-only store every sensor writes into during a
recording session. Each metric is an ordered list of
{"timestamp": ms, "value": number} dictionaries; GPS fixes and lap markers
are kept alongside.

Bad sensor data never raises: out-of-range, non-finite and out-of-order
entries are dropped with a warning. The only raising path is an unknown
metric type passed to add(), which is a caller bug.
"""

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

from . import constants
from . import metrics
from . import utils


logger = logging.getLogger(__name__)


class UnknownMeasurementTypeError(ValueError):
    """Raised when add() is called with a metric type the store does not know."""


class MeasurementType(str, Enum):
    HEARTRATE = "heartrate"
    POWER = "power"
    CADENCE = "cadence"
    SPEED = "speed"
    DISTANCE = "distance"
    ALTITUDE = "altitude"

    @classmethod
    def parse(cls, value: Union["MeasurementType", str]) -> "MeasurementType":
        """
        Coerce a string tag to a MeasurementType.

        Raises:
            UnknownMeasurementTypeError: If value names no known metric.
        """
        try:
            return cls(value)
        except ValueError as exc:
            raise UnknownMeasurementTypeError(f"Unknown measurement type: {value!r}") from exc


StateChangeCallback = Callable[[], None]


class MeasurementsState:
    """
    State container for workout measurements.

    Example:
        state = MeasurementsState()
        state.add_power({"timestamp": 1000, "value": 200})
        state.power  # [{"timestamp": 1000, "value": 200}]
    """

    def __init__(self, derive_distance_from_gps: bool = True):
        self.heartrate: List[Dict] = []
        self.power: List[Dict] = []
        self.cadence: List[Dict] = []
        self.speed: List[Dict] = []
        self.distance: List[Dict] = []
        self.altitude: List[Dict] = []
        self.gps: List[Dict] = []
        self.laps: List[Dict] = []

        self.derive_distance_from_gps = derive_distance_from_gps
        self._start_time: Optional[int] = None
        self._listeners: List[StateChangeCallback] = []

    # ------------------------------------------------------------------
    # Start time and listeners
    # ------------------------------------------------------------------

    def set_start_time(self, timestamp: Optional[int]) -> None:
        self._start_time = timestamp

    def get_start_time(self) -> Optional[int]:
        return self._start_time

    def on_change(self, callback: StateChangeCallback) -> None:
        """Register a callback invoked after every accepted change."""
        self._listeners.append(callback)

    def off_change(self, callback: StateChangeCallback) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify_change(self) -> None:
        for callback in list(self._listeners):
            try:
                callback()
            except Exception:
                logger.exception("State change callback failed")

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def _append(self, metric: str, entry: Dict) -> bool:
        """
        Validate and append a measurement to one metric sequence.

        Args:
            metric: Metric name, a key of VALIDATION_LIMITS.
            entry: Dictionary with "timestamp" and "value" keys.

        Returns:
            True if the entry was stored, False if it was dropped.
        """
        timestamp = entry.get("timestamp")
        value = entry.get("value")

        if not utils.is_finite_number(timestamp):
            logger.warning("Invalid %s timestamp: %r", metric, timestamp)
            return False
        if not utils.is_finite_number(value):
            logger.warning("Invalid %s value: %r", metric, value)
            return False

        limits = constants.VALIDATION_LIMITS[metric]
        below = value <= limits["min"] if not limits["min_inclusive"] else value < limits["min"]
        if below or value >= limits["max"]:
            logger.warning("Invalid %s value: %s", metric, value)
            return False

        sequence = getattr(self, metric)
        if sequence and timestamp < sequence[-1]["timestamp"]:
            logger.warning(
                "Out-of-order %s sample dropped: %s < %s",
                metric, timestamp, sequence[-1]["timestamp"],
            )
            return False

        sequence.append({"timestamp": timestamp, "value": value})
        self._notify_change()
        return True

    def add_heartrate(self, entry: Dict) -> bool:
        return self._append("heartrate", entry)

    def add_power(self, entry: Dict) -> bool:
        return self._append("power", entry)

    def add_cadence(self, entry: Dict) -> bool:
        return self._append("cadence", entry)

    def add_speed(self, entry: Dict) -> bool:
        return self._append("speed", entry)

    def add_distance(self, entry: Dict) -> bool:
        return self._append("distance", entry)

    def add_altitude(self, entry: Dict) -> bool:
        return self._append("altitude", entry)

    def add(self, measurement_type: Union[MeasurementType, str], entry: Dict) -> bool:
        """
        Add a measurement of any type.

        Args:
            measurement_type: A MeasurementType or its string tag.
            entry: Dictionary with "timestamp" and "value" keys.

        Returns:
            True if the entry was stored, False if it failed validation.

        Raises:
            UnknownMeasurementTypeError: If measurement_type is not a known metric.
        """
        metric = MeasurementType.parse(measurement_type)
        return self._append(metric.value, entry)

    def add_gps(self, point: Dict) -> bool:
        """
        Add a GPS fix and extend the derived distance sequence.

        The first fix of a session writes distance 0 (unless a distance
        sensor already reported); every later fix adds the haversine
        distance from the previous fix to the last distance value. If that
        derived distance fails validation (out of order behind a distance
        sensor, or past the distance limit) the fix is still stored and the
        dropped distance is logged.

        Args:
            point: Dictionary with "timestamp", "lat", "lon" and optional
                   "accuracy", "altitude", "speed", "heading".

        Returns:
            True if the fix was stored, False if it was dropped.
        """
        timestamp = point.get("timestamp")
        lat = point.get("lat")
        lon = point.get("lon")

        if not utils.is_finite_number(timestamp):
            logger.warning("Invalid GPS timestamp: %r", timestamp)
            return False
        if not (utils.is_finite_number(lat) and utils.is_finite_number(lon)) \
                or abs(lat) > 90 or abs(lon) > 180:
            logger.warning("Invalid GPS position: %r, %r", lat, lon)
            return False
        if self.gps and timestamp < self.gps[-1]["timestamp"]:
            logger.warning(
                "Out-of-order GPS fix dropped: %s < %s", timestamp, self.gps[-1]["timestamp"]
            )
            return False

        if self.derive_distance_from_gps:
            derived = None
            if self.gps:
                last = self.gps[-1]
                step_m = metrics.haversine_m(last["lat"], last["lon"], lat, lon)
                total = self.distance[-1]["value"] if self.distance else 0.0
                derived = total + step_m
            elif not self.distance:
                derived = 0
            if derived is not None and not self.add_distance({"timestamp": timestamp, "value": derived}):
                logger.warning("Derived GPS distance %s at %s dropped; fix kept", derived, timestamp)

        self.gps.append({
            "timestamp": timestamp,
            "lat": lat,
            "lon": lon,
            "accuracy": point.get("accuracy"),
            "altitude": point.get("altitude"),
            "speed": point.get("speed"),
            "heading": point.get("heading"),
        })
        self._notify_change()
        return True

    def add_lap(self, timestamp: Optional[int] = None,
                start_time: Optional[int] = None) -> Optional[Dict]:
        """
        Add a lap marker.

        Args:
            timestamp: Lap time in Unix ms. Defaults to the current time.
            start_time: Workout start used for elapsed_ms. Defaults to the
                        start time set on the store.

        Returns:
            The new lap marker, or None if it is earlier than the previous one.
        """
        if timestamp is None:
            timestamp = utils.now_ms()
        if start_time is None:
            start_time = self._start_time

        if self.laps and timestamp < self.laps[-1]["timestamp"]:
            logger.warning(
                "Lap marker dropped: %s is before lap %s at %s",
                timestamp, self.laps[-1]["number"], self.laps[-1]["timestamp"],
            )
            return None

        lap = {
            "timestamp": timestamp,
            "number": len(self.laps) + 1,
            "elapsed_ms": timestamp - start_time if start_time is not None else None,
        }
        self.laps.append(lap)
        self._notify_change()
        return dict(lap)

    @property
    def lap_count(self) -> int:
        return len(self.laps)

    # ------------------------------------------------------------------
    # Whole-state operations
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Empty every sequence and forget the start time."""
        (self.heartrate, self.power, self.cadence, self.speed,
         self.distance, self.altitude, self.gps, self.laps) = ([] for _ in range(8))
        self._start_time = None
        self._notify_change()

    def has_data(self) -> bool:
        """True if any metric or GPS sequence holds at least one sample."""
        return any(getattr(self, metric.value) for metric in MeasurementType) or bool(self.gps)

    def get_counts(self) -> Dict[str, int]:
        counts = {metric.value: len(getattr(self, metric.value)) for metric in MeasurementType}
        counts["gps"] = len(self.gps)
        counts["laps"] = len(self.laps)
        return counts

    def to_json(self) -> Dict[str, List[Dict]]:
        """
        Snapshot of all sequences.

        Every list and every entry is copied, so mutating the snapshot never
        affects the store.
        """
        snapshot = {
            metric.value: [dict(entry) for entry in getattr(self, metric.value)]
            for metric in MeasurementType
        }
        snapshot["gps"] = [dict(point) for point in self.gps]
        snapshot["laps"] = [dict(lap) for lap in self.laps]
        return snapshot

    def restore(self, data: Dict, start_time: Optional[int] = None) -> None:
        """
        Replace the state with a previously taken snapshot.

        Entries are copied but not re-validated; a snapshot comes from
        to_json() and already satisfied validation when it was recorded.
        """
        for metric in MeasurementType:
            setattr(self, metric.value, [dict(e) for e in data.get(metric.value) or []])
        self.gps = [dict(p) for p in data.get("gps") or []]
        self.laps = [dict(lap) for lap in data.get("laps") or []]
        self._start_time = start_time
        self._notify_change()

    @classmethod
    def from_json(cls, data: Dict, start_time: Optional[int] = None,
                  derive_distance_from_gps: bool = True) -> "MeasurementsState":
        state = cls(derive_distance_from_gps=derive_distance_from_gps)
        state.restore(data, start_time)
        return state


def get_sequence(measurements: Union[MeasurementsState, Dict], name: str) -> List[Dict]:
    """
    Read one sequence from a MeasurementsState or a to_json() snapshot.

    Missing sequences read as empty lists, so partial snapshots
    (e.g. only "power" and "laps") are accepted everywhere.
    """
    if isinstance(measurements, dict):
        return measurements.get(name) or []
    return getattr(measurements, name, None) or []
