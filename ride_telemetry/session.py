"""
Recording Session for Ride Telemetry

This module ties the pieces together for one workout: every live sample is
validated into the measurement store and, if accepted, fed to the zone
trackers and the optional auto-lapper. The session also builds the payload
served by the web app.
"""

import logging
from typing import Dict, Optional, Union

from . import config
from . import export
from . import lap_analysis
from . import metrics
from . import time_series
from .measurements import MeasurementType, MeasurementsState
from .zones import ZoneState


logger = logging.getLogger(__name__)


class RecordingSession:
    """
    One workout's measurement store, zone state and auto-lap trigger.

    Args:
        ftp: Functional threshold power in watts, or None.
        max_hr: Maximum heart rate in bpm, or None.
        max_gap_ms: Zone dwell gap cap, see ZoneTracker.
        derive_distance_from_gps: Extend distance from GPS fixes.
        auto_lap: Optional {"mode": "distance"|"time", "interval": float}.
    """

    def __init__(self, ftp: Optional[float] = None, max_hr: Optional[float] = None,
                 max_gap_ms: Optional[float] = None, derive_distance_from_gps: bool = True,
                 auto_lap: Optional[Dict] = None):
        self.measurements = MeasurementsState(derive_distance_from_gps=derive_distance_from_gps)
        self.zones = ZoneState(ftp=ftp, max_hr=max_hr, max_gap_ms=max_gap_ms)
        self.auto_lapper = (
            lap_analysis.AutoLapper(auto_lap["mode"], auto_lap["interval"]) if auto_lap else None
        )

    @classmethod
    def from_config(cls) -> "RecordingSession":
        """Create a session from the environment settings in config."""
        return cls(
            ftp=config.get_ftp(),
            max_hr=config.get_max_hr(),
            max_gap_ms=config.get_zone_max_gap_ms(),
            derive_distance_from_gps=config.derive_distance_from_gps(),
            auto_lap=config.get_auto_lap_settings(),
        )

    def _started(self, timestamp) -> None:
        if self.measurements.get_start_time() is None:
            self.measurements.set_start_time(timestamp)
            logger.info("Recording started at %s", timestamp)

    def _check_auto_lap(self, timestamp) -> Optional[Dict]:
        if self.auto_lapper is None:
            return None
        return self.auto_lapper.check(self.measurements, timestamp)

    def record(self, measurement_type: Union[MeasurementType, str], timestamp, value) -> Dict:
        """
        Record one sensor sample.

        Args:
            measurement_type: Metric tag, e.g. "power".
            timestamp: Sample time in Unix ms.
            value: Sample value.

        Returns:
            {"accepted": bool, "zone": zone status or None, "lap": new
            auto-lap marker or None}.

        Raises:
            UnknownMeasurementTypeError: If measurement_type is not a known metric.
        """
        metric = MeasurementType.parse(measurement_type)
        accepted = self.measurements.add(metric, {"timestamp": timestamp, "value": value})
        result = {"accepted": accepted, "zone": None, "lap": None}
        if not accepted:
            return result

        self._started(timestamp)
        if metric is MeasurementType.POWER:
            result["zone"] = self.zones.update_power(value, timestamp)
        elif metric is MeasurementType.HEARTRATE:
            result["zone"] = self.zones.update_heartrate(value, timestamp)
        result["lap"] = self._check_auto_lap(timestamp)
        return result

    def record_gps(self, point: Dict) -> Dict:
        """Record one GPS fix; same result shape as record() without a zone."""
        accepted = self.measurements.add_gps(point)
        result = {"accepted": accepted, "zone": None, "lap": None}
        if accepted:
            self._started(point["timestamp"])
            result["lap"] = self._check_auto_lap(point["timestamp"])
        return result

    def mark_lap(self, timestamp: Optional[int] = None) -> Optional[Dict]:
        return self.measurements.add_lap(timestamp)

    def set_profile(self, ftp: Optional[float], max_hr: Optional[float]) -> None:
        self.zones.set_profile(ftp, max_hr)

    def reset(self) -> None:
        """Discard the recorded workout and zone accumulation; keeps the profile."""
        self.measurements.clear()
        self.zones.reset()
        if self.auto_lapper is not None:
            self.auto_lapper.reset()
        logger.info("Recording session reset")

    def zone_payload(self) -> Dict:
        return {
            "power": self.zones.get_power_zone_distribution(),
            "heartrate": self.zones.get_hr_zone_distribution(),
            "current_power_zone": self.zones.get_current_power_zone(),
            "current_hr_zone": self.zones.get_current_hr_zone(),
            "ftp": self.zones.ftp,
            "max_hr": self.zones.max_hr,
        }

    def build_session_payload(self) -> Dict:
        """
        Build the complete session payload.

        Returns:
            Dictionary containing:
            - counts: samples per sequence
            - summary: whole-workout statistics
            - laps: per-lap summaries
            - zones: power and heart rate zone distributions
            - merged: the 1-second merged timeline
        """
        snapshot = self.measurements.to_json()
        return {
            "counts": self.measurements.get_counts(),
            "summary": metrics.compute_workout_summary(snapshot),
            "laps": lap_analysis.summarize_laps(snapshot),
            "zones": self.zone_payload(),
            "merged": time_series.merge_measurements(snapshot),
        }

    def to_csv(self, include_laps: bool = True) -> str:
        return export.get_csv_string(self.measurements, include_laps=include_laps)

    def to_tcx(self) -> str:
        return export.get_tcx_string(self.measurements)

    def to_json(self, exported_at: Optional[int] = None) -> str:
        return export.get_json_string(self.measurements, self.zones, exported_at)
