"""
Zone Classification and Time-in-Zone Accounting

This module converts live power and heart rate samples into named training
zones and accumulates how long the rider spent in each zone.

Dwell time is attributed retroactively: the time between two samples is
credited to the zone that was active at the earlier sample, i.e. the zone
just left rather than the zone just entered.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from . import constants
from . import utils
from .constants import ZoneBand


logger = logging.getLogger(__name__)


def classify_percent(table: Sequence[ZoneBand], percent: float) -> ZoneBand:
    """
    Find the band containing a percentage of the reference value.

    Bands are checked in ascending order and the first match wins, so a
    boundary value starts the higher band (90% FTP is Threshold, not Tempo).

    Args:
        table: Contiguous zone bands in ascending order.
        percent: Value as a percentage of the reference.

    Returns:
        The matching band. The last band is open above and always matches.
    """
    for band in table:
        if band.max_pct is None or percent < band.max_pct:
            return band
    return table[-1]


def percent_in_zone(band: ZoneBand, percent: float) -> float:
    """
    Position of a percentage within a band, from 0 to 100.

    Open-ended bands use their nominal span (e.g. 150-300% for the top
    power zone).
    """
    span = band.nominal_max_pct - band.nominal_min_pct
    if span <= 0:
        return 50.0
    position = (percent - band.nominal_min_pct) / span * 100
    return min(100.0, max(0.0, position))


class ZoneTracker:
    """
    Zone classifier and dwell-time accumulator for a single metric.

    Args:
        table: Zone bands in percent of the reference value.
        reference_value: FTP for power, max heart rate for heart rate.
                         None disables classification.
        max_gap_ms: Gaps between samples at or above this are not counted
                    as dwell time. None counts every gap.
    """

    def __init__(self, table: Sequence[ZoneBand], reference_value: Optional[float] = None,
                 max_gap_ms: Optional[float] = None):
        self.table: Tuple[ZoneBand, ...] = tuple(table)
        self.reference_value = reference_value
        self.max_gap_ms = max_gap_ms
        self._time_in_zone_ms: List[float] = [0] * len(self.table)
        self._current_index: Optional[int] = None
        self._last_timestamp: Optional[float] = None
        self._current_status: Optional[Dict] = None

    @property
    def enabled(self) -> bool:
        return utils.is_finite_number(self.reference_value) and self.reference_value > 0

    @property
    def current_zone(self) -> Optional[Dict]:
        """Status returned by the last successful update(), or None."""
        return dict(self._current_status) if self._current_status else None

    def update(self, value: float, timestamp: float) -> Optional[Dict]:
        """
        Classify a sample and credit elapsed time to the previous zone.

        Args:
            value: Instantaneous power (W) or heart rate (bpm).
            timestamp: Sample time in Unix ms.

        Returns:
            {"zone", "name", "percentInZone"} for the sample, or None when
            no reference value is set or the input is not a finite number.
            A None result leaves the tracker untouched.
        """
        if not self.enabled:
            return None
        if not utils.is_finite_number(value) or not utils.is_finite_number(timestamp):
            logger.debug("Ignoring non-finite zone sample: value=%r timestamp=%r", value, timestamp)
            return None

        percent = value / self.reference_value * 100
        band = classify_percent(self.table, percent)
        index = band.number - 1

        if self._last_timestamp is not None and self._current_index is not None:
            delta = timestamp - self._last_timestamp
            if delta > 0 and (self.max_gap_ms is None or delta < self.max_gap_ms):
                self._time_in_zone_ms[self._current_index] += delta

        if index != self._current_index:
            logger.debug("Zone change: %s -> %s (%s)", self._current_index, index, band.name)

        self._current_index = index
        self._last_timestamp = timestamp
        self._current_status = {
            "zone": band.number,
            "name": band.name,
            "percentInZone": percent_in_zone(band, percent),
        }
        return dict(self._current_status)

    def zone_bounds(self, band: ZoneBand) -> Tuple[Optional[int], Optional[int]]:
        """Band bounds in the metric's own unit, rounded to whole numbers."""
        if not self.enabled:
            return None, None
        low = 0 if band.min_pct is None else utils.round_half_up(self.reference_value * band.min_pct / 100)
        high = None if band.max_pct is None else utils.round_half_up(self.reference_value * band.max_pct / 100)
        return low, high

    def get_distribution(self) -> Dict:
        """
        Snapshot of accumulated dwell time.

        Returns:
            {"zones": [{"zone", "name", "min", "max", "timeInZoneMs"}, ...],
             "totalTimeMs": sum of all zones}. The zone list is a copy.
        """
        zones = []
        for band, time_ms in zip(self.table, self._time_in_zone_ms):
            low, high = self.zone_bounds(band)
            zones.append({
                "zone": band.number,
                "name": band.name,
                "min": low,
                "max": high,
                "timeInZoneMs": time_ms,
            })
        return {"zones": zones, "totalTimeMs": sum(self._time_in_zone_ms)}

    def reset(self) -> None:
        """Zero the accumulated time and forget the last sample; keeps the reference value."""
        self._time_in_zone_ms = [0] * len(self.table)
        self._current_index = None
        self._last_timestamp = None
        self._current_status = None


class ZoneState:
    """
    Power and heart rate zone tracking for one recording session.

    The two trackers are independent: each keeps its own last-sample time,
    so interleaved power and heart rate samples never steal each other's
    dwell time.
    """

    def __init__(self, ftp: Optional[float] = None, max_hr: Optional[float] = None,
                 max_gap_ms: Optional[float] = None):
        self.power = ZoneTracker(constants.POWER_ZONES, ftp, max_gap_ms)
        self.heartrate = ZoneTracker(constants.HR_ZONES, max_hr, max_gap_ms)

    @property
    def ftp(self) -> Optional[float]:
        return self.power.reference_value

    @property
    def max_hr(self) -> Optional[float]:
        return self.heartrate.reference_value

    def set_profile(self, ftp: Optional[float], max_hr: Optional[float]) -> None:
        """Replace the reference values and restart accumulation."""
        self.power.reference_value = ftp
        self.heartrate.reference_value = max_hr
        self.reset()
        logger.info("Zone profile set: ftp=%s max_hr=%s", ftp, max_hr)

    def has_power_zones(self) -> bool:
        return self.power.enabled

    def has_hr_zones(self) -> bool:
        return self.heartrate.enabled

    def update_power(self, power: float, timestamp: float) -> Optional[Dict]:
        return self.power.update(power, timestamp)

    def update_heartrate(self, heartrate: float, timestamp: float) -> Optional[Dict]:
        return self.heartrate.update(heartrate, timestamp)

    def get_current_power_zone(self) -> Optional[Dict]:
        return self.power.current_zone

    def get_current_hr_zone(self) -> Optional[Dict]:
        return self.heartrate.current_zone

    def get_power_zone_distribution(self) -> Dict:
        return self.power.get_distribution()

    def get_hr_zone_distribution(self) -> Dict:
        return self.heartrate.get_distribution()

    def reset(self) -> None:
        self.power.reset()
        self.heartrate.reset()

    def to_json(self) -> Dict:
        return {
            "ftp": self.ftp,
            "maxHr": self.max_hr,
            "powerZones": self.get_power_zone_distribution()["zones"],
            "hrZones": self.get_hr_zone_distribution()["zones"],
            "currentPowerZone": self.get_current_power_zone(),
            "currentHrZone": self.get_current_hr_zone(),
        }
