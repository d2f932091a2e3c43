"""
Runtime Configuration for Ride Telemetry

Settings are read from environment variables with safe defaults, so the same
code runs unchanged in tests, locally and behind a process manager.

Environment variables (all optional):
    LOG_LEVEL                 Root logging level, default INFO.
    RIDE_FTP                  Functional threshold power in watts for the
                              HTTP session, default unset (no power zones).
    RIDE_MAX_HR               Maximum heart rate in bpm, default unset.
    ZONE_MAX_GAP_MS           Sample gaps at or above this many milliseconds
                              are not counted as zone dwell time. Default
                              unset (every gap is counted).
    DERIVE_DISTANCE_FROM_GPS  "true"/"false", default true.
    AUTO_LAP_MODE             "distance" or "time"; unset disables auto-lap.
    AUTO_LAP_INTERVAL         Kilometers or minutes per auto lap, default 1.
"""

import os
from typing import Optional

from . import utils


LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


def _optional_float(name: str) -> Optional[float]:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    value = utils.safe_float(raw)
    return value if utils.is_finite_number(value) else None


def _flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def get_ftp() -> Optional[float]:
    """FTP from RIDE_FTP, or None when unset or unparsable."""
    return _optional_float("RIDE_FTP")


def get_max_hr() -> Optional[float]:
    """Max heart rate from RIDE_MAX_HR, or None when unset or unparsable."""
    return _optional_float("RIDE_MAX_HR")


def get_zone_max_gap_ms() -> Optional[float]:
    return _optional_float("ZONE_MAX_GAP_MS")


def derive_distance_from_gps() -> bool:
    return _flag("DERIVE_DISTANCE_FROM_GPS", True)


def get_auto_lap_settings() -> Optional[dict]:
    """
    Auto-lap settings from the environment.

    Returns:
        Dictionary with "mode" and "interval" keys, or None when auto-lap
        is disabled or the mode is not recognised.
    """
    mode = os.environ.get("AUTO_LAP_MODE", "").strip().lower()
    if mode not in ("distance", "time"):
        return None
    interval = _optional_float("AUTO_LAP_INTERVAL") or 1.0
    return {"mode": mode, "interval": interval}
