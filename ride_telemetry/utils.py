"""
Utility Functions for Ride Telemetry

This module provides helper functions for value conversion, rounding and
timestamp formatting used throughout the recording and export pipeline.
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import numpy as np


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def safe_float(value) -> float:
    """
    Safely convert a value to float, returning NaN on failure.

    Args:
        value: Value to convert (string, number, etc.).

    Returns:
        Float value, or np.nan if conversion fails.
    """
    try:
        return float(value)
    except (TypeError, ValueError):
        return np.nan


def is_finite_number(value) -> bool:
    """
    Check that a value is a real, finite number.

    Booleans are rejected even though they are ints in Python.

    Args:
        value: Value to check.

    Returns:
        True if value is an int or float that is neither NaN nor infinite.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
        return False
    return bool(np.isfinite(value))


def round_float(value, digits: int = 3) -> Optional[float]:
    """
    Round a float value, handling None, NaN, and Inf.

    Args:
        value: Value to round.
        digits: Number of decimal places. Default 3.

    Returns:
        Rounded float, or None if value is None, NaN, or Inf.
    """
    if value is None or not is_finite_number(value):
        return None
    return round(float(value), digits)


def round_half_up(value) -> Optional[int]:
    """
    Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2).

    Python's round() rounds halves to even, which would write 200 for a
    200.5 W sample; exported files expect 201.

    Args:
        value: Numeric value, or None.

    Returns:
        Rounded integer, or None if value is None or not finite.
    """
    if value is None or not is_finite_number(value):
        return None
    return int(np.floor(float(value) + 0.5))


def format_fixed(value, digits: int) -> str:
    """Format a number with a fixed number of decimals, empty string for None."""
    if value is None or not is_finite_number(value):
        return ""
    return f"{float(value):.{digits}f}"


def format_int(value) -> str:
    """Format a number rounded to an integer, empty string for None."""
    rounded = round_half_up(value)
    return "" if rounded is None else str(rounded)


def iso_timestamp(timestamp_ms) -> str:
    """
    Convert a Unix timestamp in milliseconds to an ISO-8601 UTC string.

    The output always carries millisecond precision and a trailing "Z",
    e.g. 1609459200000 -> "2021-01-01T00:00:00.000Z".

    Args:
        timestamp_ms: Milliseconds since the Unix epoch.

    Returns:
        ISO-8601 timestamp string.
    """
    moment = EPOCH + timedelta(milliseconds=int(timestamp_ms))
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def now_ms() -> int:
    """Current wall-clock time in Unix milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def mean_or_none(values: Iterable) -> Optional[float]:
    """
    Compute mean of values, ignoring None and NaN.

    Args:
        values: Numeric values (may contain None or NaN).

    Returns:
        Mean of valid values, or None if no valid values exist.
    """
    cleaned = [v for v in values if v is not None and is_finite_number(v)]
    if not cleaned:
        return None
    return float(np.mean(cleaned))


def max_or_none(values: Iterable) -> Optional[float]:
    """Maximum of the valid values, or None if there are none."""
    cleaned = [v for v in values if v is not None and is_finite_number(v)]
    if not cleaned:
        return None
    return float(np.max(cleaned))
