"""
time_utils.py — Timestamp parsing and staleness helpers.

Open-data feeds publish timestamps in several forms:
- ISO 8601: "2024-07-01T10:15:00Z", "2024-07-01"
- Free-form dates: "July 1, 2024"
- Epoch seconds (GBFS ``last_reported``) or epoch milliseconds
  (road restrictions ``startTime``), as numbers or numeric strings

All parsed values are timezone-aware UTC datetimes; naive inputs are
assumed to be UTC.

Usage:
    from pulse_shared.time_utils import parse_timestamp, is_stale

    parse_timestamp("2024-07-01")        # datetime(2024, 7, 1, tzinfo=UTC)
    parse_timestamp(1719828000)          # epoch seconds
    parse_timestamp("1719828000000")     # epoch milliseconds
    is_stale(ts, timedelta(days=1), now=datetime.now(timezone.utc))
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone
from typing import Any

from dateutil import parser as date_parser

Clock = Callable[[], datetime]

# Epoch values above this are treated as milliseconds (year ~2286 in seconds)
_EPOCH_MS_THRESHOLD = 10_000_000_000

_NUMERIC = re.compile(r"-?\d+(\.\d+)?")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def from_epoch(value: float) -> datetime:
    """Convert epoch seconds or milliseconds to an aware UTC datetime."""
    if abs(value) >= _EPOCH_MS_THRESHOLD:
        value = value / 1000.0
    return datetime.fromtimestamp(value, tz=timezone.utc)


def parse_timestamp(raw: Any) -> datetime | None:
    """
    Parse a feed timestamp into an aware UTC datetime.

    Returns None if the value is empty or cannot be parsed.

    Args:
        raw: datetime, date, epoch number, or date string.

    Returns:
        datetime (UTC) or None.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, datetime):
        return raw if raw.tzinfo else raw.replace(tzinfo=timezone.utc)
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day, tzinfo=timezone.utc)
    if isinstance(raw, (int, float)):
        try:
            return from_epoch(float(raw))
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(raw, str):
        return None

    s = raw.strip()
    if not s:
        return None
    if _NUMERIC.fullmatch(s) and len(s) > 8:
        # Long digit strings are epochs; short ones ("2024") are years
        try:
            return from_epoch(float(s))
        except (OverflowError, OSError, ValueError):
            return None
    try:
        parsed = date_parser.parse(s)
    except (ValueError, OverflowError):
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def to_iso(value: datetime) -> str:
    """ISO 8601 with a ``Z`` suffix for UTC."""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def is_stale(ts: datetime, max_age: timedelta, now: datetime) -> bool:
    """True if ``ts`` is older than ``max_age`` relative to ``now``."""
    return ts < now - max_age
