# File: utils/dt_utils.py
"""Date and time utilities for billing_cycle.

Pure functions over zone-aware datetimes. The engines build on these so that
every timezone decision is made in one place.

Functions:
    - set_default_timezone / get_default_timezone: Zone applied to naive input
    - dt_now_utc: Current datetime in UTC (the default clock)
    - as_utc / as_local / as_aware: Timezone normalization
    - dt_parse_date: Parse date strings
    - dt_parse: Normalize str/date/datetime input to an aware datetime
    - dt_parse_interval: Split "2 weeks" into (count, unit)
    - dt_add_interval: Calendar-safe offset with month-end clamping
    - dt_seconds_between: Real elapsed seconds between two instants
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
import logging
import re
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from .. import const

if TYPE_CHECKING:
    from datetime import tzinfo

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# Default timezone - can be overridden by caller
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

# "<count> <unit>" with an optional count, e.g. "1 month", "2 weeks", "year"
_INTERVAL_PATTERN = re.compile(r"^\s*(\d+)?\s*([a-z]+)\s*$")


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the zone used to interpret naive datetimes and date strings.

    Call this once during application setup.

    Args:
        tz: ZoneInfo object representing the default timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Get the current default timezone."""
    return DEFAULT_TIME_ZONE


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware)."""
    return datetime.now(UTC)


# ==============================================================================
# Timezone Conversion
# ==============================================================================


def as_aware(dt_obj: datetime, tz: tzinfo | None = None) -> datetime:
    """Attach a timezone to a naive datetime; aware values pass through.

    Args:
        dt_obj: Datetime object, naive or aware
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Timezone-aware datetime
    """
    if dt_obj.tzinfo is not None:
        return dt_obj
    tz_info = tz or DEFAULT_TIME_ZONE
    _LOGGER.debug("Localizing naive datetime %s to %s", dt_obj.isoformat(), tz_info)
    return dt_obj.replace(tzinfo=tz_info)


def as_utc(dt_obj: datetime) -> datetime:
    """Convert a datetime to UTC timezone.

    Naive values are assumed to be in DEFAULT_TIME_ZONE.
    """
    return as_aware(dt_obj).astimezone(UTC)


def as_local(dt_obj: datetime, tz: tzinfo | None = None) -> datetime:
    """Convert a datetime to local timezone.

    Args:
        dt_obj: Datetime object (naive values are assumed to be UTC)
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Datetime in local timezone
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=UTC)
    return dt_obj.astimezone(tz_info)


# ==============================================================================
# Parsing
# ==============================================================================


def dt_parse_date(date_str: str | None) -> date | None:
    """Safely parse a date string into a `datetime.date`.

    Accepts formats:
    - "2025-04-07" (ISO format)
    - "04/07/2025" (US format)
    - "2025/04/07"

    Returns:
        datetime.date or None if parsing fails.
    """
    if not date_str or not isinstance(date_str, str):
        return None

    try:
        return date.fromisoformat(date_str)
    except ValueError:
        pass

    for fmt in ("%m/%d/%Y", "%Y/%m/%d"):
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue

    return None


def dt_parse(
    dt_input: str | date | datetime | None,
    default_tzinfo: tzinfo | None = None,
) -> datetime | None:
    """Normalize various datetime input formats to an aware datetime.

    Args:
        dt_input: String, date or datetime to normalize, or None
        default_tzinfo: Timezone to use if the input is naive
                        (defaults to DEFAULT_TIME_ZONE if None)

    Returns:
        Timezone-aware datetime, or None if the input could not be parsed.

    Example:
        >>> dt_parse("2018-07-31")
        datetime.datetime(2018, 7, 31, 0, 0, tzinfo=zoneinfo.ZoneInfo(key='UTC'))
    """
    if not dt_input:
        return None

    result: datetime

    if isinstance(dt_input, str):
        try:
            result = datetime.fromisoformat(dt_input)
        except ValueError:
            parsed_date = dt_parse_date(dt_input)
            if parsed_date is None:
                _LOGGER.warning("Could not parse datetime: %s", dt_input)
                return None
            result = datetime.combine(parsed_date, datetime.min.time())

    # Handle datetime objects
    elif isinstance(dt_input, datetime):
        result = dt_input

    # Handle date objects (datetime is a date subclass, so check it first)
    elif isinstance(dt_input, date):
        result = datetime.combine(dt_input, datetime.min.time())

    else:
        return None

    return as_aware(result, default_tzinfo)


def dt_parse_interval(interval_str: str | None) -> tuple[int, str] | None:
    """Parse a human-readable interval string into a (count, unit) pair.

    Supported formats:
    - "1 month", "2 weeks", "30 days"
    - "month" → (1, "months")
    - "3months" → (3, "months")

    The count is returned as written; validating that it is positive is the
    caller's job.

    Returns:
        (count, TIME_UNIT_* constant), or None for empty or invalid input.
    """
    if not interval_str or not isinstance(interval_str, str):
        return None

    match = _INTERVAL_PATTERN.match(interval_str.lower())
    if not match:
        _LOGGER.warning(
            "Invalid interval format: %s - expected format like '1 month', '2 weeks'",
            interval_str,
        )
        return None

    count_str, unit_str = match.groups()
    unit = const.TIME_UNIT_ALIASES.get(unit_str, unit_str)
    if unit not in const.TIME_UNITS:
        _LOGGER.warning("Unknown interval unit: %s", unit_str)
        return None

    return (int(count_str) if count_str else 1), unit


# ==============================================================================
# Interval Calculations
# ==============================================================================


def dt_add_interval(base_dt: datetime, interval_unit: str, delta: int) -> datetime:
    """Shift an aware datetime by `delta` time units (delta may be negative).

    Calendar units (months, years) move the calendar month and keep the
    day-of-month and wall-clock time, clamping to the target month's last day:
    Jan 31 + 1 month = Feb 28 (Feb 29 in leap years), never Mar 3.

    Fixed units (seconds through weeks) add exact elapsed time on the UTC
    timeline, and the result is expressed in base_dt's timezone. Across a DST
    change the local clock time therefore moves: a daily boundary at 00:00 EST
    lands at 01:00 EDT after spring forward (23:00 after fall back). Use a
    months/years interval to keep a fixed wall-clock time.

    Args:
        base_dt: Anchor datetime (naive values take DEFAULT_TIME_ZONE)
        interval_unit: One of the TIME_UNIT_* constants
        delta: Number of time units to add

    Returns:
        The shifted datetime.

    Raises:
        ValueError: Unknown interval_unit.
        OverflowError: Result outside the datetime range.
    """
    base_dt = as_aware(base_dt)

    if interval_unit == const.TIME_UNIT_MONTHS:
        return _add_months(base_dt, delta)
    if interval_unit == const.TIME_UNIT_YEARS:
        return _add_months(base_dt, delta * const.MONTHS_PER_YEAR)

    unit_seconds = const.SECONDS_PER_UNIT.get(interval_unit)
    if unit_seconds is None:
        raise ValueError(f"Unknown interval_unit: {interval_unit}")

    result_utc = as_utc(base_dt) + timedelta(seconds=delta * unit_seconds)
    return result_utc.astimezone(base_dt.tzinfo)


def _add_months(base_dt: datetime, months: int) -> datetime:
    """Add calendar months with relativedelta's last-day clamping."""
    try:
        return base_dt + relativedelta(months=months)
    except ValueError as exc:
        # relativedelta reports years outside 1..9999 as ValueError
        raise OverflowError(f"date value out of range: {exc}") from exc


def dt_seconds_between(start: datetime, end: datetime) -> float:
    """Return the real elapsed seconds from start to end.

    Both values are compared as UTC instants, so a DST transition between
    them counts its true length (e.g. a 23-hour day).
    """
    return (as_utc(end) - as_utc(start)).total_seconds()
