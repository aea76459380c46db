# File: engines/cycle_engine.py
"""Cycle Engine - recurring billing boundaries for a subscription.

A billing cycle is the pair (created_at, interval). Boundaries are
`created_at` advanced by k intervals for k >= 0; a charge is due on each one.
All queries are derived from a single primitive, `BillingCycle.due_at(k)`,
which always offsets from the anchor so month-end clamping never compounds
(Jan 31 → Feb 28 → Mar 31, not Mar 28).

ARCHITECTURE: Pure logic with no I/O. Instances are frozen value objects and
safe to share between threads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from dateutil.relativedelta import relativedelta

from .. import const
from ..utils import dt_utils

if TYPE_CHECKING:
    from ..type_defs import Clock, CycleConfig


# =============================================================================
# Errors
# =============================================================================


class BillingCycleError(Exception):
    """Base class for billing cycle errors."""


class InvalidIntervalError(BillingCycleError, ValueError):
    """Raised when an interval cannot be built.

    Attributes:
        reason: What was wrong with the input
        unit: The offending unit (or raw input), if known
        count: The offending count, if known
    """

    def __init__(
        self,
        reason: str,
        unit: object = None,
        count: object = None,
    ) -> None:
        """Initialize InvalidIntervalError."""
        self.reason = reason
        self.unit = unit
        self.count = count
        super().__init__(f"Invalid interval (unit={unit!r}, count={count!r}): {reason}")


class UndefinedPreviousCycleError(BillingCycleError):
    """Raised when a query needs a previous boundary but none exists.

    This happens when `now` is at or before `created_at`: the first charge
    has not occurred yet, so there is no enclosing cycle to measure.
    """

    def __init__(self, created_at: datetime, now: datetime) -> None:
        """Initialize UndefinedPreviousCycleError."""
        self.created_at = created_at
        self.now = now
        super().__init__(
            f"No billing cycle before {created_at.isoformat()} "
            f"(now={now.isoformat()})"
        )


class CycleSearchError(BillingCycleError, RuntimeError):
    """Raised when the boundary search fails to settle within its step limit."""


class CycleRangeError(BillingCycleError, OverflowError):
    """Raised when a boundary falls outside the representable datetime range."""

    def __init__(self, cycle_index: int, interval: Interval) -> None:
        """Initialize CycleRangeError."""
        self.cycle_index = cycle_index
        self.interval = interval
        super().__init__(
            f"Billing cycle {cycle_index} of every {interval} is out of range"
        )


# =============================================================================
# Interval
# =============================================================================


@dataclass(frozen=True, slots=True)
class Interval:
    """A single-unit repeating interval, e.g. 1 month or 2 weeks.

    `unit` is one of the TIME_UNIT_* constants (singular spellings are
    normalized) and `count` is a positive integer.
    """

    unit: str
    count: int = 1

    def __post_init__(self) -> None:
        """Validate and normalize unit/count."""
        if not isinstance(self.unit, str):
            raise InvalidIntervalError("unit must be a string", self.unit, self.count)
        unit = self.unit.strip().lower()
        unit = const.TIME_UNIT_ALIASES.get(unit, unit)
        if unit not in const.TIME_UNITS:
            raise InvalidIntervalError("unknown unit", self.unit, self.count)

        # bool is an int subclass; True is not a count
        if isinstance(self.count, bool) or not isinstance(self.count, int):
            raise InvalidIntervalError("count must be an integer", self.unit, self.count)
        if self.count <= 0:
            raise InvalidIntervalError("count must be positive", self.unit, self.count)

        object.__setattr__(self, "unit", unit)

    def __str__(self) -> str:
        """Return e.g. "1 month" or "2 weeks"."""
        unit = self.unit[:-1] if self.count == 1 else self.unit
        return f"{self.count} {unit}"

    @property
    def is_calendar(self) -> bool:
        """True for months/years, whose length depends on the date."""
        return self.unit in const.CALENDAR_TIME_UNITS

    @property
    def nominal_seconds(self) -> int:
        """Length in seconds, using the Gregorian average for months/years."""
        return const.SECONDS_PER_UNIT[self.unit] * self.count

    # -------------------------------------------------------------------------
    # Alternative constructors
    # -------------------------------------------------------------------------

    @classmethod
    def parse(cls, text: str) -> Interval:
        """Build an interval from text such as "1 month", "2 weeks" or "year".

        Raises:
            InvalidIntervalError: Unrecognized text or a non-positive count.
        """
        parsed = dt_utils.dt_parse_interval(text)
        if parsed is None:
            raise InvalidIntervalError("unrecognized interval text", text)
        count, unit = parsed
        return cls(unit, count)

    @classmethod
    def from_relativedelta(cls, delta: relativedelta) -> Interval:
        """Build an interval from a relativedelta carrying exactly one unit.

        relativedelta normalizes its fields (months=14 becomes years=1,
        months=2; hours=36 becomes days=1, hours=12), so the calendar part and
        the fixed part are each collapsed back into one count first.

        Raises:
            InvalidIntervalError: Absolute fields (e.g. day=31), sub-second
                parts, or a mix of calendar and fixed units.
        """
        for field_name in const.RELATIVEDELTA_ABSOLUTE_FIELDS:
            if getattr(delta, field_name):
                raise InvalidIntervalError(
                    f"absolute field '{field_name}' is not an interval", delta
                )
        if delta.microseconds:
            raise InvalidIntervalError("sub-second intervals are not supported", delta)

        months = delta.years * const.MONTHS_PER_YEAR + delta.months
        fixed_seconds = (
            (delta.days * 24 + delta.hours) * 60 + delta.minutes
        ) * 60 + delta.seconds

        if months and fixed_seconds:
            raise InvalidIntervalError("intervals cannot mix units", delta)
        if months:
            if delta.years and not delta.months:
                return cls(const.TIME_UNIT_YEARS, delta.years)
            return cls(const.TIME_UNIT_MONTHS, months)
        return cls._from_seconds(fixed_seconds)

    @classmethod
    def from_timedelta(cls, delta: timedelta) -> Interval:
        """Build a fixed-unit interval, picking the largest unit that divides it.

        timedelta(days=14) → 2 weeks, timedelta(hours=36) → 36 hours.
        """
        return cls._from_seconds(delta.total_seconds())

    @classmethod
    def _from_seconds(cls, total_seconds: float) -> Interval:
        if total_seconds <= 0:
            raise InvalidIntervalError(
                "count must be positive", const.TIME_UNIT_SECONDS, total_seconds
            )
        for unit in reversed(const.FIXED_TIME_UNITS):
            unit_seconds = const.SECONDS_PER_UNIT[unit]
            if total_seconds % unit_seconds == 0:
                return cls(unit, int(total_seconds // unit_seconds))
        raise InvalidIntervalError(
            "sub-second intervals are not supported",
            const.TIME_UNIT_SECONDS,
            total_seconds,
        )

    @classmethod
    def coerce(cls, value: Interval | str | relativedelta | timedelta) -> Interval:
        """Return `value` as an Interval, converting supported duration types."""
        if isinstance(value, Interval):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        if isinstance(value, relativedelta):
            return cls.from_relativedelta(value)
        if isinstance(value, timedelta):
            return cls.from_timedelta(value)
        raise InvalidIntervalError(
            f"unsupported interval type {type(value).__name__}", value
        )


def _measure_seconds(unit: str | Interval | timedelta) -> float:
    """Length in seconds of a measuring unit for time_elapsed/time_remaining."""
    if isinstance(unit, timedelta):
        seconds = unit.total_seconds()
        if seconds <= 0:
            raise InvalidIntervalError("measuring unit must be positive", unit)
        return seconds
    return float(Interval.coerce(unit).nominal_seconds)


# =============================================================================
# Billing Cycle
# =============================================================================


@dataclass(frozen=True, slots=True)
class BillingCycle:
    """Next/previous due dates and cycle progress for one subscription.

    Args:
        created_at: Anchor of the schedule; the first charge is due here.
            Naive values take the configured default timezone.
        interval: Interval, or anything Interval.coerce() accepts
            ("1 month", relativedelta(months=1), timedelta(weeks=2)).
        clock: Zero-argument callable supplying "now" when a query is called
            without one. Not part of equality.

    Example:
        >>> cycle = BillingCycle(datetime(2018, 1, 31, tzinfo=UTC), Interval("months"))
        >>> cycle.next_due_at(datetime(2018, 2, 1, tzinfo=UTC))
        datetime.datetime(2018, 2, 28, 0, 0, tzinfo=datetime.timezone.utc)
    """

    created_at: datetime
    interval: Interval
    clock: Clock = field(default=dt_utils.dt_now_utc, compare=False, repr=False)

    def __post_init__(self) -> None:
        """Normalize created_at and interval."""
        object.__setattr__(self, "created_at", dt_utils.as_aware(self.created_at))
        object.__setattr__(self, "interval", Interval.coerce(self.interval))

    @classmethod
    def from_config(
        cls, config: CycleConfig, clock: Clock = dt_utils.dt_now_utc
    ) -> BillingCycle:
        """Build a billing cycle from a plain dict (e.g. a stored subscription).

        Args:
            config: CycleConfig with `created_at` and `interval`.
            clock: Optional clock override.

        Raises:
            ValueError: created_at is missing or unparseable.
            InvalidIntervalError: interval is missing or invalid.
        """
        raw_created_at = config.get("created_at")
        created_at = dt_utils.dt_parse(raw_created_at)
        if created_at is None:
            raise ValueError(f"Invalid or missing created_at: {raw_created_at!r}")

        raw_interval = config.get("interval")
        if raw_interval is None:
            raise InvalidIntervalError("interval is required")

        return cls(created_at, Interval.coerce(raw_interval), clock)

    # =========================================================================
    # Boundaries
    # =========================================================================

    def due_at(self, cycle_index: int) -> datetime:
        """Return boundary number `cycle_index` (0 is created_at; may be negative).

        Computed from the anchor every time, so clamping depends only on the
        target month.

        Raises:
            CycleRangeError: The boundary is outside the datetime range.
        """
        try:
            return dt_utils.dt_add_interval(
                self.created_at,
                self.interval.unit,
                cycle_index * self.interval.count,
            )
        except OverflowError as exc:
            raise CycleRangeError(cycle_index, self.interval) from exc

    def next_due_at(self, now: datetime | None = None) -> datetime:
        """Return the earliest boundary at or after `now`.

        If `now` is at or before created_at, the first charge is still ahead
        and created_at itself is returned. A `now` equal to a boundary returns
        that boundary.
        """
        now = self._resolve_now(now)
        if dt_utils.as_utc(now) <= dt_utils.as_utc(self.created_at):
            return self.created_at
        return self.due_at(self._next_cycle_index(now))

    def previous_due_at(self, now: datetime | None = None) -> datetime | None:
        """Return the latest boundary strictly before `now`.

        Returns None when `now` is at or before created_at (no earlier cycle).
        A `now` equal to a boundary returns the boundary before it.
        """
        return self.cycle_bounds(now)[0]

    def cycle_bounds(
        self, now: datetime | None = None
    ) -> tuple[datetime | None, datetime]:
        """Return (previous_due_at, next_due_at) for `now` with one search.

        The current cycle is the half-open range [previous, next).
        """
        now = self._resolve_now(now)
        if dt_utils.as_utc(now) <= dt_utils.as_utc(self.created_at):
            return None, self.created_at

        cycle_index = self._next_cycle_index(now)
        # _next_cycle_index guarantees due_at(cycle_index - 1) < now
        return self.due_at(cycle_index - 1), self.due_at(cycle_index)

    def due_dates(
        self,
        start: datetime,
        end: datetime,
        limit: int = const.MAX_DUE_DATES,
    ) -> list[datetime]:
        """Return the boundaries b with start <= b <= end, oldest first.

        Args:
            start: Window start (inclusive).
            end: Window end (inclusive).
            limit: Maximum boundaries to return (safety limit).
        """
        start = dt_utils.as_aware(start)
        end = dt_utils.as_aware(end)
        # Ordering is done on UTC instants; same-zone comparisons ignore fold
        start_utc = dt_utils.as_utc(start)
        end_utc = dt_utils.as_utc(end)
        if end_utc < start_utc or limit <= 0:
            return []

        if start_utc <= dt_utils.as_utc(self.created_at):
            cycle_index = 0
        else:
            cycle_index = self._next_cycle_index(start)

        due_dates: list[datetime] = []
        while len(due_dates) < limit:
            boundary = self.due_at(cycle_index)
            if dt_utils.as_utc(boundary) > end_utc:
                break
            due_dates.append(boundary)
            cycle_index += 1

        return due_dates

    # =========================================================================
    # Progress
    # =========================================================================

    def percent_elapsed(self, now: datetime | None = None) -> float:
        """Return the fraction (0.0-1.0) of the current cycle already used.

        Raises:
            UndefinedPreviousCycleError: `now` is at or before created_at.
        """
        now = self._resolve_now(now)
        previous, upcoming = self._require_bounds(now)
        return dt_utils.dt_seconds_between(
            previous, now
        ) / dt_utils.dt_seconds_between(previous, upcoming)

    def percent_remaining(self, now: datetime | None = None) -> float:
        """Return the fraction (0.0-1.0) of the current cycle still left.

        Raises:
            UndefinedPreviousCycleError: `now` is at or before created_at.
        """
        now = self._resolve_now(now)
        previous, upcoming = self._require_bounds(now)
        return dt_utils.dt_seconds_between(
            now, upcoming
        ) / dt_utils.dt_seconds_between(previous, upcoming)

    def time_elapsed(
        self,
        unit: str | Interval | timedelta = const.TIME_UNIT_SECONDS,
        now: datetime | None = None,
    ) -> float:
        """Return the time since the previous due date, measured in `unit`.

        Args:
            unit: TIME_UNIT_* constant, Interval or timedelta to measure in.
                Months/years use their nominal (average) length.
            now: Reference time; defaults to the clock.

        Raises:
            UndefinedPreviousCycleError: `now` is at or before created_at.
        """
        unit_seconds = _measure_seconds(unit)
        now = self._resolve_now(now)
        previous, _ = self._require_bounds(now)
        return dt_utils.dt_seconds_between(previous, now) / unit_seconds

    def time_remaining(
        self,
        unit: str | Interval | timedelta = const.TIME_UNIT_SECONDS,
        now: datetime | None = None,
    ) -> float:
        """Return the time until the next due date, measured in `unit`.

        Defined before created_at as well (time until the first charge).
        """
        unit_seconds = _measure_seconds(unit)
        now = self._resolve_now(now)
        return dt_utils.dt_seconds_between(now, self.next_due_at(now)) / unit_seconds

    # =========================================================================
    # Private
    # =========================================================================

    def _resolve_now(self, now: datetime | None) -> datetime:
        if now is None:
            now = self.clock()
        return dt_utils.as_aware(now)

    def _require_bounds(self, now: datetime) -> tuple[datetime, datetime]:
        previous, upcoming = self.cycle_bounds(now)
        if previous is None:
            raise UndefinedPreviousCycleError(self.created_at, now)
        return previous, upcoming

    def _next_cycle_index(self, now: datetime) -> int:
        """Return the smallest k >= 1 with due_at(k) >= now, for now > created_at.

        Seeds k from the interval's nominal length, then corrects. The seed is
        exact for fixed units and within one cycle for months/years, so the
        correction loop is bounded by MAX_CYCLE_CORRECTION_STEPS.
        """
        elapsed = dt_utils.dt_seconds_between(self.created_at, now)
        seed = int(elapsed // self.interval.nominal_seconds)
        cycle_index = seed
        now_utc = dt_utils.as_utc(now)

        for _ in range(const.MAX_CYCLE_CORRECTION_STEPS + 1):
            # Seed overshoot: an earlier boundary already reaches now
            if (
                cycle_index > 0
                and dt_utils.as_utc(self.due_at(cycle_index - 1)) >= now_utc
            ):
                cycle_index -= 1
                continue
            if dt_utils.as_utc(self.due_at(cycle_index)) < now_utc:
                cycle_index += 1
                continue

            const.LOGGER.debug(
                "BillingCycle: every %s from %s, now=%s → seed=%d, index=%d",
                self.interval,
                self.created_at.isoformat(),
                now.isoformat(),
                seed,
                cycle_index,
            )
            return cycle_index

        const.LOGGER.error(
            "BillingCycle: boundary search did not settle. created_at=%s, "
            "interval=%s, now=%s, seed=%d, last_index=%d",
            self.created_at.isoformat(),
            self.interval,
            now.isoformat(),
            seed,
            cycle_index,
        )
        raise CycleSearchError(
            f"Boundary search for every {self.interval} from "
            f"{self.created_at.isoformat()} exceeded "
            f"{const.MAX_CYCLE_CORRECTION_STEPS} correction steps"
        )
