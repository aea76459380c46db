"""Tests for dt_utils helpers and their edge cases.

Focuses on:
- dt_add_interval: month-end clamping, negative offsets, fixed units, overflow
- dt_seconds_between: UTC-based elapsed time across DST
- dt_parse / dt_parse_date / dt_parse_interval: input normalization
- Default timezone configuration
"""

from datetime import UTC, date, datetime
import logging
from zoneinfo import ZoneInfo

from freezegun import freeze_time
import pytest

from billing_cycle import const
from billing_cycle.utils.dt_utils import (
    as_aware,
    as_local,
    as_utc,
    dt_add_interval,
    dt_now_utc,
    dt_parse,
    dt_parse_date,
    dt_parse_interval,
    dt_seconds_between,
    get_default_timezone,
    set_default_timezone,
)

NEW_YORK = ZoneInfo("America/New_York")


class TestAddIntervalCalendarUnits:
    """Calendar arithmetic with clamping."""

    @pytest.mark.parametrize(
        ("delta", "expected"),
        [
            (1, datetime(2018, 2, 28, tzinfo=UTC)),
            (2, datetime(2018, 3, 31, tzinfo=UTC)),
            (3, datetime(2018, 4, 30, tzinfo=UTC)),
            (25, datetime(2020, 2, 29, tzinfo=UTC)),
            (-1, datetime(2017, 12, 31, tzinfo=UTC)),
            (-2, datetime(2017, 11, 30, tzinfo=UTC)),
        ],
    )
    def test_months_from_jan31(self, delta: int, expected: datetime) -> None:
        """Jan 31 clamps to each target month's last day."""
        base = datetime(2018, 1, 31, tzinfo=UTC)
        assert dt_add_interval(base, const.TIME_UNIT_MONTHS, delta) == expected

    def test_years_are_twelve_months(self) -> None:
        """Feb 29 + 1 year clamps to Feb 28; + 4 years keeps Feb 29."""
        base = datetime(2020, 2, 29, 8, 30, tzinfo=UTC)

        assert dt_add_interval(base, const.TIME_UNIT_YEARS, 1) == datetime(
            2021, 2, 28, 8, 30, tzinfo=UTC
        )
        assert dt_add_interval(base, const.TIME_UNIT_YEARS, 4) == datetime(
            2024, 2, 29, 8, 30, tzinfo=UTC
        )

    def test_keeps_wall_clock_time(self) -> None:
        """Calendar units keep local time across a DST change."""
        base = datetime(2021, 2, 14, 9, 0, tzinfo=NEW_YORK)
        result = dt_add_interval(base, const.TIME_UNIT_MONTHS, 1)

        assert result == datetime(2021, 3, 14, 9, 0, tzinfo=NEW_YORK)
        assert result.utcoffset() != base.utcoffset()

    def test_overflow(self) -> None:
        """Years beyond 9999 raise OverflowError."""
        with pytest.raises(OverflowError):
            dt_add_interval(
                datetime(9999, 12, 31, tzinfo=UTC), const.TIME_UNIT_MONTHS, 1
            )


class TestAddIntervalFixedUnits:
    """Exact elapsed-time arithmetic."""

    @pytest.mark.parametrize(
        ("unit", "delta", "expected"),
        [
            (const.TIME_UNIT_SECONDS, 90, datetime(2018, 1, 31, 0, 1, 30, tzinfo=UTC)),
            (const.TIME_UNIT_MINUTES, 45, datetime(2018, 1, 31, 0, 45, tzinfo=UTC)),
            (const.TIME_UNIT_HOURS, 30, datetime(2018, 2, 1, 6, 0, tzinfo=UTC)),
            (const.TIME_UNIT_DAYS, 29, datetime(2018, 3, 1, tzinfo=UTC)),
            (const.TIME_UNIT_WEEKS, -1, datetime(2018, 1, 24, tzinfo=UTC)),
        ],
    )
    def test_fixed_units(self, unit: str, delta: int, expected: datetime) -> None:
        """Fixed units never clamp."""
        base = datetime(2018, 1, 31, tzinfo=UTC)
        assert dt_add_interval(base, unit, delta) == expected

    def test_day_is_24_real_hours_across_dst(self) -> None:
        """Fixed units follow the UTC timeline and keep the base timezone."""
        base = datetime(2021, 3, 13, 12, 0, tzinfo=NEW_YORK)
        result = dt_add_interval(base, const.TIME_UNIT_DAYS, 1)

        assert result.tzinfo is NEW_YORK
        assert dt_seconds_between(base, result) == 86400.0
        assert result.hour == 13

    @pytest.mark.parametrize(
        ("base", "expected_hour"),
        [
            (datetime(2024, 3, 10, 0, 0, tzinfo=NEW_YORK), 1),
            (datetime(2024, 11, 3, 0, 0, tzinfo=NEW_YORK), 23),
        ],
    )
    def test_daily_midnight_drifts_with_dst(
        self, base: datetime, expected_hour: int
    ) -> None:
        """A midnight daily boundary moves an hour on the local clock."""
        result = dt_add_interval(base, const.TIME_UNIT_DAYS, 1)

        assert dt_seconds_between(base, result) == 86400.0
        assert result.hour == expected_hour

    def test_unknown_unit(self) -> None:
        """Unknown units raise ValueError."""
        with pytest.raises(ValueError, match="Unknown interval_unit"):
            dt_add_interval(datetime(2018, 1, 31, tzinfo=UTC), "quarters", 1)

    def test_overflow(self) -> None:
        """Results past datetime.max raise OverflowError."""
        with pytest.raises(OverflowError):
            dt_add_interval(
                datetime(9999, 12, 31, tzinfo=UTC), const.TIME_UNIT_DAYS, 2
            )


class TestSecondsBetween:
    """Test dt_seconds_between."""

    def test_spring_forward_day_is_23_hours(self) -> None:
        """Local midnight to midnight over spring-forward is 23 hours."""
        start = datetime(2021, 3, 14, tzinfo=NEW_YORK)
        end = datetime(2021, 3, 15, tzinfo=NEW_YORK)
        assert dt_seconds_between(start, end) == 23 * 3600

    def test_mixed_timezones(self) -> None:
        """Instants in different zones are compared on the UTC timeline."""
        start = datetime(2021, 6, 1, 12, 0, tzinfo=UTC)
        end = datetime(2021, 6, 1, 12, 0, tzinfo=NEW_YORK)
        assert dt_seconds_between(start, end) == 4 * 3600

    def test_negative(self) -> None:
        """End before start gives a negative value."""
        start = datetime(2021, 6, 2, tzinfo=UTC)
        end = datetime(2021, 6, 1, tzinfo=UTC)
        assert dt_seconds_between(start, end) == -86400.0


class TestParsing:
    """Test dt_parse, dt_parse_date and dt_parse_interval."""

    def test_dt_parse_iso_date(self) -> None:
        """Date-only strings become midnight in the default timezone."""
        assert dt_parse("2018-07-31") == datetime(2018, 7, 31, tzinfo=UTC)

    def test_dt_parse_keeps_offset(self) -> None:
        """Aware strings keep their offset."""
        result = dt_parse("2018-07-31T09:00:00-04:00")
        assert result is not None
        assert result == datetime(2018, 7, 31, 13, 0, tzinfo=UTC)

    def test_dt_parse_date_and_datetime_objects(self) -> None:
        """date and datetime objects are normalized."""
        assert dt_parse(date(2018, 7, 31)) == datetime(2018, 7, 31, tzinfo=UTC)
        aware = datetime(2018, 7, 31, 9, 0, tzinfo=NEW_YORK)
        assert dt_parse(aware) is aware

    def test_dt_parse_default_tzinfo_override(self) -> None:
        """default_tzinfo applies to naive input only."""
        result = dt_parse("2018-07-31 09:00", default_tzinfo=NEW_YORK)
        assert result == datetime(2018, 7, 31, 9, 0, tzinfo=NEW_YORK)

    @pytest.mark.parametrize("value", [None, "", "not-a-date", "2018-13-45", 12])
    def test_dt_parse_invalid(self, value: object) -> None:
        """Unparseable input returns None."""
        assert dt_parse(value) is None  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2025-04-07", date(2025, 4, 7)),
            ("04/07/2025", date(2025, 4, 7)),
            ("2025/04/07", date(2025, 4, 7)),
            ("07.04.2025", None),
            (None, None),
        ],
    )
    def test_dt_parse_date(self, value: str | None, expected: date | None) -> None:
        """Supported date formats parse; others return None."""
        assert dt_parse_date(value) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("1 month", (1, const.TIME_UNIT_MONTHS)),
            ("2 weeks", (2, const.TIME_UNIT_WEEKS)),
            ("Year", (1, const.TIME_UNIT_YEARS)),
            ("0 days", (0, const.TIME_UNIT_DAYS)),
            ("1 month 2 days", None),
            ("fortnight", None),
            ("", None),
            (None, None),
        ],
    )
    def test_dt_parse_interval(
        self, value: str | None, expected: tuple[int, str] | None
    ) -> None:
        """Count and unit are split; mixed or unknown units are rejected."""
        assert dt_parse_interval(value) == expected


class TestTimezoneConfiguration:
    """Test default timezone handling."""

    def test_default_is_utc(self) -> None:
        """UTC is the default zone."""
        assert get_default_timezone() == ZoneInfo("UTC")

    def test_set_default_timezone(self) -> None:
        """Naive values follow the configured zone."""
        set_default_timezone(NEW_YORK)

        naive = datetime(2021, 6, 1, 8, 0)
        assert as_aware(naive).tzinfo is NEW_YORK
        assert as_utc(naive) == datetime(2021, 6, 1, 12, 0, tzinfo=UTC)
        assert as_local(datetime(2021, 6, 1, 12, 0, tzinfo=UTC)).hour == 8

    def test_as_aware_keeps_aware_values(self) -> None:
        """Aware values are returned unchanged."""
        aware = datetime(2021, 6, 1, tzinfo=NEW_YORK)
        assert as_aware(aware) is aware

    def test_localizing_naive_value_logs_at_debug(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Naive input is a supported case: a debug record, never a warning."""
        with caplog.at_level(logging.DEBUG, logger="billing_cycle.utils.dt_utils"):
            as_aware(datetime(2021, 6, 1, 8, 0))

        assert [record.levelno for record in caplog.records] == [logging.DEBUG]
        assert "Localizing naive datetime" in caplog.text

    @freeze_time("2018-08-20 00:00:00")
    def test_dt_now_utc(self) -> None:
        """dt_now_utc is aware UTC and follows freezegun."""
        assert dt_now_utc() == datetime(2018, 8, 20, tzinfo=UTC)
