# File: const.py
"""Constants for the billing_cycle package.

This file centralizes time-unit names, unit lengths, safety limits and the
package logger so engines and utilities agree on a single vocabulary.
"""

import logging

# ------------------------------------------------------------------------------------------------
# General
# ------------------------------------------------------------------------------------------------
# Logger
LOGGER = logging.getLogger(__package__)

# ------------------------------------------------------------------------------------------------
# Time Units
# ------------------------------------------------------------------------------------------------
TIME_UNIT_SECONDS = "seconds"
TIME_UNIT_MINUTES = "minutes"
TIME_UNIT_HOURS = "hours"
TIME_UNIT_DAYS = "days"
TIME_UNIT_WEEKS = "weeks"
TIME_UNIT_MONTHS = "months"
TIME_UNIT_YEARS = "years"

# Units with a constant length, addable as plain elapsed time
FIXED_TIME_UNITS = (
    TIME_UNIT_SECONDS,
    TIME_UNIT_MINUTES,
    TIME_UNIT_HOURS,
    TIME_UNIT_DAYS,
    TIME_UNIT_WEEKS,
)

# Units whose length depends on the calendar date (need clamping)
CALENDAR_TIME_UNITS = (TIME_UNIT_MONTHS, TIME_UNIT_YEARS)

TIME_UNITS = FIXED_TIME_UNITS + CALENDAR_TIME_UNITS

# Singular spellings accepted on input ("1 month", "week")
TIME_UNIT_ALIASES = {
    "second": TIME_UNIT_SECONDS,
    "minute": TIME_UNIT_MINUTES,
    "hour": TIME_UNIT_HOURS,
    "day": TIME_UNIT_DAYS,
    "week": TIME_UNIT_WEEKS,
    "month": TIME_UNIT_MONTHS,
    "year": TIME_UNIT_YEARS,
}

MONTHS_PER_YEAR = 12

# Nominal lengths in seconds. A year is 365.2425 days (Gregorian average) and
# a month is a twelfth of that; only used as seeds and measuring units.
SECONDS_PER_UNIT = {
    TIME_UNIT_SECONDS: 1,
    TIME_UNIT_MINUTES: 60,
    TIME_UNIT_HOURS: 3600,
    TIME_UNIT_DAYS: 86400,
    TIME_UNIT_WEEKS: 604800,
    TIME_UNIT_MONTHS: 2629746,
    TIME_UNIT_YEARS: 31556952,
}

# relativedelta fields that pin a value instead of shifting it; never an interval
RELATIVEDELTA_ABSOLUTE_FIELDS = (
    "year",
    "month",
    "day",
    "weekday",
    "hour",
    "minute",
    "second",
    "microsecond",
    "leapdays",
)

# ------------------------------------------------------------------------------------------------
# Safety Limits
# ------------------------------------------------------------------------------------------------
# Total boundary search correction steps. The seed is accurate to
# within one cycle, so more than a couple of steps means a broken interval.
MAX_CYCLE_CORRECTION_STEPS = 4

# Default cap on boundaries returned by BillingCycle.due_dates()
MAX_DUE_DATES = 100
