# File: __init__.py
"""Calendar-aware recurring billing dates.

Given a subscription's creation time and a repeating interval, BillingCycle
answers when the next and previous charges are due and how far through the
current cycle a moment is.

Usage:
    from billing_cycle import BillingCycle, Interval

    cycle = BillingCycle(created_at, Interval.parse("1 month"))
    cycle.next_due_at(now)
"""

from .engines import (
    BillingCycle,
    BillingCycleError,
    CycleRangeError,
    CycleSearchError,
    Interval,
    InvalidIntervalError,
    UndefinedPreviousCycleError,
)
from .type_defs import Clock, CycleConfig

__all__ = [
    "BillingCycle",
    "BillingCycleError",
    "Clock",
    "CycleConfig",
    "CycleRangeError",
    "CycleSearchError",
    "Interval",
    "InvalidIntervalError",
    "UndefinedPreviousCycleError",
]
