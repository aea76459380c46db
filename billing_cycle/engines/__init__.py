"""Engine modules for billing_cycle.

Contains the pure computation engines:
- cycle_engine: Interval, BillingCycle and the billing cycle error taxonomy
"""

# Use relative imports within package to avoid mypy module resolution issues
from .cycle_engine import (
    BillingCycle,
    BillingCycleError,
    CycleRangeError,
    CycleSearchError,
    Interval,
    InvalidIntervalError,
    UndefinedPreviousCycleError,
)

__all__ = [
    "BillingCycle",
    "BillingCycleError",
    "CycleRangeError",
    "CycleSearchError",
    "Interval",
    "InvalidIntervalError",
    "UndefinedPreviousCycleError",
]
