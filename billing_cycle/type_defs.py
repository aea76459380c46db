# File: type_defs.py
"""Type definitions for billing_cycle.

TypedDicts describing the plain-dict shapes accepted at the package boundary,
e.g. subscription rows loaded by a caller's persistence layer.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime
from typing import TYPE_CHECKING, TypedDict

if TYPE_CHECKING:
    from .engines.cycle_engine import Interval


# Zero-argument callable returning the current zone-aware datetime
Clock = Callable[[], datetime]


class CycleConfig(TypedDict, total=False):
    """Configuration for BillingCycle.from_config().

    Both keys are required in practice; total=False keeps partially built
    rows type-checkable until validation.
    """

    created_at: str | date | datetime  # ISO string or date/datetime anchor
    interval: str | Interval  # "1 month", "2 weeks", or an Interval
