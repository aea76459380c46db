# File: utils/__init__.py
"""Pure Python utilities for billing_cycle.

Submodules:
    - dt_utils: Timezone handling, parsing, calendar-safe interval arithmetic

Usage:
    from . import dt_utils
"""

from . import dt_utils

__all__ = ["dt_utils"]
