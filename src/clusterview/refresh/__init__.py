"""
Refresh scheduling.

RefreshClock produces the shared refresh tick that drives re-fetching
and time-series sampling.
"""

from clusterview.refresh.clock import (
    REFRESH_INTERVALS,
    RefreshClock,
    RefreshState,
    parse_interval,
    wall_clock_ms,
)

__all__ = [
    "REFRESH_INTERVALS",
    "RefreshClock",
    "RefreshState",
    "parse_interval",
    "wall_clock_ms",
]
