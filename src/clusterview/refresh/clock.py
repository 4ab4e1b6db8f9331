"""
RefreshClock: shared refresh tick for re-fetching and sampling.

The clock is a small state machine:

    IDLE        interval is 0, nothing fires on its own
    SCHEDULED   interval n > 0, the timer fires a refresh every n ms
    REFRESHING  a refresh was triggered less than settle_window_ms ago

trigger_refresh() moves to REFRESHING, invalidates cached data for the
given scope (everything when no scope is given), and stamps a new
last_refresh_time. After the settle window the clock falls back to
IDLE or SCHEDULED, whichever the current interval implies. Triggering
again while REFRESHING restarts the settle window; refreshes are never
queued.

last_refresh_time is strictly increasing and is the tick observed by
TimeSeriesTracker.

The selected interval is persisted through a PreferenceStore when it is
one of REFRESH_INTERVALS. A missing stored value, one that is not a
listed interval, or an unavailable store falls back to the configured
default instead of failing startup.

Time is read through an injectable millisecond clock so the state
machine can be driven synchronously in tests; run() wraps tick() in an
asyncio loop for live use.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable, Sequence
from enum import Enum

from clusterview.config import (
    DEFAULT_REFRESH_INTERVAL_MS,
    REFRESH_INTERVAL_KEY,
    SETTLE_WINDOW_MS,
    ClusterViewSettings,
)
from clusterview.errors import InvalidIntervalError
from clusterview.protocols import CacheInvalidator, PreferenceStore

logger = logging.getLogger(__name__)

REFRESH_INTERVALS: dict[str, int] = {
    "off": 0,
    "5s": 5000,
    "10s": 10000,
    "15s": 15000,
    "30s": 30000,
    "1m": 60000,
    "2m": 120000,
    "5m": 300000,
}
"""Interval choices offered to operators, in milliseconds."""

DEFAULT_PREFERENCE_KEY = REFRESH_INTERVAL_KEY


def wall_clock_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


class RefreshState(str, Enum):
    """States of the refresh clock."""

    IDLE = "idle"
    SCHEDULED = "scheduled"
    REFRESHING = "refreshing"


def parse_interval(value: str | None) -> int | None:
    """
    Parse a stored interval string.

    Returns:
        The interval in ms, or None if the value is missing, not an
        integer, or negative.
    """
    if value is None:
        return None
    try:
        parsed = int(value.strip())
    except ValueError:
        return None
    if parsed < 0:
        return None
    return parsed


class RefreshClock:
    """
    Shared refresh clock with persisted interval.

    Example:
        store = ClusterStateStore("prod")
        clock = RefreshClock(preferences=prefs, invalidators=[store])

        clock.set_interval(30000)       # SCHEDULED, persisted
        tick = clock.trigger_refresh()  # REFRESHING for 500 ms
        clock.last_refresh_time == tick

        # Live use: fire the timer and fetch on every refresh
        await clock.run(on_refresh=lambda tick: store.refresh(fetcher))
    """

    def __init__(
        self,
        preferences: PreferenceStore | None = None,
        invalidators: Iterable[CacheInvalidator] = (),
        *,
        default_interval_ms: int = DEFAULT_REFRESH_INTERVAL_MS,
        settle_window_ms: int = SETTLE_WINDOW_MS,
        preference_key: str = DEFAULT_PREFERENCE_KEY,
        now: Callable[[], int] = wall_clock_ms,
    ) -> None:
        """
        Initialize the clock and load the persisted interval.

        Args:
            preferences: Store holding the selected interval (optional)
            invalidators: Caches to invalidate on each refresh
            default_interval_ms: Interval used when nothing valid is stored
            settle_window_ms: How long REFRESHING lasts after a trigger
            preference_key: Key under which the interval is stored
            now: Millisecond clock
        """
        self._preferences = preferences
        self._invalidators: list[CacheInvalidator] = list(invalidators)
        self._default_interval_ms = default_interval_ms
        self._settle_window_ms = settle_window_ms
        self._preference_key = preference_key
        self._now = now

        self._interval_ms = self._load_interval()
        self._refreshing = False
        self._settle_deadline: int | None = None
        self._last_refresh_time: int | None = None
        self._next_fire_at: int | None = self._schedule_from(self._now())
        self._shutdown = asyncio.Event()

    @classmethod
    def from_settings(
        cls,
        settings: ClusterViewSettings,
        preferences: PreferenceStore | None = None,
        invalidators: Iterable[CacheInvalidator] = (),
        now: Callable[[], int] = wall_clock_ms,
    ) -> "RefreshClock":
        return cls(
            preferences=preferences,
            invalidators=invalidators,
            default_interval_ms=settings.default_refresh_interval_ms,
            settle_window_ms=settings.settle_window_ms,
            preference_key=settings.refresh_interval_key,
            now=now,
        )

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _load_interval(self) -> int:
        if self._preferences is None:
            return self._default_interval_ms
        try:
            stored = self._preferences.get(self._preference_key)
        except Exception as e:
            logger.warning(f"Could not read refresh interval, using default: {e}")
            return self._default_interval_ms

        parsed = parse_interval(stored)
        if parsed is None or parsed not in REFRESH_INTERVALS.values():
            if stored is not None:
                logger.warning(
                    f"Ignoring invalid stored refresh interval {stored!r}, "
                    f"using {self._default_interval_ms}ms"
                )
            return self._default_interval_ms
        return parsed

    def _persist(self, interval_ms: int) -> None:
        if self._preferences is None:
            return
        if interval_ms not in REFRESH_INTERVALS.values():
            logger.debug(f"Not persisting unlisted refresh interval {interval_ms}ms")
            return
        try:
            self._preferences.set(self._preference_key, str(interval_ms))
        except Exception as e:
            logger.warning(f"Could not persist refresh interval {interval_ms}ms: {e}")

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    def _settle(self) -> None:
        if self._refreshing and self._settle_deadline is not None:
            if self._now() >= self._settle_deadline:
                self._refreshing = False
                self._settle_deadline = None
                logger.debug("Refresh settled")

    def _schedule_from(self, start: int) -> int | None:
        if self._interval_ms == 0:
            return None
        return start + self._interval_ms

    def _next_tick(self) -> int:
        tick = self._now()
        if self._last_refresh_time is not None and tick <= self._last_refresh_time:
            tick = self._last_refresh_time + 1
        self._last_refresh_time = tick
        return tick

    @property
    def state(self) -> RefreshState:
        self._settle()
        if self._refreshing:
            return RefreshState.REFRESHING
        if self._interval_ms == 0:
            return RefreshState.IDLE
        return RefreshState.SCHEDULED

    @property
    def is_refreshing(self) -> bool:
        return self.state == RefreshState.REFRESHING

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @property
    def last_refresh_time(self) -> int | None:
        """Tick of the most recent refresh or completed fetch."""
        return self._last_refresh_time

    @property
    def next_fire_at(self) -> int | None:
        """When the timer fires next, or None when IDLE."""
        return self._next_fire_at

    def add_invalidator(self, invalidator: CacheInvalidator) -> None:
        self._invalidators.append(invalidator)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def set_interval(self, interval_ms: int) -> None:
        """
        Change the refresh interval and persist it.

        0 disables the timer (IDLE). A positive value schedules the timer
        to fire interval_ms from now. While REFRESHING, the new interval
        decides which state the clock settles back into.

        Only values from REFRESH_INTERVALS are persisted. Any other
        non-negative value applies to this clock only and is not restored
        on the next load.

        Raises:
            InvalidIntervalError: If interval_ms is negative or not an int
        """
        if isinstance(interval_ms, bool) or not isinstance(interval_ms, int) or interval_ms < 0:
            raise InvalidIntervalError(interval_ms)

        self._interval_ms = interval_ms
        self._next_fire_at = self._schedule_from(self._now())
        self._persist(interval_ms)
        logger.debug(f"Refresh interval set to {interval_ms}ms")

    def trigger_refresh(self, scope: str | Sequence[str] | None = None) -> int:
        """
        Start a refresh.

        Args:
            scope: Cache scope key(s) to invalidate, or None for everything

        Returns:
            The new last_refresh_time tick
        """
        self._settle()
        now = self._now()
        if self._refreshing:
            logger.debug("Refresh triggered while refreshing, restarting settle window")

        self._refreshing = True
        self._settle_deadline = now + self._settle_window_ms

        scopes: list[str] | None
        if scope is None:
            scopes = None
        elif isinstance(scope, str):
            scopes = [scope]
        else:
            scopes = list(scope)
        for invalidator in self._invalidators:
            invalidator.invalidate(scopes)

        tick = self._next_tick()
        self._next_fire_at = self._schedule_from(now)
        return tick

    def mark_fetched(self) -> int:
        """
        Record a completed fetch as a new tick.

        Called by the snapshot store when it publishes, so the snapshot
        and last_refresh_time always change together.
        """
        return self._next_tick()

    def tick(self) -> bool:
        """
        Fire the timer if it is due.

        Returns:
            True if a refresh was triggered
        """
        self._settle()
        if self._next_fire_at is None or self._now() < self._next_fire_at:
            return False
        self.trigger_refresh()
        return True

    # -------------------------------------------------------------------------
    # Async driver
    # -------------------------------------------------------------------------

    async def run(
        self,
        on_refresh: Callable[[int], Awaitable[object]] | None = None,
        poll_seconds: float = 0.1,
    ) -> None:
        """
        Drive the timer until stop() is called.

        Args:
            on_refresh: Awaited with the tick after each timer refresh
                (typically starts a fetch)
            poll_seconds: Upper bound on the sleep between timer checks
        """
        self._shutdown.clear()
        while not self._shutdown.is_set():
            if self.tick() and on_refresh is not None:
                try:
                    await on_refresh(self._last_refresh_time)
                except Exception as e:
                    # Keep ticking; the failure belongs to the collaborator
                    logger.warning(f"Refresh handler failed: {e}")

            try:
                await asyncio.wait_for(
                    self._shutdown.wait(),
                    timeout=self._sleep_seconds(poll_seconds),
                )
            except asyncio.TimeoutError:
                continue

    def _sleep_seconds(self, poll_seconds: float) -> float:
        if self._next_fire_at is None:
            return poll_seconds
        remaining = (self._next_fire_at - self._now()) / 1000
        return max(0.0, min(poll_seconds, remaining))

    def stop(self) -> None:
        """Signal run() to exit."""
        self._shutdown.set()
