"""
Bounded per-metric time series driven by refresh ticks.

TimeSeries is a fixed-capacity FIFO of (timestamp, value) points built on
collections.deque with maxlen, so the oldest point drops automatically
once the buffer is full.

TimeSeriesTracker keeps one series per (entity, metric) key:
- The first value seen for a key seeds two points, a zero baseline one
  second earlier and the real value, so a trend is visible immediately
- Every later distinct refresh tick appends the current value, even if
  it did not change
- A new or changed reset key (e.g. the operator switched tabs) clears
  the series, and the next value reseeds it like a first observation

Timestamps within a series are strictly ascending.
"""

from collections import deque
from collections.abc import Callable, Hashable, Iterator
from dataclasses import dataclass

from clusterview.config import DEFAULT_SERIES_CAPACITY, ClusterViewSettings
from clusterview.refresh.clock import wall_clock_ms
from clusterview.types import ClusterTopologySnapshot

BASELINE_OFFSET_MS = 1000

SeriesKey = tuple[str, str]
"""(entity id, metric name)."""


@dataclass(frozen=True)
class DataPoint:
    """One sample of a metric."""

    timestamp: int
    value: float


class TimeSeries:
    """
    Fixed-size buffer of data points, oldest first.

    Example:
        series = TimeSeries(capacity=3)
        series.append(DataPoint(1000, 1.0))
        series.values()  # [1.0]
    """

    def __init__(self, capacity: int = DEFAULT_SERIES_CAPACITY) -> None:
        """
        Initialize an empty series.

        Args:
            capacity: Maximum number of points kept (default 20)
        """
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._points: deque[DataPoint] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._points.maxlen or 0

    def append(self, point: DataPoint) -> None:
        """Add a point, dropping the oldest when full."""
        self._points.append(point)

    def points(self) -> list[DataPoint]:
        return list(self._points)

    def values(self) -> list[float]:
        return [p.value for p in self._points]

    @property
    def latest(self) -> DataPoint | None:
        return self._points[-1] if self._points else None

    def clear(self) -> None:
        self._points.clear()

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[DataPoint]:
        return iter(self._points)


@dataclass
class _TrackedSeries:
    series: TimeSeries
    seeded: bool = False
    last_tick: int | None = None
    reset_key: Hashable | None = None


class TimeSeriesTracker:
    """
    Samples metric values into bounded series on refresh ticks.

    Each series is owned by this tracker; nothing outside it mutates
    a series, and keys never affect each other.

    Example:
        tracker = TimeSeriesTracker(capacity=20)
        tick = clock.trigger_refresh()
        tracker.observe("node-1", "heap_percent", 41.5, tick)
        tracker.series("node-1", "heap_percent").values()  # [0.0, 41.5]
    """

    def __init__(
        self,
        capacity: int = DEFAULT_SERIES_CAPACITY,
        now: Callable[[], int] = wall_clock_ms,
    ) -> None:
        self.capacity = capacity
        self._now = now
        self._tracked: dict[SeriesKey, _TrackedSeries] = {}

    @classmethod
    def from_settings(
        cls,
        settings: ClusterViewSettings,
        now: Callable[[], int] = wall_clock_ms,
    ) -> "TimeSeriesTracker":
        return cls(capacity=settings.series_capacity, now=now)

    def _entry(self, key: SeriesKey) -> _TrackedSeries:
        entry = self._tracked.get(key)
        if entry is None:
            entry = _TrackedSeries(series=TimeSeries(self.capacity))
            self._tracked[key] = entry
        return entry

    def _timestamp(self, entry: _TrackedSeries) -> int:
        now = self._now()
        latest = entry.series.latest
        if latest is not None and now <= latest.timestamp:
            now = latest.timestamp + 1
        return now

    def observe(
        self,
        entity: str,
        metric: str,
        value: float | None,
        tick: int | None,
        reset_key: Hashable | None = None,
    ) -> TimeSeries:
        """
        Record the current value of a metric for a refresh tick.

        Args:
            entity: Entity id (cluster, node, index)
            metric: Metric name
            value: Current value, or None if not available yet
            tick: Current RefreshClock.last_refresh_time
            reset_key: When given and different from the last reset key
                seen for the series (including none at all), the series
                is cleared first. None leaves the current key in place.

        Returns:
            The series for (entity, metric)
        """
        entry = self._entry((entity, metric))

        if reset_key is not None and reset_key != entry.reset_key:
            entry.series.clear()
            entry.seeded = False
            entry.last_tick = None
            entry.reset_key = reset_key

        if value is None:
            return entry.series

        if not entry.seeded:
            now = self._now()
            entry.series.append(DataPoint(now - BASELINE_OFFSET_MS, 0.0))
            entry.series.append(DataPoint(now, float(value)))
            entry.seeded = True
            entry.last_tick = tick
            return entry.series

        if tick != entry.last_tick:
            entry.series.append(DataPoint(self._timestamp(entry), float(value)))
            entry.last_tick = tick

        return entry.series

    def reset(self, entity: str, metric: str) -> None:
        """Clear one series; the next value reseeds it."""
        entry = self._tracked.get((entity, metric))
        if entry is not None:
            entry.series.clear()
            entry.seeded = False
            entry.last_tick = None

    def series(self, entity: str, metric: str) -> TimeSeries | None:
        entry = self._tracked.get((entity, metric))
        return entry.series if entry else None

    def keys(self) -> list[SeriesKey]:
        return list(self._tracked)

    def observe_snapshot(
        self,
        cluster_id: str,
        snapshot: ClusterTopologySnapshot,
        tick: int | None,
    ) -> None:
        """
        Sample the standard cluster and node metrics from a snapshot.

        Cluster-level series are keyed by cluster_id, node-level series
        by node id.
        """
        for metric, value in cluster_metrics(snapshot).items():
            self.observe(cluster_id, metric, value, tick)
        for topo in snapshot.nodes:
            self.observe(topo.id, "heap_percent", topo.node.heap_percent, tick)
            self.observe(topo.id, "disk_percent", topo.node.disk_percent, tick)


def cluster_metrics(snapshot: ClusterTopologySnapshot) -> dict[str, float]:
    """Cluster-wide values shown as sparklines on the overview."""
    return {
        "nodes": float(len(snapshot.nodes)),
        "indices": float(len(snapshot.indices)),
        "documents": float(sum(i.docs_count for i in snapshot.indices)),
        "shards": float(snapshot.shard_count),
        "unassigned_shards": float(len(snapshot.unassigned)),
    }
