"""
Last-known-good topology per cluster.

ClusterStateStore owns the published snapshot of one cluster:
- A successful fetch builds a new snapshot and replaces the published
  one in a single assignment, together with its refresh tick
- A failed fetch leaves the published snapshot untouched and reports
  the failure as a FAILED outcome
- Every fetch carries a generation token; a newer fetch or a refresh
  invalidation makes older tokens stale, and stale results are dropped
  as SUPERSEDED instead of overwriting newer state

Readers always see the last complete snapshot, including while a fetch
is in flight.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from clusterview.protocols import ClusterFetcher
from clusterview.refresh.clock import RefreshClock, wall_clock_ms
from clusterview.topology import build_topology
from clusterview.types import ClusterData, ClusterTopologySnapshot

logger = logging.getLogger(__name__)


class FetchStatus(str, Enum):
    """Result of applying one fetch."""

    OK = "ok"
    FAILED = "failed"
    SUPERSEDED = "superseded"


@dataclass(frozen=True)
class PublishedTopology:
    """
    Snapshot and the tick it was published at.

    Attributes:
        snapshot: The topology.
        refreshed_at: Refresh tick of the fetch that produced it, None
            for the initial empty snapshot.
    """

    snapshot: ClusterTopologySnapshot
    refreshed_at: int | None = None


@dataclass(frozen=True)
class FetchOutcome:
    """
    Tagged result of a fetch.

    Attributes:
        status: OK, FAILED or SUPERSEDED.
        published: What readers see after this fetch.
        error: Collaborator error message when FAILED.
    """

    status: FetchStatus
    published: PublishedTopology
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == FetchStatus.OK

    @property
    def snapshot(self) -> ClusterTopologySnapshot:
        return self.published.snapshot


class ClusterStateStore:
    """
    Holds the last-known-good snapshot for one cluster.

    Implements CacheInvalidator so a RefreshClock can mark it stale.

    Example:
        store = ClusterStateStore("prod", clock=clock)
        clock.add_invalidator(store)

        outcome = await store.refresh(fetcher)
        if not outcome.ok:
            print(f"Refresh failed: {outcome.error}")
        store.snapshot  # last good snapshot either way
    """

    def __init__(self, cluster_id: str, clock: RefreshClock | None = None) -> None:
        """
        Initialize with an empty snapshot.

        Args:
            cluster_id: Cluster this store holds, also its invalidation scope
            clock: Refresh clock whose tick is stamped on each publish
        """
        self.cluster_id = cluster_id
        self._clock = clock
        self._published = PublishedTopology(snapshot=ClusterTopologySnapshot.empty())
        self._generation = 0
        self._stale = True
        self._last_error: str | None = None

    @property
    def published(self) -> PublishedTopology:
        return self._published

    @property
    def snapshot(self) -> ClusterTopologySnapshot:
        return self._published.snapshot

    @property
    def refreshed_at(self) -> int | None:
        return self._published.refreshed_at

    @property
    def is_stale(self) -> bool:
        """True until a fetch succeeds after the last invalidation."""
        return self._stale

    @property
    def last_error(self) -> str | None:
        return self._last_error

    def invalidate(self, scopes: Sequence[str] | None = None) -> None:
        """Mark stale and supersede in-flight fetches if the scope matches."""
        if scopes is not None and self.cluster_id not in scopes:
            return
        self._generation += 1
        self._stale = True
        logger.debug(f"Invalidated cluster {self.cluster_id} (generation {self._generation})")

    def begin_fetch(self) -> int:
        """
        Start a fetch.

        Returns:
            Generation token to pass to apply() or record_failure()
        """
        self._generation += 1
        return self._generation

    def _is_current(self, token: int) -> bool:
        if token != self._generation:
            logger.debug(
                f"Dropping result for {self.cluster_id}: token {token} "
                f"superseded by {self._generation}"
            )
            return False
        return True

    def apply(self, token: int, data: ClusterData) -> FetchOutcome:
        """
        Publish the result of a fetch.

        Args:
            token: Token from begin_fetch()
            data: Fetched records

        Returns:
            OK with the new snapshot, or SUPERSEDED if the token is stale
        """
        if not self._is_current(token):
            return FetchOutcome(FetchStatus.SUPERSEDED, self._published)

        snapshot = build_topology(data.nodes, data.shards, data.indices)
        refreshed_at = self._clock.mark_fetched() if self._clock else wall_clock_ms()
        self._published = PublishedTopology(snapshot=snapshot, refreshed_at=refreshed_at)
        self._stale = False
        self._last_error = None
        return FetchOutcome(FetchStatus.OK, self._published)

    def record_failure(self, token: int, error: BaseException | str) -> FetchOutcome:
        """
        Record a failed fetch, keeping the published snapshot.

        Returns:
            FAILED with the error message, or SUPERSEDED if the token is stale
        """
        if not self._is_current(token):
            return FetchOutcome(FetchStatus.SUPERSEDED, self._published)

        message = str(error) or type(error).__name__
        self._last_error = message
        logger.warning(f"Fetch failed for cluster {self.cluster_id}: {message}")
        return FetchOutcome(FetchStatus.FAILED, self._published, error=message)

    async def refresh(self, fetcher: ClusterFetcher) -> FetchOutcome:
        """
        Run one fetch through a collaborator and publish the result.

        Collaborator exceptions become a FAILED outcome; they are not
        raised to the caller.
        """
        token = self.begin_fetch()
        try:
            data = await fetcher.fetch(self.cluster_id)
        except Exception as e:
            return self.record_failure(token, e)
        return self.apply(token, data)
