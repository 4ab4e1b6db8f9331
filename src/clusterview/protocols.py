"""
Protocol definitions for collaborators around the core.

The aggregation and admission code is pure. Everything that touches the
outside world is reached through these protocols so it can be provided
by any implementation (HTTP client, test double, sqlite file):

- ClusterFetcher: returns node/shard/index records for a cluster
- ShardMover: performs an approved shard relocation
- IndexCommandExecutor: applies one bulk operation to one index
- PreferenceStore: string key/value persistence
- CacheInvalidator: receives refresh scopes from the RefreshClock
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from clusterview.types import ClusterData

if TYPE_CHECKING:
    from clusterview.admission.types import BulkOperation
    from clusterview.dispatch import CommandResult, RelocationCommand


@runtime_checkable
class ClusterFetcher(Protocol):
    """
    Protocol for fetching cluster state.

    Implementations may return empty lists and dangling shard -> node
    references; the aggregator tolerates both. Failures are raised and
    turned into a FAILED FetchOutcome by ClusterStateStore.
    """

    async def fetch(self, cluster_id: str) -> ClusterData:
        """
        Fetch the current nodes, shards and indices of a cluster.

        Args:
            cluster_id: Identifier of the cluster to fetch.

        Returns:
            ClusterData with the fetched records.
        """
        ...


@runtime_checkable
class ShardMover(Protocol):
    """Protocol for performing an approved relocation on the cluster."""

    async def relocate(self, command: "RelocationCommand") -> "CommandResult":
        """
        Move one shard.

        Args:
            command: The (index, shard, from, to) tuple to execute.

        Returns:
            CommandResult with success flag and optional message.
        """
        ...


@runtime_checkable
class IndexCommandExecutor(Protocol):
    """Protocol for applying a bulk operation to a single index."""

    async def execute(self, operation: "BulkOperation", index: str) -> "CommandResult":
        """
        Apply one operation to one index.

        Args:
            operation: The bulk operation.
            index: Index name.

        Returns:
            CommandResult with success flag and optional message.
        """
        ...


@runtime_checkable
class PreferenceStore(Protocol):
    """
    Protocol for string key/value persistence.

    Implementations raise PreferenceStoreError when the backing store is
    unavailable.
    """

    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is missing."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store a value, overwriting any previous one."""
        ...


@runtime_checkable
class CacheInvalidator(Protocol):
    """Protocol for anything holding data a refresh should invalidate."""

    def invalidate(self, scopes: Sequence[str] | None = None) -> None:
        """
        Invalidate cached data.

        Args:
            scopes: Scope keys to invalidate, or None for everything.
        """
        ...
