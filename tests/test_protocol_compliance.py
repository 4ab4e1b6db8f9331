"""
Protocol compliance tests.

Verifies that the concrete collaborators shipped with clusterview
implement the protocols from clusterview.protocols, and that simple
test doubles do too.
"""

import pytest

from clusterview.dispatch import CommandResult, RelocationCommand
from clusterview.protocols import (
    CacheInvalidator,
    ClusterFetcher,
    IndexCommandExecutor,
    PreferenceStore,
    ShardMover,
)
from clusterview.state import ClusterStateStore
from clusterview.types import ClusterData


class StaticFetcher:
    async def fetch(self, cluster_id: str) -> ClusterData:
        return ClusterData()


class RecordingMover:
    def __init__(self) -> None:
        self.commands: list[RelocationCommand] = []

    async def relocate(self, command: RelocationCommand) -> CommandResult:
        self.commands.append(command)
        return CommandResult(success=True)


class NoopExecutor:
    async def execute(self, operation, index: str) -> CommandResult:
        return CommandResult(success=True)


class TestProtocolCompliance:
    def test_state_store_is_cache_invalidator(self):
        assert isinstance(ClusterStateStore("prod"), CacheInvalidator)

    def test_fetcher(self):
        assert isinstance(StaticFetcher(), ClusterFetcher)

    def test_mover(self):
        assert isinstance(RecordingMover(), ShardMover)

    def test_executor(self):
        assert isinstance(NoopExecutor(), IndexCommandExecutor)

    def test_non_compliant_object(self):
        assert not isinstance(object(), ClusterFetcher)
        assert not isinstance(StaticFetcher(), PreferenceStore)

    @pytest.mark.asyncio
    async def test_store_refresh_with_static_fetcher(self):
        store = ClusterStateStore("prod")
        outcome = await store.refresh(StaticFetcher())
        assert outcome.ok
        assert store.snapshot.shard_count == 0
