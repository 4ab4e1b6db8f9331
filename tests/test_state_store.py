"""
Tests for the cluster state store.

These tests verify ClusterStateStore correctly:
- Publishes a new snapshot on a successful fetch
- Keeps the last good snapshot when a fetch fails
- Drops results from superseded fetches
- Reacts to invalidation scopes from the refresh clock
"""

from unittest.mock import AsyncMock

import pytest

from clusterview.protocols import CacheInvalidator
from clusterview.refresh import RefreshClock
from clusterview.state import ClusterStateStore, FetchStatus
from clusterview.types import (
    ClusterData,
    NodeRecord,
    NodeRole,
    ShardRecord,
    ShardState,
)


class FakeTime:
    def __init__(self, start: int = 50_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def clock(fake_time):
    return RefreshClock(now=fake_time)


@pytest.fixture
def store(clock):
    store = ClusterStateStore("prod", clock=clock)
    clock.add_invalidator(store)
    return store


@pytest.fixture
def data():
    return ClusterData(
        nodes=(NodeRecord(id="n1", name="es-1", roles=frozenset({NodeRole.DATA})),),
        shards=(ShardRecord("logs", 0, True, ShardState.STARTED, node="n1"),),
    )


@pytest.fixture
def newer_data(data):
    return ClusterData(
        nodes=data.nodes,
        shards=(
            *data.shards,
            ShardRecord("logs", 0, False, ShardState.UNASSIGNED),
        ),
    )


# =============================================================================
# Publishing
# =============================================================================


class TestPublish:
    def test_starts_empty_and_stale(self, store):
        assert store.snapshot.nodes == ()
        assert store.refreshed_at is None
        assert store.is_stale

    def test_apply_publishes(self, store, clock, data):
        token = store.begin_fetch()
        outcome = store.apply(token, data)

        assert outcome.status == FetchStatus.OK
        assert outcome.ok
        assert store.snapshot.find_node("n1").shard_count == 1
        assert not store.is_stale

    def test_refresh_tick_matches_clock(self, store, clock, data):
        outcome = store.apply(store.begin_fetch(), data)
        assert outcome.published.refreshed_at == clock.last_refresh_time
        assert store.refreshed_at == clock.last_refresh_time

    def test_each_publish_gets_newer_tick(self, store, data, newer_data):
        store.apply(store.begin_fetch(), data)
        first = store.refreshed_at
        store.apply(store.begin_fetch(), newer_data)
        assert store.refreshed_at > first

    def test_without_clock(self, data):
        store = ClusterStateStore("prod")
        store.apply(store.begin_fetch(), data)
        assert store.refreshed_at is not None


# =============================================================================
# Failures
# =============================================================================


class TestFailures:
    def test_failure_keeps_last_good_snapshot(self, store, data):
        store.apply(store.begin_fetch(), data)
        before = store.published

        outcome = store.record_failure(store.begin_fetch(), ConnectionError("connection refused"))

        assert outcome.status == FetchStatus.FAILED
        assert outcome.error == "connection refused"
        assert store.published is before
        assert store.last_error == "connection refused"

    def test_failure_message_falls_back_to_type(self, store):
        outcome = store.record_failure(store.begin_fetch(), TimeoutError())
        assert outcome.error == "TimeoutError"

    def test_success_clears_error(self, store, data):
        store.record_failure(store.begin_fetch(), "boom")
        store.apply(store.begin_fetch(), data)
        assert store.last_error is None


# =============================================================================
# Superseded fetches
# =============================================================================


class TestSupersede:
    def test_newer_fetch_supersedes_older(self, store, data, newer_data):
        old_token = store.begin_fetch()
        new_token = store.begin_fetch()

        assert store.apply(new_token, newer_data).ok
        outcome = store.apply(old_token, data)

        assert outcome.status == FetchStatus.SUPERSEDED
        assert store.snapshot.shard_count == 2

    def test_trigger_refresh_supersedes_in_flight(self, store, clock, data):
        token = store.begin_fetch()
        clock.trigger_refresh()

        assert store.is_stale
        assert store.apply(token, data).status == FetchStatus.SUPERSEDED
        assert store.snapshot.nodes == ()

    def test_superseded_failure_not_recorded(self, store):
        token = store.begin_fetch()
        store.begin_fetch()
        outcome = store.record_failure(token, "late error")
        assert outcome.status == FetchStatus.SUPERSEDED
        assert store.last_error is None


class TestInvalidate:
    def test_is_cache_invalidator(self, store):
        assert isinstance(store, CacheInvalidator)

    def test_other_scope_ignored(self, store, clock, data):
        token = store.begin_fetch()
        clock.trigger_refresh("staging")
        assert store.apply(token, data).ok

    def test_own_scope_invalidates(self, store, data):
        store.apply(store.begin_fetch(), data)
        store.invalidate(["staging", "prod"])
        assert store.is_stale


# =============================================================================
# Async refresh through a collaborator
# =============================================================================


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_success(self, store, data):
        fetcher = AsyncMock()
        fetcher.fetch.return_value = data

        outcome = await store.refresh(fetcher)

        fetcher.fetch.assert_awaited_once_with("prod")
        assert outcome.ok
        assert outcome.snapshot is store.snapshot

    @pytest.mark.asyncio
    async def test_refresh_failure_does_not_raise(self, store, data):
        fetcher = AsyncMock()
        fetcher.fetch.return_value = data
        await store.refresh(fetcher)
        good = store.snapshot

        fetcher.fetch.side_effect = RuntimeError("502 Bad Gateway")
        outcome = await store.refresh(fetcher)

        assert outcome.status == FetchStatus.FAILED
        assert outcome.error == "502 Bad Gateway"
        assert store.snapshot is good

    @pytest.mark.asyncio
    async def test_refresh_superseded_mid_flight(self, store, clock, data):
        async def slow_fetch(cluster_id):
            clock.trigger_refresh()
            return data

        fetcher = AsyncMock()
        fetcher.fetch.side_effect = slow_fetch

        outcome = await store.refresh(fetcher)
        assert outcome.status == FetchStatus.SUPERSEDED
