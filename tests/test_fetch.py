"""
Tests for the fetch boundary.

These tests verify the parsers correctly:
- Convert the flat payload and raw Elasticsearch responses to records
- Normalise shard states and node roles
- Raise ClusterDataShapeError (with the failing source) on bad shapes
"""

import pytest

from clusterview.errors import ClusterDataShapeError
from clusterview.fetch import (
    parse_cluster_payload,
    parse_elasticsearch_responses,
    parse_roles,
)
from clusterview.types import IndexStatus, NodeRole, ShardState


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def payload():
    """Flat payload with camelCase keys."""
    return {
        "nodes": [
            {
                "id": "n1",
                "name": "es-1",
                "ip": "10.0.0.1",
                "roles": ["master", "data_hot", "ingest"],
                "heapUsed": 512,
                "heapMax": 1024,
                "diskUsed": 10,
                "diskTotal": 100,
                "isMaster": True,
                "isMasterEligible": True,
            },
            {"id": "n2", "name": "es-2", "roles": ["data", "transform"]},
        ],
        "shards": [
            {"index": "logs", "shard": 0, "primary": True, "state": "started", "node": "n1", "docs": 7},
            {"index": "logs", "shard": 0, "primary": False, "state": "UNASSIGNED"},
            {
                "index": "logs",
                "shard": 1,
                "primary": True,
                "state": "RELOCATING",
                "node": "n1",
                "relocatingNode": "n2",
            },
        ],
        "indices": [
            {"name": "logs", "health": "yellow", "status": "open", "primaryShards": 2, "replicaShards": 2},
            {"name": "old", "status": "close"},
        ],
    }


@pytest.fixture
def es_responses():
    """Minimal raw Elasticsearch responses for a two-node cluster."""
    nodes_info = {
        "nodes": {
            "abc": {"name": "es-1", "ip": "10.0.0.1", "roles": ["master", "data_content"]},
            "def": {"name": "es-2", "ip": "10.0.0.2", "roles": ["data"]},
        }
    }
    nodes_stats = {
        "nodes": {
            "abc": {
                "jvm": {"mem": {"heap_used_in_bytes": 300, "heap_max_in_bytes": 1000}},
                "fs": {"total": {"total_in_bytes": 1000, "available_in_bytes": 600}},
            }
        }
    }
    cluster_state = {
        "cluster_name": "prod",
        "master_node": "abc",
        "routing_table": {
            "indices": {
                "logs": {
                    "shards": {
                        "0": [
                            {"state": "STARTED", "primary": True, "node": "abc"},
                            {"state": "STARTED", "primary": False, "node": "def"},
                        ],
                        "1": [
                            {"state": "STARTED", "primary": True, "node": "def"},
                            {"state": "UNASSIGNED", "primary": False, "node": None},
                        ],
                    }
                }
            }
        },
    }
    indices_stats = {
        "indices": {
            "logs": {
                "health": "yellow",
                "status": "open",
                "primaries": {"docs": {"count": 30}, "store": {"size_in_bytes": 2048}},
                "shards": {
                    "0": [
                        {"docs": {"count": 10}, "routing": {"primary": True, "node": "abc"}},
                        {"docs": {"count": 11}, "routing": {"primary": False, "node": "def"}},
                    ],
                    "1": [{"docs": {"count": 20}, "store": {"size_in_bytes": 512}}],
                },
            },
            "archive": {"health": "red", "status": "close"},
        }
    }
    return nodes_info, nodes_stats, cluster_state, indices_stats


# =============================================================================
# Flat payload
# =============================================================================


class TestClusterPayload:
    def test_nodes(self, payload):
        data = parse_cluster_payload(payload)
        n1, n2 = data.nodes
        assert n1.id == "n1"
        assert n1.roles == frozenset({NodeRole.MASTER, NodeRole.DATA, NodeRole.INGEST})
        assert n1.heap_percent == 50.0
        assert n1.is_master
        assert n2.roles == frozenset({NodeRole.DATA})
        assert n2.ip is None

    def test_shards(self, payload):
        data = parse_cluster_payload(payload)
        started, unassigned, relocating = data.shards
        assert started.state == ShardState.STARTED
        assert started.doc_count == 7
        assert unassigned.node is None
        assert unassigned.doc_count == 0
        assert relocating.relocating_node == "n2"

    def test_indices(self, payload):
        data = parse_cluster_payload(payload)
        logs, old = data.indices
        assert logs.shard_count == 4
        assert old.status == IndexStatus.CLOSE
        assert old.health == "yellow"

    def test_empty_payload(self):
        data = parse_cluster_payload({})
        assert data.nodes == ()
        assert data.shards == ()
        assert data.indices == ()

    def test_missing_required_field(self, payload):
        del payload["shards"][0]["primary"]
        with pytest.raises(ClusterDataShapeError) as exc_info:
            parse_cluster_payload(payload)
        assert exc_info.value.source == "cluster payload"
        assert "shards.0.primary" in str(exc_info.value)

    def test_started_shard_without_node(self, payload):
        del payload["shards"][0]["node"]
        with pytest.raises(ClusterDataShapeError, match="must reference a node"):
            parse_cluster_payload(payload)

    def test_unassigned_shard_with_node(self, payload):
        payload["shards"][1]["node"] = "n2"
        with pytest.raises(ClusterDataShapeError, match="must not reference a node"):
            parse_cluster_payload(payload)

    def test_unknown_state(self, payload):
        payload["shards"][0]["state"] = "MOVING"
        with pytest.raises(ClusterDataShapeError):
            parse_cluster_payload(payload)

    def test_negative_shard_number(self, payload):
        payload["shards"][0]["shard"] = -1
        with pytest.raises(ClusterDataShapeError):
            parse_cluster_payload(payload)

    def test_not_an_object(self):
        with pytest.raises(ClusterDataShapeError):
            parse_cluster_payload(["nodes"])


class TestParseRoles:
    def test_tiered_data_roles(self):
        assert parse_roles(["data_hot", "data_warm"]) == frozenset({NodeRole.DATA})

    def test_unknown_roles_dropped(self):
        assert parse_roles(["transform", " Master "]) == frozenset({NodeRole.MASTER})

    def test_empty(self):
        assert parse_roles([]) == frozenset()


# =============================================================================
# Raw Elasticsearch responses
# =============================================================================


class TestElasticsearchResponses:
    def test_nodes(self, es_responses):
        data = parse_elasticsearch_responses(*es_responses)
        abc, def_ = data.nodes

        assert abc.id == "abc"
        assert abc.is_master
        assert abc.is_master_eligible
        assert abc.heap_used == 300
        assert abc.disk_used == 400
        assert abc.disk_total == 1000

        # No stats entry
        assert def_.heap_max == 0
        assert not def_.is_master
        assert def_.is_data_node

    def test_shards(self, es_responses):
        data = parse_elasticsearch_responses(*es_responses)
        assert len(data.shards) == 4

        by_key = {(s.shard_id, s.primary): s for s in data.shards}
        assert by_key[(0, True)].doc_count == 10
        assert by_key[(0, False)].doc_count == 11
        assert by_key[(1, True)].doc_count == 20
        assert by_key[(1, True)].size_bytes == 512
        assert by_key[(1, False)].state == ShardState.UNASSIGNED
        assert by_key[(1, False)].doc_count == 0

    def test_indices(self, es_responses):
        data = parse_elasticsearch_responses(*es_responses)
        logs, archive = data.indices

        assert logs.primary_shard_count == 2
        assert logs.replica_shard_count == 2
        assert logs.docs_count == 30
        assert logs.store_size_bytes == 2048
        assert archive.status == IndexStatus.CLOSE
        assert archive.shard_count == 0

    @pytest.mark.parametrize("key", ["x", "-1", "\u00b2", "\u0663"])
    def test_bad_routing_shard_key(self, es_responses, key):
        nodes_info, nodes_stats, cluster_state, indices_stats = es_responses
        cluster_state["routing_table"]["indices"]["logs"]["shards"][key] = []
        with pytest.raises(ClusterDataShapeError) as exc_info:
            parse_elasticsearch_responses(nodes_info, nodes_stats, cluster_state, indices_stats)
        assert exc_info.value.source == "_cluster/state"

    def test_bad_nodes_stats(self, es_responses):
        nodes_info, nodes_stats, cluster_state, indices_stats = es_responses
        nodes_stats["nodes"]["abc"]["jvm"]["mem"]["heap_used_in_bytes"] = "lots"
        with pytest.raises(ClusterDataShapeError) as exc_info:
            parse_elasticsearch_responses(nodes_info, nodes_stats, cluster_state, indices_stats)
        assert exc_info.value.source == "_nodes/stats"
        assert exc_info.value.errors
