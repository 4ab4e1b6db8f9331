"""
Conversion from fetched responses to cluster records.

Responses are validated once here, at the fetch boundary, and converted
to the internal dataclasses. Anything that does not match the schema
raises ClusterDataShapeError instead of letting missing values flow into
the aggregator.

Two entry points:
- parse_cluster_payload: flat {"nodes", "shards", "indices"} payload
- parse_elasticsearch_responses: raw _nodes, _nodes/stats,
  _cluster/state and _stats responses
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from clusterview.errors import ClusterDataShapeError
from clusterview.fetch.schemas import (
    ClusterPayload,
    ESClusterStateResponse,
    ESIndexStats,
    ESIndicesStatsResponse,
    ESNodesInfoResponse,
    ESNodesStatsResponse,
    ESShardRouting,
    ESShardStats,
)
from clusterview.types import (
    ClusterData,
    IndexSummary,
    NodeRecord,
    NodeRole,
    ShardRecord,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_response(model: type[ModelT], raw: Any, source: str) -> ModelT:
    """
    Validate a raw response against a schema.

    Args:
        model: Pydantic model to validate against
        raw: Decoded JSON
        source: Name of the response, used in the error

    Raises:
        ClusterDataShapeError: If the response does not match
    """
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise ClusterDataShapeError(source, e.errors()) from e


def parse_roles(roles: Iterable[str]) -> frozenset[NodeRole]:
    """
    Map role names to NodeRole.

    Tiered data roles (data_hot, data_content, ...) count as data.
    Roles outside the known set are dropped.
    """
    parsed: set[NodeRole] = set()
    for role in roles:
        name = role.strip().lower()
        if name.startswith("data_"):
            name = NodeRole.DATA.value
        try:
            parsed.add(NodeRole(name))
        except ValueError:
            logger.debug(f"Ignoring unknown node role {role!r}")
    return frozenset(parsed)


def parse_cluster_payload(raw: Mapping[str, Any]) -> ClusterData:
    """
    Convert a flat cluster payload into records.

    Args:
        raw: Decoded JSON with "nodes", "shards" and "indices" lists

    Returns:
        ClusterData with node, shard and index records

    Raises:
        ClusterDataShapeError: On malformed payload
    """
    payload = validate_response(ClusterPayload, raw, "cluster payload")

    nodes = tuple(
        NodeRecord(
            id=n.id,
            name=n.name,
            roles=parse_roles(n.roles),
            ip=n.ip,
            heap_used=n.heap_used,
            heap_max=n.heap_max,
            disk_used=n.disk_used,
            disk_total=n.disk_total,
            is_master=n.is_master,
            is_master_eligible=n.is_master_eligible,
        )
        for n in payload.nodes
    )
    shards = tuple(
        ShardRecord(
            index=s.index,
            shard_id=s.shard,
            primary=s.primary,
            state=s.state,
            node=s.node,
            doc_count=s.docs or 0,
            size_bytes=s.store or 0,
            relocating_node=s.relocating_node,
        )
        for s in payload.shards
    )
    indices = tuple(
        IndexSummary(
            name=i.name,
            health=i.health,
            status=i.status,
            primary_shard_count=i.primary_shards,
            replica_shard_count=i.replica_shards,
            docs_count=i.docs_count,
            store_size_bytes=i.store_size,
        )
        for i in payload.indices
    )
    return ClusterData(nodes=nodes, shards=shards, indices=indices)


# =============================================================================
# Raw Elasticsearch responses
# =============================================================================


def _nodes_from_es(
    info: ESNodesInfoResponse,
    stats: ESNodesStatsResponse,
    master_node_id: str | None,
) -> tuple[NodeRecord, ...]:
    records: list[NodeRecord] = []
    for node_id, node in info.nodes.items():
        node_stats = stats.nodes.get(node_id)
        heap_used = heap_max = disk_total = disk_available = 0
        if node_stats is not None:
            heap_used = node_stats.jvm.mem.heap_used_in_bytes
            heap_max = node_stats.jvm.mem.heap_max_in_bytes
            disk_total = node_stats.fs.total.total_in_bytes
            disk_available = node_stats.fs.total.available_in_bytes
        else:
            logger.debug(f"No stats for node {node_id}, reporting zero usage")

        roles = parse_roles(node.roles)
        records.append(
            NodeRecord(
                id=node_id,
                name=node.name or node_id,
                roles=roles,
                ip=node.ip,
                heap_used=heap_used,
                heap_max=heap_max,
                disk_used=max(disk_total - disk_available, 0),
                disk_total=disk_total,
                is_master=master_node_id is not None and master_node_id == node_id,
                is_master_eligible=NodeRole.MASTER in roles,
            )
        )
    return tuple(records)


def _match_shard_stats(
    copy: ESShardRouting, candidates: list[ESShardStats]
) -> ESShardStats | None:
    for candidate in candidates:
        routing = candidate.routing
        if routing is not None and routing.node == copy.node and routing.primary == copy.primary:
            return candidate
    # Older responses carry no routing block; fall back to the first copy
    if candidates and all(c.routing is None for c in candidates):
        return candidates[0]
    return None


def _shards_from_es(
    state: ESClusterStateResponse,
    indices_stats: ESIndicesStatsResponse,
) -> tuple[ShardRecord, ...]:
    records: list[ShardRecord] = []
    for index_name, routing in state.routing_table.indices.items():
        index_stats = indices_stats.indices.get(index_name)
        for shard_num, copies in routing.shards.items():
            candidates = index_stats.shards.get(shard_num, []) if index_stats else []
            for copy in copies:
                matched = _match_shard_stats(copy, candidates) if copy.node else None
                records.append(
                    ShardRecord(
                        index=index_name,
                        shard_id=int(shard_num),
                        primary=copy.primary,
                        state=copy.state,
                        node=copy.node,
                        doc_count=matched.docs.count if matched else 0,
                        size_bytes=matched.store.size_in_bytes if matched else 0,
                        relocating_node=copy.relocating_node,
                    )
                )
    return tuple(records)


def _indices_from_es(
    indices_stats: ESIndicesStatsResponse,
    state: ESClusterStateResponse,
) -> tuple[IndexSummary, ...]:
    summaries: list[IndexSummary] = []
    for index_name, stats in indices_stats.indices.items():
        primaries, replicas = _shard_counts(index_name, stats, state)
        summaries.append(
            IndexSummary(
                name=index_name,
                health=stats.health,
                status=stats.status,
                primary_shard_count=primaries,
                replica_shard_count=replicas,
                docs_count=stats.primaries.docs.count,
                store_size_bytes=stats.primaries.store.size_in_bytes,
            )
        )
    return tuple(summaries)


def _shard_counts(
    index_name: str,
    stats: ESIndexStats,
    state: ESClusterStateResponse,
) -> tuple[int, int]:
    routing = state.routing_table.indices.get(index_name)
    if routing is not None:
        copies = [copy for shard in routing.shards.values() for copy in shard]
        primaries = sum(1 for copy in copies if copy.primary)
        return primaries, len(copies) - primaries
    # Closed indices have no routing entry; count what the stats report
    return len(stats.shards), 0


def parse_elasticsearch_responses(
    nodes_info: Mapping[str, Any],
    nodes_stats: Mapping[str, Any],
    cluster_state: Mapping[str, Any],
    indices_stats: Mapping[str, Any],
) -> ClusterData:
    """
    Convert raw Elasticsearch responses into records.

    Args:
        nodes_info: GET /_nodes
        nodes_stats: GET /_nodes/stats
        cluster_state: GET /_cluster/state/master_node,routing_table
        indices_stats: GET /_stats?level=shards

    Returns:
        ClusterData with node, shard and index records

    Raises:
        ClusterDataShapeError: If any response is malformed
    """
    info = validate_response(ESNodesInfoResponse, nodes_info, "_nodes")
    stats = validate_response(ESNodesStatsResponse, nodes_stats, "_nodes/stats")
    state = validate_response(ESClusterStateResponse, cluster_state, "_cluster/state")
    istats = validate_response(ESIndicesStatsResponse, indices_stats, "_stats")

    return ClusterData(
        nodes=_nodes_from_es(info, stats, state.master_node),
        shards=_shards_from_es(state, istats),
        indices=_indices_from_es(istats, state),
    )
