"""
Topology aggregation for cluster snapshots.

This module turns flat node/shard/index lists into a
ClusterTopologySnapshot:
- UNASSIGNED shards go to snapshot.unassigned
- Shards whose node matches a known node (by id, name or ip) are grouped
  under that node by index, ordered by shard id
- Shards referencing a node that is not in the node list are grouped
  under the synthetic unknown-node bucket instead of being dropped

The partition is total: every input shard lands in exactly one bucket.
Nothing here raises on well-typed input, including empty lists.

Also provides the derived views used by shard grid and overview screens
(master-first ordering, shard statistics, problem detection).
"""

import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from clusterview.types import (
    ClusterTopologySnapshot,
    IndexName,
    IndexSummary,
    NodeId,
    NodeRecord,
    NodeRole,
    NodeTopology,
    ShardRecord,
    ShardState,
    unknown_node_record,
)

logger = logging.getLogger(__name__)

PROBLEM_STATES = frozenset(
    {ShardState.UNASSIGNED, ShardState.RELOCATING, ShardState.INITIALIZING}
)


@dataclass(frozen=True)
class ShardStats:
    """Shard counts shown on the shard management overview."""

    total: int
    primary: int
    replica: int
    unassigned: int
    relocating: int
    initializing: int


def build_node_identifier_map(nodes: Iterable[NodeRecord]) -> dict[str, NodeId]:
    """
    Map every identifier a shard may use for a node to that node's id.

    Shards can reference a node by id, name or ip depending on which
    API produced them. Ids are registered first so a name or ip equal
    to another node's id never shadows it. On duplicates the first
    node wins.

    Args:
        nodes: Known nodes.

    Returns:
        Dict from identifier (id, name, ip) to node id.
    """
    nodes = list(nodes)
    mapping: dict[str, NodeId] = {}
    for node in nodes:
        mapping.setdefault(node.id, node.id)
    for node in nodes:
        mapping.setdefault(node.name, node.id)
        if node.ip:
            mapping.setdefault(node.ip, node.id)
    return mapping


def _freeze(buckets: dict[IndexName, list[ShardRecord]]) -> dict[IndexName, tuple[ShardRecord, ...]]:
    # sorted() is stable, so copies of the same shard keep input order
    return {
        index: tuple(sorted(shards, key=lambda s: s.shard_id))
        for index, shards in buckets.items()
    }


def build_topology(
    nodes: Sequence[NodeRecord],
    shards: Sequence[ShardRecord],
    indices: Sequence[IndexSummary],
) -> ClusterTopologySnapshot:
    """
    Build an immutable topology snapshot from raw cluster lists.

    Pure and deterministic: identical inputs give identical snapshots.

    Args:
        nodes: Node records from the fetch.
        shards: Shard records from the fetch.
        indices: Index summaries from the fetch.

    Returns:
        A new ClusterTopologySnapshot.
    """
    identifiers = build_node_identifier_map(nodes)
    buckets: dict[NodeId, dict[IndexName, list[ShardRecord]]] = {
        node.id: {} for node in nodes
    }
    unknown: dict[IndexName, list[ShardRecord]] = {}
    unassigned: list[ShardRecord] = []

    for shard in shards:
        if shard.state == ShardState.UNASSIGNED:
            unassigned.append(shard)
            continue

        node_id = identifiers.get(shard.node) if shard.node else None
        if node_id is None:
            logger.warning(
                f"Shard {shard.index}[{shard.shard_id}] references unknown node "
                f"{shard.node!r}, placing it in the unknown-node bucket"
            )
            unknown.setdefault(shard.index, []).append(shard)
            continue

        buckets[node_id].setdefault(shard.index, []).append(shard)

    seen: set[NodeId] = set()
    topologies: list[NodeTopology] = []
    for node in nodes:
        # Duplicate node ids: shards were routed to the first record
        if node.id in seen:
            topologies.append(NodeTopology(node=node))
            continue
        seen.add(node.id)
        topologies.append(NodeTopology(node=node, shards_by_index=_freeze(buckets[node.id])))

    return ClusterTopologySnapshot(
        nodes=tuple(topologies),
        unknown_node=NodeTopology(node=unknown_node_record(), shards_by_index=_freeze(unknown)),
        unassigned=tuple(unassigned),
        indices=tuple(indices),
    )


def pending_relocations(
    snapshot: ClusterTopologySnapshot,
) -> list[tuple[ShardRecord, NodeTopology | None]]:
    """
    List relocating shards with their resolved destination node.

    The destination is None when the shard does not name one or the
    named node is not known.
    """
    return [
        (shard, snapshot.find_node(shard.relocating_node))
        for shard in snapshot.all_shards()
        if shard.state == ShardState.RELOCATING
    ]


def sort_nodes_master_first(nodes: Iterable[NodeTopology]) -> list[NodeTopology]:
    """Master-eligible or elected master nodes first, then by name."""

    def is_master(topo: NodeTopology) -> bool:
        return topo.node.is_master or topo.node.has_role(NodeRole.MASTER)

    return sorted(nodes, key=lambda topo: (not is_master(topo), topo.node.name))


def filter_data_nodes(nodes: Iterable[NodeTopology]) -> list[NodeTopology]:
    return [topo for topo in nodes if topo.node.is_data_node]


def group_shards_by_index(shards: Iterable[ShardRecord]) -> dict[IndexName, list[ShardRecord]]:
    grouped: dict[IndexName, list[ShardRecord]] = {}
    for shard in shards:
        grouped.setdefault(shard.index, []).append(shard)
    return grouped


def count_shards_by_state(shards: Iterable[ShardRecord]) -> dict[ShardState, int]:
    return dict(Counter(shard.state for shard in shards))


def index_has_problems(index: IndexName, shards: Iterable[ShardRecord]) -> bool:
    """True if any copy of the index is unassigned, relocating or initializing."""
    return any(s.index == index and s.state in PROBLEM_STATES for s in shards)


def compute_shard_stats(snapshot: ClusterTopologySnapshot) -> ShardStats:
    shards = list(snapshot.all_shards())
    by_state = count_shards_by_state(shards)
    primary = sum(1 for s in shards if s.primary)
    return ShardStats(
        total=len(shards),
        primary=primary,
        replica=len(shards) - primary,
        unassigned=by_state.get(ShardState.UNASSIGNED, 0),
        relocating=by_state.get(ShardState.RELOCATING, 0),
        initializing=by_state.get(ShardState.INITIALIZING, 0),
    )
