"""
Shared data types for cluster topology.

This module defines the core data structures used to represent search
cluster components: nodes, indices, shards, and the aggregated topology
snapshot built from them. These are internal types used by the
aggregation and admission code - not API models.

All types are frozen dataclasses. Pydantic models are reserved for the
fetch boundary (see clusterview.fetch.schemas) and settings parsing.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum

# Type aliases for common patterns
NodeId = str
"""Unique identifier for a cluster node."""

IndexName = str
"""Name of an index."""

UNKNOWN_NODE_ID: NodeId = "__unknown__"
"""Sentinel id of the synthetic bucket holding shards on unknown nodes."""


class ShardState(str, Enum):
    """Allocation state of a shard copy."""

    STARTED = "STARTED"
    INITIALIZING = "INITIALIZING"
    RELOCATING = "RELOCATING"
    UNASSIGNED = "UNASSIGNED"


class NodeRole(str, Enum):
    """Roles a node can advertise."""

    MASTER = "master"
    DATA = "data"
    INGEST = "ingest"
    COORDINATING = "coordinating"
    ML = "ml"
    REMOTE_CLUSTER_CLIENT = "remote_cluster_client"


class IndexStatus(str, Enum):
    """Open/close status of an index."""

    OPEN = "open"
    CLOSE = "close"


@dataclass(frozen=True)
class ShardRecord:
    """
    A single shard copy as reported by the cluster.

    Attributes:
        index: Name of the index this shard belongs to.
        shard_id: Shard number within the index (non-negative).
        primary: True for the primary copy, False for a replica.
        state: Allocation state.
        node: Id, name or ip of the hosting node. None iff UNASSIGNED.
        doc_count: Number of documents held by this copy.
        size_bytes: Store size of this copy in bytes.
        relocating_node: Destination node while state is RELOCATING.
    """

    index: IndexName
    shard_id: int
    primary: bool
    state: ShardState
    node: NodeId | None = None
    doc_count: int = 0
    size_bytes: int = 0
    relocating_node: NodeId | None = None

    @property
    def key(self) -> tuple[IndexName, int]:
        """(index, shard_id) pair shared by the primary and its replicas."""
        return (self.index, self.shard_id)


@dataclass(frozen=True)
class NodeRecord:
    """
    A cluster node with its roles and resource usage.

    Attributes:
        id: Unique node id assigned by the cluster.
        name: Human-readable node name.
        roles: Roles the node advertises.
        ip: Optional publish address.
        heap_used: JVM heap in use, bytes.
        heap_max: JVM heap capacity, bytes.
        disk_used: Disk in use, bytes.
        disk_total: Disk capacity, bytes.
        is_master: True if this node is the elected master.
        is_master_eligible: True if this node can be elected master.
    """

    id: NodeId
    name: str
    roles: frozenset[NodeRole] = frozenset()
    ip: str | None = None
    heap_used: int = 0
    heap_max: int = 0
    disk_used: int = 0
    disk_total: int = 0
    is_master: bool = False
    is_master_eligible: bool = False

    def has_role(self, role: NodeRole) -> bool:
        return role in self.roles

    @property
    def is_data_node(self) -> bool:
        return NodeRole.DATA in self.roles

    @property
    def heap_percent(self) -> float:
        if self.heap_max <= 0:
            return 0.0
        return self.heap_used / self.heap_max * 100

    @property
    def disk_percent(self) -> float:
        if self.disk_total <= 0:
            return 0.0
        return self.disk_used / self.disk_total * 100


@dataclass(frozen=True)
class NodeTopology:
    """
    A node together with the shards located on it.

    Attributes:
        node: The underlying node record.
        shards_by_index: Index name to shards on this node, each sequence
            ordered by ascending shard id.
    """

    node: NodeRecord
    shards_by_index: Mapping[IndexName, tuple[ShardRecord, ...]] = field(
        default_factory=dict
    )

    @property
    def id(self) -> NodeId:
        return self.node.id

    @property
    def name(self) -> str:
        return self.node.name

    def shards_for(self, index: IndexName) -> tuple[ShardRecord, ...]:
        """Shards of one index on this node (empty if none)."""
        return self.shards_by_index.get(index, ())

    def hosts(self, index: IndexName, shard_id: int) -> bool:
        """True if any copy of (index, shard_id) lives on this node."""
        return any(s.shard_id == shard_id for s in self.shards_for(index))

    def all_shards(self) -> Iterator[ShardRecord]:
        for shards in self.shards_by_index.values():
            yield from shards

    @property
    def shard_count(self) -> int:
        return sum(len(shards) for shards in self.shards_by_index.values())


@dataclass(frozen=True)
class IndexSummary:
    """
    Summary of one index.

    Attributes:
        name: Index name.
        health: Health colour ("green", "yellow", "red").
        status: Open or closed.
        primary_shard_count: Number of primary shards.
        replica_shard_count: Number of replica shards.
        docs_count: Document count across primaries.
        store_size_bytes: Store size in bytes.
    """

    name: IndexName
    health: str
    status: IndexStatus
    primary_shard_count: int = 0
    replica_shard_count: int = 0
    docs_count: int = 0
    store_size_bytes: int = 0

    @property
    def shard_count(self) -> int:
        return self.primary_shard_count + self.replica_shard_count

    @property
    def is_open(self) -> bool:
        return self.status == IndexStatus.OPEN


@dataclass(frozen=True)
class ClusterTopologySnapshot:
    """
    One complete, internally consistent view of a cluster.

    Built wholesale on every refresh by build_topology() and never
    mutated afterwards. Every input shard lives in exactly one of
    nodes[*].shards_by_index, unknown_node.shards_by_index or unassigned.

    Attributes:
        nodes: Known nodes with their shards, in input order.
        unknown_node: Synthetic bucket (id UNKNOWN_NODE_ID) for shards
            whose node reference matches no known node.
        unassigned: Shards in the UNASSIGNED state, in input order.
        indices: Index summaries, in input order.
    """

    nodes: tuple[NodeTopology, ...]
    unknown_node: NodeTopology
    unassigned: tuple[ShardRecord, ...]
    indices: tuple[IndexSummary, ...]

    @classmethod
    def empty(cls) -> "ClusterTopologySnapshot":
        return cls(
            nodes=(),
            unknown_node=NodeTopology(node=unknown_node_record()),
            unassigned=(),
            indices=(),
        )

    def find_node(self, identifier: NodeId | None) -> NodeTopology | None:
        """
        Resolve a node by id, falling back to name and then ip.

        The unknown-node bucket is never returned.
        """
        if not identifier:
            return None
        for topo in self.nodes:
            if topo.node.id == identifier:
                return topo
        for topo in self.nodes:
            if topo.node.name == identifier or topo.node.ip == identifier:
                return topo
        return None

    def index(self, name: IndexName) -> IndexSummary | None:
        for summary in self.indices:
            if summary.name == name:
                return summary
        return None

    def all_shards(self) -> Iterator[ShardRecord]:
        """Every shard in the snapshot: nodes, unknown bucket, unassigned."""
        for topo in self.nodes:
            yield from topo.all_shards()
        yield from self.unknown_node.all_shards()
        yield from self.unassigned

    @property
    def shard_count(self) -> int:
        return sum(1 for _ in self.all_shards())


def unknown_node_record() -> NodeRecord:
    """NodeRecord used for the synthetic unknown-node bucket."""
    return NodeRecord(id=UNKNOWN_NODE_ID, name="unknown")


@dataclass(frozen=True)
class ClusterData:
    """
    Records returned by one cluster fetch.

    Attributes:
        nodes: Node records.
        shards: Shard records.
        indices: Index summaries.
    """

    nodes: tuple[NodeRecord, ...] = ()
    shards: tuple[ShardRecord, ...] = ()
    indices: tuple[IndexSummary, ...] = ()
