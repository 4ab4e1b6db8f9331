"""
Pydantic response types for the cluster fetch boundary.

This module provides Pydantic models for two shapes of input:
- The flat cluster payload served by the management backend
  ({"nodes": [...], "shards": [...], "indices": [...]}, camelCase keys)
- The raw Elasticsearch responses that payload is derived from
  (_nodes, _nodes/stats, _cluster/state routing table, _stats)

These are API response types for external data validation. Internal
types (NodeRecord, ShardRecord, ...) are dataclasses in clusterview.types.

Notes:
- Optional fields are explicit with defaults; nested lookups never chain
  through missing keys
- Shard states arrive upper case from Elasticsearch but lower case from
  some proxies, so they are normalised before validation
- A shard must name a node unless it is UNASSIGNED, and must not name
  one when it is
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from clusterview.types import IndexStatus, ShardState


def _normalise_state(value: object) -> object:
    if isinstance(value, str):
        return value.strip().upper()
    return value


def _check_node_matches_state(state: ShardState, node: str | None) -> None:
    if state == ShardState.UNASSIGNED and node:
        raise ValueError("unassigned shard must not reference a node")
    if state != ShardState.UNASSIGNED and not node:
        raise ValueError(f"{state.value} shard must reference a node")


# =============================================================================
# Flat cluster payload
# =============================================================================


class NodePayload(BaseModel):
    """Single node entry of the flat payload."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    name: str
    roles: list[str] = Field(default_factory=list)
    ip: str | None = None
    heap_used: int = Field(0, alias="heapUsed", ge=0)
    heap_max: int = Field(0, alias="heapMax", ge=0)
    disk_used: int = Field(0, alias="diskUsed", ge=0)
    disk_total: int = Field(0, alias="diskTotal", ge=0)
    is_master: bool = Field(False, alias="isMaster")
    is_master_eligible: bool = Field(False, alias="isMasterEligible")


class ShardPayload(BaseModel):
    """
    Single shard entry of the flat payload.

    Example:
        {"index": "logs-1", "shard": 0, "primary": true,
         "state": "STARTED", "node": "n1", "docs": 120, "store": 4096}
    """

    model_config = ConfigDict(populate_by_name=True)

    index: str
    shard: int = Field(ge=0)
    primary: bool
    state: ShardState
    node: str | None = None
    docs: int | None = Field(None, ge=0)
    store: int | None = Field(None, ge=0)
    relocating_node: str | None = Field(None, alias="relocatingNode")

    @field_validator("state", mode="before")
    @classmethod
    def normalise_state(cls, value: object) -> object:
        return _normalise_state(value)

    @model_validator(mode="after")
    def node_matches_state(self) -> "ShardPayload":
        _check_node_matches_state(self.state, self.node)
        return self


class IndexPayload(BaseModel):
    """Single index entry of the flat payload."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    health: str = "yellow"
    status: IndexStatus = IndexStatus.OPEN
    primary_shards: int = Field(0, alias="primaryShards", ge=0)
    replica_shards: int = Field(0, alias="replicaShards", ge=0)
    docs_count: int = Field(0, alias="docsCount", ge=0)
    store_size: int = Field(0, alias="storeSize", ge=0)


class ClusterPayload(BaseModel):
    """
    Flat cluster payload.

    Example:
        {
            "nodes": [{"id": "n1", "name": "node-1", "roles": ["data"]}],
            "shards": [{"index": "logs-1", "shard": 0, "primary": true,
                        "state": "STARTED", "node": "n1"}],
            "indices": [{"name": "logs-1", "health": "green", "status": "open",
                         "primaryShards": 1, "replicaShards": 0}]
        }
    """

    nodes: list[NodePayload] = Field(default_factory=list)
    shards: list[ShardPayload] = Field(default_factory=list)
    indices: list[IndexPayload] = Field(default_factory=list)


# =============================================================================
# Elasticsearch: GET /_nodes
# =============================================================================


class ESNodeInfo(BaseModel):
    """Node entry from GET /_nodes."""

    name: str = ""
    roles: list[str] = Field(default_factory=list)
    ip: str | None = None
    version: str | None = None
    attributes: dict[str, str] = Field(default_factory=dict)


class ESNodesInfoResponse(BaseModel):
    """Response from GET /_nodes, keyed by node id."""

    nodes: dict[str, ESNodeInfo] = Field(default_factory=dict)


# =============================================================================
# Elasticsearch: GET /_nodes/stats
# =============================================================================


class ESJvmMem(BaseModel):
    heap_used_in_bytes: int = 0
    heap_max_in_bytes: int = 0


class ESJvmStats(BaseModel):
    mem: ESJvmMem = Field(default_factory=ESJvmMem)
    uptime_in_millis: int | None = None


class ESFsTotal(BaseModel):
    total_in_bytes: int = 0
    available_in_bytes: int = 0


class ESFsStats(BaseModel):
    total: ESFsTotal = Field(default_factory=ESFsTotal)


class ESNodeStats(BaseModel):
    """Node entry from GET /_nodes/stats."""

    jvm: ESJvmStats = Field(default_factory=ESJvmStats)
    fs: ESFsStats = Field(default_factory=ESFsStats)


class ESNodesStatsResponse(BaseModel):
    """Response from GET /_nodes/stats, keyed by node id."""

    nodes: dict[str, ESNodeStats] = Field(default_factory=dict)


# =============================================================================
# Elasticsearch: GET /_cluster/state/master_node,routing_table
# =============================================================================


class ESShardRouting(BaseModel):
    """One shard copy in the routing table."""

    state: ShardState
    primary: bool = False
    node: str | None = None
    relocating_node: str | None = None

    @field_validator("state", mode="before")
    @classmethod
    def normalise_state(cls, value: object) -> object:
        return _normalise_state(value)

    @model_validator(mode="after")
    def node_matches_state(self) -> "ESShardRouting":
        _check_node_matches_state(self.state, self.node)
        return self


class ESIndexRouting(BaseModel):
    """Routing for one index: shard number (as string) to copies."""

    shards: dict[str, list[ESShardRouting]] = Field(default_factory=dict)

    @field_validator("shards")
    @classmethod
    def shard_numbers_are_ints(
        cls, value: dict[str, list[ESShardRouting]]
    ) -> dict[str, list[ESShardRouting]]:
        for key in value:
            if not (key.isascii() and key.isdecimal()):
                raise ValueError(f"shard number {key!r} is not a non-negative integer")
        return value


class ESRoutingTable(BaseModel):
    indices: dict[str, ESIndexRouting] = Field(default_factory=dict)


class ESClusterStateResponse(BaseModel):
    """Response from GET /_cluster/state with master node and routing table."""

    cluster_name: str | None = None
    master_node: str | None = None
    routing_table: ESRoutingTable = Field(default_factory=ESRoutingTable)


# =============================================================================
# Elasticsearch: GET /_stats?level=shards
# =============================================================================


class ESDocs(BaseModel):
    count: int = 0


class ESStore(BaseModel):
    size_in_bytes: int = 0


class ESShardStatsRouting(BaseModel):
    primary: bool = False
    node: str | None = None


class ESShardStats(BaseModel):
    """Stats for one shard copy."""

    docs: ESDocs = Field(default_factory=ESDocs)
    store: ESStore = Field(default_factory=ESStore)
    routing: ESShardStatsRouting | None = None


class ESIndexPrimaries(BaseModel):
    docs: ESDocs = Field(default_factory=ESDocs)
    store: ESStore = Field(default_factory=ESStore)


class ESIndexStats(BaseModel):
    """Stats for one index."""

    health: str = "yellow"
    status: IndexStatus = IndexStatus.OPEN
    uuid: str | None = None
    primaries: ESIndexPrimaries = Field(default_factory=ESIndexPrimaries)
    shards: dict[str, list[ESShardStats]] = Field(default_factory=dict)


class ESIndicesStatsResponse(BaseModel):
    """Response from GET /_stats?level=shards, keyed by index name."""

    indices: dict[str, ESIndexStats] = Field(default_factory=dict)
