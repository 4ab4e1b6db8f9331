"""
Admission control for single-shard relocation.

validate_relocation() checks a requested move against a topology
snapshot. Rules are evaluated in a fixed order and the first failing
rule decides the result:

1. shard present                      -> shard_missing
2. source node known                  -> source_not_found
3. destination node known             -> dest_not_found
4. source and destination differ      -> same_node
5. shard state movable                -> cannot_relocate_{unassigned,relocating,initializing}
6. no copy already on destination     -> duplicate_on_destination
7. destination has the data role      -> dest_not_data_node

The order is part of the contract: an unassigned shard moved onto its
own node is reported as same_node, not as unassigned.

Validation has no side effects. Callers dispatch the actual move only
after an approved result (see clusterview.dispatch).
"""

from clusterview.admission.types import AdmissionResult, RejectionReason
from clusterview.types import (
    ClusterTopologySnapshot,
    NodeId,
    NodeTopology,
    ShardRecord,
    ShardState,
)

_STATE_REJECTIONS: dict[ShardState, RejectionReason] = {
    ShardState.UNASSIGNED: RejectionReason.CANNOT_RELOCATE_UNASSIGNED,
    ShardState.RELOCATING: RejectionReason.CANNOT_RELOCATE_RELOCATING,
    ShardState.INITIALIZING: RejectionReason.CANNOT_RELOCATE_INITIALIZING,
}


def validate_relocation(
    shard: ShardRecord | None,
    source_node_id: NodeId | None,
    dest_node_id: NodeId | None,
    snapshot: ClusterTopologySnapshot,
) -> AdmissionResult:
    """
    Decide whether a shard may be moved from one node to another.

    Node identifiers are resolved against the snapshot by id, then name
    or ip. Two identifiers naming the same node count as the same node.

    Args:
        shard: The shard copy to move.
        source_node_id: Node currently holding the shard.
        dest_node_id: Node to move the shard to.
        snapshot: Current topology.

    Returns:
        AdmissionResult, approved or carrying the first failing reason.
    """
    if shard is None:
        return AdmissionResult.reject(RejectionReason.SHARD_MISSING)

    source = snapshot.find_node(source_node_id)
    if source is None:
        return AdmissionResult.reject(RejectionReason.SOURCE_NOT_FOUND)

    dest = snapshot.find_node(dest_node_id)
    if dest is None:
        return AdmissionResult.reject(RejectionReason.DEST_NOT_FOUND)

    if source.id == dest.id:
        return AdmissionResult.reject(RejectionReason.SAME_NODE)

    state_rejection = _STATE_REJECTIONS.get(shard.state)
    if state_rejection is not None:
        return AdmissionResult.reject(state_rejection)

    if dest.hosts(shard.index, shard.shard_id):
        return AdmissionResult.reject(RejectionReason.DUPLICATE_ON_DESTINATION)

    if not dest.node.is_data_node:
        return AdmissionResult.reject(RejectionReason.DEST_NOT_DATA_NODE)

    return AdmissionResult.approve()


def valid_destinations(
    shard: ShardRecord,
    snapshot: ClusterTopologySnapshot,
) -> list[NodeTopology]:
    """
    Nodes the shard could be relocated to from its current node.

    Used to highlight drop targets when a shard is selected for
    relocation. Returns an empty list when the shard cannot move at all.
    """
    return [
        topo
        for topo in snapshot.nodes
        if validate_relocation(shard, shard.node, topo.id, snapshot).approved
    ]
