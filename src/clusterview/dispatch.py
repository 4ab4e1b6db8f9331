"""
Command dispatch for admitted operations.

Validators decide; this module acts on their decisions through
collaborators:
- relocate_shard: validate, then emit exactly one RelocationCommand to
  a ShardMover
- run_bulk_operation: validate, then issue one independent command per
  approved index to an IndexCommandExecutor

Bulk commands are not batched and never rolled back. A failing index is
recorded in the report and the remaining indices still run. Collaborator
messages are surfaced verbatim.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from clusterview.admission.bulk import validate_bulk_operation
from clusterview.admission.relocation import validate_relocation
from clusterview.admission.types import (
    AdmissionResult,
    BulkAdmissionResult,
    BulkOperation,
)
from clusterview.protocols import IndexCommandExecutor, ShardMover
from clusterview.types import (
    ClusterTopologySnapshot,
    IndexName,
    IndexSummary,
    NodeId,
    ShardRecord,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RelocationCommand:
    """Move one shard copy from one node to another."""

    index: IndexName
    shard_id: int
    from_node_id: NodeId
    to_node_id: NodeId


@dataclass(frozen=True)
class CommandResult:
    """
    Collaborator report for one command.

    Attributes:
        success: Whether the cluster accepted the command.
        message: Optional message from the cluster, shown as-is.
    """

    success: bool
    message: str | None = None


@dataclass(frozen=True)
class RelocationOutcome:
    """
    Result of a relocation request.

    Attributes:
        admission: Validator verdict.
        command: Command sent, None when rejected.
        result: Collaborator result, None when rejected.
    """

    admission: AdmissionResult
    command: RelocationCommand | None = None
    result: CommandResult | None = None

    @property
    def succeeded(self) -> bool:
        return self.result is not None and self.result.success


@dataclass(frozen=True)
class BulkOperationReport:
    """
    Per-index outcome of a bulk operation.

    Attributes:
        admission: Approved/rejected partition of the selection.
        results: Collaborator result for each approved index.
    """

    admission: BulkAdmissionResult
    results: Mapping[IndexName, CommandResult] = field(default_factory=dict)

    @property
    def operation(self) -> BulkOperation:
        return self.admission.operation

    @property
    def succeeded(self) -> list[IndexName]:
        return [name for name, r in self.results.items() if r.success]

    @property
    def failed(self) -> dict[IndexName, CommandResult]:
        return {name: r for name, r in self.results.items() if not r.success}


async def relocate_shard(
    mover: ShardMover,
    shard: ShardRecord | None,
    source_node_id: NodeId | None,
    dest_node_id: NodeId | None,
    snapshot: ClusterTopologySnapshot,
) -> RelocationOutcome:
    """
    Validate a relocation and, if approved, send it to the cluster.

    Node identifiers in the command are the resolved node ids, so a
    request made by node name still reaches the cluster by id.

    Returns:
        RelocationOutcome; the mover is not called when rejected
    """
    admission = validate_relocation(shard, source_node_id, dest_node_id, snapshot)
    if not admission.approved:
        logger.info(f"Relocation rejected: {admission}")
        return RelocationOutcome(admission=admission)

    # Approved implies both nodes resolve
    source = snapshot.find_node(source_node_id)
    dest = snapshot.find_node(dest_node_id)
    command = RelocationCommand(
        index=shard.index,
        shard_id=shard.shard_id,
        from_node_id=source.id,
        to_node_id=dest.id,
    )
    try:
        result = await mover.relocate(command)
    except Exception as e:
        logger.warning(f"Relocation of {command.index}[{command.shard_id}] failed: {e}")
        result = CommandResult(success=False, message=str(e))
    return RelocationOutcome(admission=admission, command=command, result=result)


async def run_bulk_operation(
    executor: IndexCommandExecutor,
    operation: BulkOperation,
    selected_names: Iterable[IndexName],
    index_universe: Iterable[IndexSummary],
) -> BulkOperationReport:
    """
    Validate a bulk selection and apply the operation to each approved index.

    Each index is an independent command. Failures, including
    collaborator exceptions, are recorded per index and do not stop the
    rest of the batch.
    """
    admission = validate_bulk_operation(operation, selected_names, index_universe)
    results: dict[IndexName, CommandResult] = {}

    for name in admission.approved:
        try:
            results[name] = await executor.execute(admission.operation, name)
        except Exception as e:
            logger.warning(f"{admission.operation.display_name} failed for {name}: {e}")
            results[name] = CommandResult(success=False, message=str(e))

    return BulkOperationReport(admission=admission, results=results)
