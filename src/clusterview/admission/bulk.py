"""
Admission control for bulk index operations.

validate_bulk_operation() splits a selection of index names into the
ones an operation can be applied to and the ones it must skip:

    operation      approved when        otherwise
    open           status == close      already_open
    close          status == open       already_closed
    delete         index exists         -
    refresh        status == open       cannot_refresh_closed
    set_read_only  status == open       cannot_modify_closed
    set_writable   never                already_writable

Names missing from the index universe are rejected with not_found.

IndexSummary carries no read-only flag, so set_read_only cannot detect
already_read_only and set_writable is always refused. This stays
conservative until the fetch reports index.blocks.write.
"""

from collections.abc import Iterable

from clusterview.admission.types import (
    BulkAdmissionResult,
    BulkOperation,
    RejectionReason,
)
from clusterview.types import IndexName, IndexStatus, IndexSummary


def check_index(operation: BulkOperation, index: IndexSummary) -> RejectionReason | None:
    """
    Check one existing index against an operation.

    Returns:
        None if the operation applies, otherwise the rejection reason.
    """
    if operation == BulkOperation.OPEN:
        return None if index.status == IndexStatus.CLOSE else RejectionReason.ALREADY_OPEN
    if operation == BulkOperation.CLOSE:
        return None if index.status == IndexStatus.OPEN else RejectionReason.ALREADY_CLOSED
    if operation == BulkOperation.DELETE:
        return None
    if operation == BulkOperation.REFRESH:
        return None if index.is_open else RejectionReason.CANNOT_REFRESH_CLOSED
    if operation == BulkOperation.SET_READ_ONLY:
        return None if index.is_open else RejectionReason.CANNOT_MODIFY_CLOSED
    if operation == BulkOperation.SET_WRITABLE:
        return RejectionReason.ALREADY_WRITABLE
    raise ValueError(f"Unknown bulk operation: {operation!r}")


def validate_bulk_operation(
    operation: BulkOperation,
    selected_names: Iterable[IndexName],
    index_universe: Iterable[IndexSummary],
) -> BulkAdmissionResult:
    """
    Partition a selection into approved and rejected index names.

    Every distinct selected name ends up in exactly one side of the
    result. Duplicates in the selection are collapsed, and approved
    names keep their selection order.

    Args:
        operation: Bulk operation to validate.
        selected_names: Index names chosen by the operator.
        index_universe: All indices currently known for the cluster.

    Returns:
        BulkAdmissionResult with the partition.

    Example:
        result = validate_bulk_operation(
            BulkOperation.OPEN,
            ["a", "b", "c"],
            [IndexSummary("a", "green", IndexStatus.OPEN),
             IndexSummary("b", "green", IndexStatus.CLOSE)],
        )
        result.approved  # ("b",)
        result.rejected  # {"a": ALREADY_OPEN, "c": NOT_FOUND}
    """
    operation = BulkOperation(operation)
    by_name = {}
    for index in index_universe:
        by_name.setdefault(index.name, index)

    approved: list[IndexName] = []
    rejected: dict[IndexName, RejectionReason] = {}
    seen: set[IndexName] = set()

    for name in selected_names:
        if name in seen:
            continue
        seen.add(name)

        index = by_name.get(name)
        if index is None:
            rejected[name] = RejectionReason.NOT_FOUND
            continue

        reason = check_index(operation, index)
        if reason is None:
            approved.append(name)
        else:
            rejected[name] = reason

    return BulkAdmissionResult(
        operation=operation,
        approved=tuple(approved),
        rejected=rejected,
    )
