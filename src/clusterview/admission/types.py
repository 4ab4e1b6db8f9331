"""
Admission result types.

This module defines the data returned by the admission validators:
- RejectionReason: Enum of every reason a request can be refused
- AdmissionResult: Approved / rejected outcome of a single request
- BulkOperation: Enum of per-index bulk state changes
- BulkAdmissionResult: Partition of a bulk selection into approved and
  rejected names

Rejections are returned as data and never raised.

Per project patterns:
- Use str enum for JSON serialization compatibility
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from clusterview.types import IndexName


class RejectionReason(str, Enum):
    """Reason codes for refused relocation and bulk requests."""

    # Relocation
    SHARD_MISSING = "shard_missing"
    SOURCE_NOT_FOUND = "source_not_found"
    DEST_NOT_FOUND = "dest_not_found"
    SAME_NODE = "same_node"
    CANNOT_RELOCATE_UNASSIGNED = "cannot_relocate_unassigned"
    CANNOT_RELOCATE_RELOCATING = "cannot_relocate_relocating"
    CANNOT_RELOCATE_INITIALIZING = "cannot_relocate_initializing"
    DUPLICATE_ON_DESTINATION = "duplicate_on_destination"
    DEST_NOT_DATA_NODE = "dest_not_data_node"

    # Bulk index operations
    NOT_FOUND = "not_found"
    ALREADY_OPEN = "already_open"
    ALREADY_CLOSED = "already_closed"
    CANNOT_REFRESH_CLOSED = "cannot_refresh_closed"
    CANNOT_MODIFY_CLOSED = "cannot_modify_closed"
    ALREADY_READ_ONLY = "already_read_only"
    ALREADY_WRITABLE = "already_writable"

    @property
    def description(self) -> str:
        """Human-readable explanation shown next to the rejected item."""
        return _DESCRIPTIONS[self]


_DESCRIPTIONS: dict[RejectionReason, str] = {
    RejectionReason.SHARD_MISSING: "No shard selected",
    RejectionReason.SOURCE_NOT_FOUND: "Source node not found",
    RejectionReason.DEST_NOT_FOUND: "Destination node not found",
    RejectionReason.SAME_NODE: "Source and destination are the same node",
    RejectionReason.CANNOT_RELOCATE_UNASSIGNED: "Cannot relocate unassigned shards",
    RejectionReason.CANNOT_RELOCATE_RELOCATING: "Shard is already relocating",
    RejectionReason.CANNOT_RELOCATE_INITIALIZING: "Cannot relocate initializing shards",
    RejectionReason.DUPLICATE_ON_DESTINATION: "Destination already hosts a copy of this shard",
    RejectionReason.DEST_NOT_DATA_NODE: "Destination is not a data node",
    RejectionReason.NOT_FOUND: "Index not found",
    RejectionReason.ALREADY_OPEN: "Already open",
    RejectionReason.ALREADY_CLOSED: "Already closed",
    RejectionReason.CANNOT_REFRESH_CLOSED: "Cannot refresh closed index",
    RejectionReason.CANNOT_MODIFY_CLOSED: "Cannot modify settings on closed index",
    RejectionReason.ALREADY_READ_ONLY: "Already read-only",
    RejectionReason.ALREADY_WRITABLE: "Already writable",
}


@dataclass(frozen=True)
class AdmissionResult:
    """
    Outcome of validating a single request.

    Attributes:
        reason: None when approved, otherwise why the request was refused.
    """

    reason: RejectionReason | None = None

    @classmethod
    def approve(cls) -> "AdmissionResult":
        return cls(reason=None)

    @classmethod
    def reject(cls, reason: RejectionReason) -> "AdmissionResult":
        return cls(reason=reason)

    @property
    def approved(self) -> bool:
        return self.reason is None

    def __str__(self) -> str:
        if self.reason is None:
            return "Approved"
        return f"Rejected({self.reason.value})"


class BulkOperation(str, Enum):
    """Per-index state changes that can be applied to a selection."""

    OPEN = "open"
    CLOSE = "close"
    DELETE = "delete"
    REFRESH = "refresh"
    SET_READ_ONLY = "set_read_only"
    SET_WRITABLE = "set_writable"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES: dict[BulkOperation, str] = {
    BulkOperation.OPEN: "Open",
    BulkOperation.CLOSE: "Close",
    BulkOperation.DELETE: "Delete",
    BulkOperation.REFRESH: "Refresh",
    BulkOperation.SET_READ_ONLY: "Set Read-Only",
    BulkOperation.SET_WRITABLE: "Set Writable",
}


@dataclass(frozen=True)
class BulkAdmissionResult:
    """
    Partition of a bulk selection.

    Every selected name appears exactly once, either in approved or as a
    key of rejected.

    Attributes:
        operation: The operation that was validated.
        approved: Names the operation will be applied to, in selection order.
        rejected: Name to rejection reason for everything else.
    """

    operation: BulkOperation
    approved: tuple[IndexName, ...] = ()
    rejected: Mapping[IndexName, RejectionReason] = field(default_factory=dict)

    @property
    def has_approved(self) -> bool:
        return len(self.approved) > 0

    @property
    def total(self) -> int:
        return len(self.approved) + len(self.rejected)

    def summary(self) -> str:
        """One-line summary for confirmation prompts."""
        if not self.rejected:
            return f"All {self.total} selected indices will be affected"
        return f"{len(self.approved)} will be affected, {len(self.rejected)} will be ignored"
