"""
Admission control for cluster operations.

Validators decide whether a requested state change is legal against the
current topology before anything is dispatched:
- validate_relocation: single shard move between nodes
- validate_bulk_operation: per-index open/close/delete/refresh/blocks

Both are pure functions and return their verdicts as data.
"""

from clusterview.admission.bulk import check_index, validate_bulk_operation
from clusterview.admission.relocation import valid_destinations, validate_relocation
from clusterview.admission.types import (
    AdmissionResult,
    BulkAdmissionResult,
    BulkOperation,
    RejectionReason,
)

__all__ = [
    # Validators
    "validate_relocation",
    "valid_destinations",
    "validate_bulk_operation",
    "check_index",
    # Result types
    "AdmissionResult",
    "BulkAdmissionResult",
    "BulkOperation",
    "RejectionReason",
]
