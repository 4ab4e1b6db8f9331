"""
Exception classes for collaborator boundaries.

Only failures that originate outside the aggregation/admission core are
raised as exceptions:
- ClusterDataShapeError: fetched payload does not match the schema
- PreferenceStoreError: the key/value store is unavailable
- InvalidIntervalError: a refresh interval that cannot be scheduled

Admission rejections are never raised; they are returned as
AdmissionResult / BulkAdmissionResult data.

Per project patterns:
- Store context data in attributes for error handling
- Include descriptive message with relevant details
"""

from typing import Any


class ClusterViewError(Exception):
    """Base class for clusterview errors."""


class ClusterDataShapeError(ClusterViewError):
    """
    Raised when a fetched response does not match the expected shape.

    Attributes:
        source: Which response failed (e.g., "nodes", "_nodes/stats")
        errors: Validation error details (pydantic error dicts)
    """

    def __init__(self, source: str, errors: list[dict[str, Any]] | None = None) -> None:
        self.source = source
        self.errors = errors or []
        details = "; ".join(
            f"{'.'.join(str(p) for p in e.get('loc', ()))}: {e.get('msg', '')}"
            for e in self.errors
        )
        message = f"Malformed {source} response"
        if details:
            message = f"{message}: {details}"
        super().__init__(message)


class PreferenceStoreError(ClusterViewError):
    """
    Raised when the preference store cannot be read or written.

    Attributes:
        key: The preference key involved, None when opening the store failed
        reason: Underlying error message
    """

    def __init__(self, key: str | None, reason: str) -> None:
        self.key = key
        self.reason = reason
        if key is None:
            super().__init__(f"Preference store unavailable: {reason}")
        else:
            super().__init__(f"Preference store unavailable for {key!r}: {reason}")


class InvalidIntervalError(ClusterViewError, ValueError):
    """
    Raised when a refresh interval is negative or not an integer.

    Attributes:
        value: The rejected value
    """

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(
            f"Invalid refresh interval {value!r}: expected a non-negative integer (ms)"
        )
