"""
clusterview - topology aggregation and operation admission for search
cluster consoles.

Exports the core building blocks:
- build_topology: flat node/shard/index lists to a topology snapshot
- validate_relocation / validate_bulk_operation: admission control
- RefreshClock: shared refresh tick with persisted interval
- TimeSeriesTracker: bounded per-metric sparkline buffers
- ClusterStateStore: last-known-good snapshot per cluster
"""

from clusterview.admission import (
    AdmissionResult,
    BulkAdmissionResult,
    BulkOperation,
    RejectionReason,
    validate_bulk_operation,
    validate_relocation,
)
from clusterview.config import ClusterViewSettings, load_settings
from clusterview.errors import (
    ClusterDataShapeError,
    ClusterViewError,
    InvalidIntervalError,
    PreferenceStoreError,
)
from clusterview.refresh import RefreshClock, RefreshState
from clusterview.state import ClusterStateStore, FetchOutcome, FetchStatus
from clusterview.timeseries import TimeSeries, TimeSeriesTracker
from clusterview.topology import build_topology
from clusterview.types import (
    ClusterData,
    ClusterTopologySnapshot,
    IndexStatus,
    IndexSummary,
    NodeRecord,
    NodeRole,
    NodeTopology,
    ShardRecord,
    ShardState,
)

__version__ = "0.1.0"

__all__ = [
    # Types
    "ClusterData",
    "ClusterTopologySnapshot",
    "IndexStatus",
    "IndexSummary",
    "NodeRecord",
    "NodeRole",
    "NodeTopology",
    "ShardRecord",
    "ShardState",
    # Aggregation
    "build_topology",
    # Admission
    "AdmissionResult",
    "BulkAdmissionResult",
    "BulkOperation",
    "RejectionReason",
    "validate_bulk_operation",
    "validate_relocation",
    # Refresh and sampling
    "RefreshClock",
    "RefreshState",
    "TimeSeries",
    "TimeSeriesTracker",
    # State
    "ClusterStateStore",
    "FetchOutcome",
    "FetchStatus",
    # Config and errors
    "ClusterViewSettings",
    "load_settings",
    "ClusterDataShapeError",
    "ClusterViewError",
    "InvalidIntervalError",
    "PreferenceStoreError",
]
