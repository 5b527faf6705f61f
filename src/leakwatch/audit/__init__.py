"""Secret audit trail: version-over-version diffs of scan findings."""

from leakwatch.audit.diff import (
    DiffAuditor,
    DiffRequest,
    calculate_risk_level,
    compute_diff,
)
from leakwatch.audit.history import (
    AuditHistory,
    AuditStore,
    JsonFileAuditStore,
    MemoryAuditStore,
)
from leakwatch.audit.results import AuditRecord, DiffResult, ModifiedFinding

__all__ = [
    "DiffAuditor",
    "DiffRequest",
    "compute_diff",
    "calculate_risk_level",
    "AuditHistory",
    "AuditStore",
    "MemoryAuditStore",
    "JsonFileAuditStore",
    "AuditRecord",
    "DiffResult",
    "ModifiedFinding",
]
