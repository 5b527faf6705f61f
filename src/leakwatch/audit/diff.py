"""Diff auditor: compares a scan's findings against a stored baseline.

Findings are correlated by (file, line, pattern name). Several findings
sharing a key are paired in the order they were reported, and leftovers are
added or removed. The matched value is not part of the key, so a changed
secret at the same spot shows up as a modification rather than an
add/remove pair.
"""

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime

from leakwatch.audit.history import AuditHistory
from leakwatch.audit.results import AuditRecord, DiffResult, ModifiedFinding, utc_now
from leakwatch.scanner.results import Finding, Severity

logger = logging.getLogger(__name__)

DEFAULT_VERSION_LABEL = "current"


@dataclass
class DiffRequest:
    """Inputs for one audit."""

    current_secrets: list[Finding]
    since: str | datetime | None = None
    version: str | None = None
    compare_to: list[Finding] | None = None


def has_changed(old: Finding, new: Finding) -> bool:
    """Check whether two correlated findings differ."""
    return (
        old.value != new.value
        or old.entropy != new.entropy
        or old.pattern.severity != new.pattern.severity
    )


def calculate_risk_level(added: list[Finding], modified: list[ModifiedFinding]) -> Severity:
    """Summarize a diff as a single risk level.

    Additions and severity-escalating modifications are counted by
    severity, then:
        critical > 0             -> critical
        high > 2                 -> high
        high > 0 or medium > 5   -> medium
        otherwise                -> low
    """
    counts = {sev: 0 for sev in Severity}
    for finding in added:
        counts[finding.severity] += 1
    for change in modified:
        if change.severity_escalated:
            counts[change.new_finding.severity] += 1

    if counts[Severity.CRITICAL] > 0:
        return Severity.CRITICAL
    if counts[Severity.HIGH] > 2:
        return Severity.HIGH
    if counts[Severity.HIGH] > 0 or counts[Severity.MEDIUM] > 5:
        return Severity.MEDIUM
    return Severity.LOW


def compute_diff(baseline: list[Finding], current: list[Finding]) -> DiffResult:
    """Classify current findings against a baseline.

    Args:
        baseline: Findings from the earlier scan
        current: Findings from the new scan

    Returns:
        DiffResult; added keeps current order, the other lists keep
        baseline order
    """
    pending: dict[tuple[str, int, str], deque[int]] = {}
    for index, finding in enumerate(current):
        pending.setdefault(finding.identity_key, deque()).append(index)

    matched: set[int] = set()
    removed: list[Finding] = []
    modified: list[ModifiedFinding] = []
    unchanged: list[Finding] = []

    for old in baseline:
        candidates = pending.get(old.identity_key)
        if not candidates:
            removed.append(old)
            continue
        index = candidates.popleft()
        matched.add(index)
        new = current[index]
        if has_changed(old, new):
            modified.append(ModifiedFinding(old=old, new_finding=new))
        else:
            unchanged.append(new)

    added = [f for index, f in enumerate(current) if index not in matched]

    return DiffResult(
        added=added,
        removed=removed,
        modified=modified,
        unchanged=unchanged,
        risk_level=calculate_risk_level(added, modified),
    )


class DiffAuditor:
    """Diffs scans against the audit trail and records each audit."""

    def __init__(self, history: AuditHistory | None = None):
        self.history = history or AuditHistory()

    def resolve_baseline(self, request: DiffRequest) -> list[Finding]:
        """Pick the findings to compare against.

        Priority: explicit compare_to, then the newest record at or after
        `since`, then the first record for `version`, then the last record.
        Nothing resolving means an empty baseline.
        """
        if request.compare_to is not None:
            return list(request.compare_to)

        record: AuditRecord | None
        if request.since is not None:
            record = self.history.latest_since(request.since)
        elif request.version is not None:
            record = self.history.first_for_version(request.version)
        else:
            record = self.history.last()

        if record is None:
            logger.debug("No baseline found; treating every finding as added")
            return []
        return list(record.secrets)

    def audit_diff(self, request: DiffRequest) -> DiffResult:
        """Diff the current findings and append the audit to the history.

        Args:
            request: Current findings and baseline selectors

        Returns:
            DiffResult with risk level
        """
        baseline = self.resolve_baseline(request)
        diff = compute_diff(baseline, request.current_secrets)

        logger.info(
            "Secret audit: %d added, %d removed, %d modified, %d unchanged (risk %s)",
            len(diff.added),
            len(diff.removed),
            len(diff.modified),
            len(diff.unchanged),
            diff.risk_level.value,
        )

        self.history.append(
            AuditRecord(
                version=request.version or DEFAULT_VERSION_LABEL,
                timestamp=utc_now(),
                secrets=list(request.current_secrets),
                diff=diff,
            )
        )
        return diff
