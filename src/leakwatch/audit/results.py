"""Data structures for secret diffs and the audit trail."""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from leakwatch.scanner.results import Finding, Severity


@dataclass
class ModifiedFinding:
    """A finding present in both scans whose value, entropy or severity changed."""

    old: Finding
    new_finding: Finding

    @property
    def severity_escalated(self) -> bool:
        return self.new_finding.severity.weight > self.old.severity.weight

    def to_dict(self) -> dict:
        return {"old": self.old.to_dict(), "new_finding": self.new_finding.to_dict()}


@dataclass
class DiffResult:
    """Classification of current findings against a baseline."""

    added: list[Finding] = field(default_factory=list)
    removed: list[Finding] = field(default_factory=list)
    modified: list[ModifiedFinding] = field(default_factory=list)
    unchanged: list[Finding] = field(default_factory=list)
    risk_level: Severity = Severity.LOW

    @property
    def summary(self) -> dict[str, Any]:
        return {
            "total_added": len(self.added),
            "total_removed": len(self.removed),
            "total_modified": len(self.modified),
            "total_unchanged": len(self.unchanged),
            "risk_level": self.risk_level.value,
        }

    def to_dict(self) -> dict:
        """Convert diff to dictionary."""
        return {
            "added": [f.to_dict() for f in self.added],
            "removed": [f.to_dict() for f in self.removed],
            "modified": [m.to_dict() for m in self.modified],
            "unchanged": [f.to_dict() for f in self.unchanged],
            "summary": self.summary,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DiffResult":
        summary = data.get("summary") or {}
        return cls(
            added=[Finding.from_dict(f) for f in data.get("added", [])],
            removed=[Finding.from_dict(f) for f in data.get("removed", [])],
            modified=[
                ModifiedFinding(
                    old=Finding.from_dict(m["old"]),
                    new_finding=Finding.from_dict(m["new_finding"]),
                )
                for m in data.get("modified", [])
            ],
            unchanged=[Finding.from_dict(f) for f in data.get("unchanged", [])],
            risk_level=Severity(summary.get("risk_level", "low")),
        )

    def to_json(self) -> str:
        """Convert diff to JSON string."""
        return json.dumps(self.to_dict(), indent=2)


@dataclass
class AuditRecord:
    """One entry of the audit trail."""

    version: str
    timestamp: datetime
    secrets: list[Finding] = field(default_factory=list)
    diff: DiffResult | None = None

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "version": self.version,
            "timestamp": self.timestamp.isoformat(),
            "secrets": [f.to_dict() for f in self.secrets],
        }
        if self.diff is not None:
            data["diff"] = self.diff.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AuditRecord":
        diff = data.get("diff")
        return cls(
            version=str(data["version"]),
            timestamp=parse_timestamp(data["timestamp"]),
            secrets=[Finding.from_dict(f) for f in data.get("secrets", [])],
            diff=DiffResult.from_dict(diff) if diff else None,
        )


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp. Naive values are taken as UTC.

    Raises:
        ValueError: If the string is not ISO-8601
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        # fromisoformat only accepts a trailing "Z" from Python 3.11
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
