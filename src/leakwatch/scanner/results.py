"""Result data structures for secret findings."""

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class Severity(Enum):
    """Severity levels for detected secrets."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def weight(self) -> int:
        """Numeric rank, higher is more severe."""
        return SEVERITY_WEIGHTS[self]


SEVERITY_WEIGHTS = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}

# Most severe first
SEVERITY_ORDER = [
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
]


@dataclass(frozen=True)
class SecretPattern:
    """A named detection rule."""

    name: str
    regex: re.Pattern
    description: str
    severity: Severity
    entropy: float | None = None  # Minimum entropy gate for a match

    @classmethod
    def compile(
        cls,
        name: str,
        pattern: str,
        description: str = "",
        severity: str | Severity = Severity.MEDIUM,
        entropy: float | None = None,
    ) -> "SecretPattern":
        """Build a pattern from its source string.

        Raises:
            re.error: If the regular expression is invalid
            ValueError: If the severity is unknown
        """
        return cls(
            name=name,
            regex=re.compile(pattern),
            description=description or name,
            severity=Severity(severity),
            entropy=entropy,
        )

    def to_dict(self) -> dict:
        """Convert pattern to dictionary (JSON-safe)."""
        return {
            "name": self.name,
            "pattern": self.regex.pattern,
            "description": self.description,
            "severity": self.severity.value,
            "entropy": self.entropy,
        }


# Pseudo-pattern attached to findings from the generic entropy sweep
HIGH_ENTROPY_PATTERN_NAME = "High Entropy String"
HIGH_ENTROPY_REGEX = re.compile(r"[a-zA-Z0-9+/]{20,}={0,2}")


def high_entropy_pattern(entropy: float) -> SecretPattern:
    """Synthetic pattern describing a generic high-entropy token."""
    return SecretPattern(
        name=HIGH_ENTROPY_PATTERN_NAME,
        regex=HIGH_ENTROPY_REGEX,
        description=f"High entropy string ({entropy:.2f})",
        severity=Severity.MEDIUM,
    )


@dataclass
class Finding:
    """A single detected secret occurrence."""

    file: str
    line: int  # 1-based
    column: int  # 1-based
    pattern: SecretPattern
    value: str
    entropy: float
    context: str = ""

    @property
    def severity(self) -> Severity:
        return self.pattern.severity

    @property
    def dedup_key(self) -> tuple[str, int, int, str]:
        """Key under which two findings are the same occurrence."""
        return (self.file, self.line, self.column, self.value)

    @property
    def identity_key(self) -> tuple[str, int, str]:
        """Key correlating findings across scans (value excluded)."""
        return (self.file, self.line, self.pattern.name)

    def to_dict(self) -> dict:
        """Convert finding to dictionary."""
        return {
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "pattern": {
                "name": self.pattern.name,
                "description": self.pattern.description,
                "severity": self.pattern.severity.value,
            },
            "value": self.value,
            "entropy": self.entropy,
            "context": self.context,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Finding":
        """Rebuild a finding from its dictionary form.

        The stored pattern carries no regex, so a literal match of the
        name stands in for it.
        """
        pattern_data = data.get("pattern") or {}
        name = pattern_data.get("name", "")
        pattern = SecretPattern(
            name=name,
            regex=re.compile(re.escape(name)),
            description=pattern_data.get("description", ""),
            severity=Severity(pattern_data.get("severity", "medium")),
        )
        return cls(
            file=data["file"],
            line=int(data["line"]),
            column=int(data.get("column", 1)),
            pattern=pattern,
            value=data.get("value", ""),
            entropy=float(data.get("entropy") or 0.0),
            context=data.get("context", ""),
        )


DEFAULT_INCLUDE = ["**/*"]
DEFAULT_EXCLUDE = ["node_modules/**", "dist/**", "build/**", ".git/**", "*.log"]
DEFAULT_ENTROPY = 3.5
DEFAULT_MAX_FILE_SIZE = 1024 * 1024  # 1MB
DEFAULT_TIMEOUT_MS = 30000
DEFAULT_CONTEXT_LINES = 2
DEFAULT_MAX_WORKERS = 4


class OverlapPolicy(Enum):
    """What to do when a named pattern and the entropy sweep flag the same token."""

    KEEP_BOTH = "keep_both"
    MERGE = "merge"


@dataclass
class InlineFile:
    """In-memory content supplied with a scan request."""

    file: str
    content: str


@dataclass
class ScanRequest:
    """Options for a single scan."""

    patterns: list[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE))
    exclude: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE))
    entropy: float = DEFAULT_ENTROPY
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    files: list[InlineFile] | None = None
    root: Path | None = None
    context_lines: int = DEFAULT_CONTEXT_LINES
    max_workers: int = DEFAULT_MAX_WORKERS
    overlap_policy: OverlapPolicy = OverlapPolicy.KEEP_BOTH

    def __post_init__(self) -> None:
        if self.entropy < 0:
            raise ValueError(f"entropy must be >= 0, got {self.entropy}")
        if self.max_file_size < 0:
            raise ValueError(f"max_file_size must be >= 0, got {self.max_file_size}")
        if self.timeout_ms < 0:
            raise ValueError(f"timeout_ms must be >= 0, got {self.timeout_ms}")
        if self.context_lines < 0:
            raise ValueError(f"context_lines must be >= 0, got {self.context_lines}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if isinstance(self.patterns, str) or isinstance(self.exclude, str):
            raise ValueError("patterns and exclude must be lists of globs")
        if self.files is not None:
            self.files = [
                f if isinstance(f, InlineFile) else InlineFile(f["file"], f["content"])
                for f in self.files
            ]
        self.overlap_policy = OverlapPolicy(self.overlap_policy)


@dataclass
class ScanResult:
    """Complete result of one scan."""

    findings: list[Finding] = field(default_factory=list)
    units_total: int = 0
    units_scanned: int = 0
    units_skipped: int = 0
    timed_out: bool = False
    scan_time_ms: float = 0.0

    @property
    def is_clean(self) -> bool:
        """True when nothing was found."""
        return not self.findings

    @property
    def max_severity(self) -> Severity | None:
        """Get the highest severity finding."""
        for sev in SEVERITY_ORDER:
            if any(f.severity == sev for f in self.findings):
                return sev
        return None

    def to_dict(self) -> dict:
        """Convert scan result to dictionary."""
        return {
            "findings": [f.to_dict() for f in self.findings],
            "max_severity": self.max_severity.value if self.max_severity else None,
            "units_total": self.units_total,
            "units_scanned": self.units_scanned,
            "units_skipped": self.units_skipped,
            "timed_out": self.timed_out,
            "scan_time_ms": self.scan_time_ms,
        }

    def to_json(self) -> str:
        """Convert scan result to JSON string."""
        return json.dumps(self.to_dict(), indent=2)
