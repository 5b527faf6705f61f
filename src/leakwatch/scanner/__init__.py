"""Secret scanning: patterns, entropy heuristics and the matching engine.

Pipeline:
    1. Sources - files resolved from globs, or inline content
    2. Matching - named patterns per line plus the generic entropy sweep
    3. Filtering - de-duplication and the overlap policy
"""

from leakwatch.scanner.engine import SecretScanner, scan_content, scan_directory
from leakwatch.scanner.entropy import is_likely_not_secret, shannon_entropy
from leakwatch.scanner.filters import apply_overlap_policy, deduplicate
from leakwatch.scanner.registry import PatternRegistry
from leakwatch.scanner.results import (
    Finding,
    InlineFile,
    OverlapPolicy,
    ScanRequest,
    ScanResult,
    SecretPattern,
    Severity,
)

__all__ = [
    # Core scanning
    "SecretScanner",
    "scan_content",
    "scan_directory",
    "PatternRegistry",
    # Data model
    "Finding",
    "InlineFile",
    "OverlapPolicy",
    "ScanRequest",
    "ScanResult",
    "SecretPattern",
    "Severity",
    # Heuristics and filters
    "shannon_entropy",
    "is_likely_not_secret",
    "deduplicate",
    "apply_overlap_policy",
]
