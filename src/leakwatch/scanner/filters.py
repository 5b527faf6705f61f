"""Post-match filtering: de-duplication and entropy-sweep overlap handling."""

from leakwatch.scanner.results import HIGH_ENTROPY_PATTERN_NAME, Finding, OverlapPolicy


def deduplicate(findings: list[Finding]) -> list[Finding]:
    """Drop findings whose (file, line, column, value) was already seen.

    The first occurrence wins and input order is preserved.
    """
    seen: set[tuple[str, int, int, str]] = set()
    unique = []
    for finding in findings:
        key = finding.dedup_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(finding)
    return unique


def _span(finding: Finding) -> tuple[int, int]:
    start = finding.column - 1
    return start, start + len(finding.value)


def _overlaps(a: Finding, b: Finding) -> bool:
    a_start, a_end = _span(a)
    b_start, b_end = _span(b)
    return a_start < b_end and b_start < a_end


def apply_overlap_policy(findings: list[Finding], policy: OverlapPolicy) -> list[Finding]:
    """Resolve tokens reported by both a named pattern and the entropy sweep.

    With KEEP_BOTH every finding is returned. With MERGE, a generic
    high-entropy finding is dropped when a named-pattern finding on the
    same file and line covers an overlapping span.
    """
    if policy is OverlapPolicy.KEEP_BOTH:
        return list(findings)

    named: dict[tuple[str, int], list[Finding]] = {}
    for finding in findings:
        if finding.pattern.name != HIGH_ENTROPY_PATTERN_NAME:
            named.setdefault((finding.file, finding.line), []).append(finding)

    kept = []
    for finding in findings:
        if finding.pattern.name == HIGH_ENTROPY_PATTERN_NAME:
            candidates = named.get((finding.file, finding.line), [])
            if any(_overlaps(finding, other) for other in candidates):
                continue
        kept.append(finding)
    return kept
