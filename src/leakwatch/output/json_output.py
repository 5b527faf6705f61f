"""JSON output for scan results and audit diffs."""

import json
import sys
from typing import TextIO

from leakwatch.audit.results import DiffResult
from leakwatch.scanner.results import ScanResult


def output_json(
    result: ScanResult,
    file: TextIO | None = None,
    indent: int = 2,
) -> None:
    """Output a scan result as JSON.

    Args:
        result: Scan result
        file: Output file (default: stdout)
        indent: JSON indentation level
    """
    file = file or sys.stdout
    json.dump(result_to_payload(result), file, indent=indent)
    file.write("\n")


def output_diff_json(
    diff: DiffResult,
    file: TextIO | None = None,
    indent: int = 2,
) -> None:
    """Output an audit diff as JSON."""
    file = file or sys.stdout
    json.dump(diff.to_dict(), file, indent=indent)
    file.write("\n")


def result_to_payload(result: ScanResult) -> dict:
    """Scan result plus summary counts, ready for json.dumps."""
    return {
        "findings": [f.to_dict() for f in result.findings],
        "summary": _generate_summary(result),
    }


def _generate_summary(result: ScanResult) -> dict:
    """Generate summary statistics for a result.

    Args:
        result: Scan result

    Returns:
        Summary dictionary
    """
    # Count findings by severity
    severity_counts: dict[str, int] = {}
    for finding in result.findings:
        sev = finding.severity.value
        severity_counts[sev] = severity_counts.get(sev, 0) + 1

    # Count by file
    file_counts: dict[str, int] = {}
    for finding in result.findings:
        file_counts[finding.file] = file_counts.get(finding.file, 0) + 1

    return {
        "total_findings": len(result.findings),
        "findings_by_severity": severity_counts,
        "findings_by_file": file_counts,
        "units_total": result.units_total,
        "units_scanned": result.units_scanned,
        "units_skipped": result.units_skipped,
        "timed_out": result.timed_out,
    }
