"""Report generators for findings and audit diffs.

The text, JSON and CSV generators are pure: same input, same output, no I/O.
save_reports is the only function here that touches the filesystem.
"""

import csv
import json
from datetime import datetime
from io import StringIO
from pathlib import Path

from leakwatch.audit.results import DiffResult
from leakwatch.scanner.results import SEVERITY_ORDER, Finding, ScanResult, Severity

REPORT_FORMATS = ("txt", "json", "csv")


def generate_findings_report(findings: list[Finding]) -> str:
    """Generate a plain text report grouped by severity.

    Args:
        findings: Findings in the order they should be listed within a tier

    Returns:
        Report as string
    """
    if not findings:
        return "No secrets found in scanned files."

    lines = [f"Found {len(findings)} potential secret(s):", ""]
    lines.extend(_tiered_lines(findings, indent="  "))
    return "\n".join(lines).rstrip("\n")


def generate_diff_report(diff: DiffResult) -> str:
    """Generate a plain text audit report for a diff.

    Args:
        diff: Result of a secret diff audit

    Returns:
        Report as string
    """
    lines = []
    lines.append("=" * 60)
    lines.append("SECRET AUDIT REPORT")
    lines.append("=" * 60)
    lines.append("Summary:")
    lines.append(f"  Added: {len(diff.added)}")
    lines.append(f"  Removed: {len(diff.removed)}")
    lines.append(f"  Modified: {len(diff.modified)}")
    lines.append(f"  Unchanged: {len(diff.unchanged)}")
    lines.append(f"  Risk Level: {diff.risk_level.value.upper()}")
    lines.append("")

    if diff.added:
        lines.append(f"NEW SECRETS ({len(diff.added)}):")
        lines.extend(_tiered_lines(diff.added, indent="  "))

    if diff.removed:
        lines.append(f"REMOVED SECRETS ({len(diff.removed)}):")
        lines.extend(_tiered_lines(diff.removed, indent="  "))

    if diff.modified:
        lines.append(f"MODIFIED SECRETS ({len(diff.modified)}):")
        for sev in SEVERITY_ORDER:
            group = [m for m in diff.modified if m.new_finding.severity == sev]
            if not group:
                continue
            lines.append(f"  {_severity_icon(sev)} {sev.value.upper()} ({len(group)}):")
            for change in group:
                old_sev = change.old.severity
                new_sev = change.new_finding.severity
                marker = f" ({old_sev.value} -> {new_sev.value})" if old_sev != new_sev else ""
                lines.append(f"    {_entry(change.new_finding)}{marker}")
            lines.append("")

    return "\n".join(lines).rstrip("\n")


def generate_json_report(result: ScanResult, scan_path: str) -> str:
    """Generate a JSON report.

    Args:
        result: Scan result
        scan_path: Path that was scanned

    Returns:
        Report as JSON string
    """
    severity_counts = {sev.value: 0 for sev in Severity}
    for finding in result.findings:
        severity_counts[finding.severity.value] += 1

    report = {
        "report_type": "leakwatch_secret_scan",
        "scan_target": scan_path,
        "summary": {
            "total_findings": len(result.findings),
            "findings_by_severity": severity_counts,
            "units_scanned": result.units_scanned,
            "units_skipped": result.units_skipped,
            "timed_out": result.timed_out,
        },
        "findings": [f.to_dict() for f in result.findings],
    }

    return json.dumps(report, indent=2)


def generate_csv_report(findings: list[Finding]) -> str:
    """Generate a CSV report, one row per finding, values redacted.

    Args:
        findings: Findings to list

    Returns:
        Report as CSV string
    """
    output = StringIO()
    writer = csv.writer(output, lineterminator="\n")

    writer.writerow(["File", "Line", "Column", "Pattern", "Severity", "Entropy", "Value"])
    for finding in findings:
        writer.writerow(
            [
                finding.file,
                finding.line,
                finding.column,
                finding.pattern.name,
                finding.severity.value.upper(),
                f"{finding.entropy:.2f}",
                redact(finding.value),
            ]
        )

    return output.getvalue()


def save_reports(
    result: ScanResult,
    scan_path: str,
    output_dir: Path,
    formats: list[str] | None = None,
) -> dict[str, Path]:
    """Save reports in multiple formats.

    Args:
        result: Scan result
        scan_path: Path that was scanned
        output_dir: Directory to save reports in
        formats: List of formats to generate (default: all)

    Returns:
        Dictionary mapping format to saved file path
    """
    if formats is None:
        formats = list(REPORT_FORMATS)

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    saved_files = {}
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    generators = {
        "txt": lambda: generate_findings_report(result.findings),
        "json": lambda: generate_json_report(result, scan_path),
        "csv": lambda: generate_csv_report(result.findings),
    }

    for fmt in formats:
        if fmt in generators:
            filepath = output_dir / f"leakwatch_report_{timestamp}.{fmt}"
            filepath.write_text(generators[fmt](), encoding="utf-8")
            saved_files[fmt] = filepath

    return saved_files


def redact(value: str, visible: int = 4) -> str:
    """Keep the first few characters of a secret and mask the rest."""
    if len(value) <= visible:
        return "*" * len(value)
    return value[:visible] + "*" * (len(value) - visible)


def _entry(finding: Finding) -> str:
    return f"{finding.file}:{finding.line} - {finding.pattern.name}"


def _tiered_lines(findings: list[Finding], indent: str) -> list[str]:
    """Group findings critical first, keeping input order within a tier."""
    lines = []
    for sev in SEVERITY_ORDER:
        group = [f for f in findings if f.severity == sev]
        if not group:
            continue
        lines.append(f"{indent}{_severity_icon(sev)} {sev.value.upper()} ({len(group)}):")
        for finding in group:
            lines.append(f"{indent}  {_entry(finding)}")
        lines.append("")
    return lines


def _severity_icon(severity: Severity) -> str:
    """Get text icon for severity level."""
    icons = {
        Severity.CRITICAL: "!!",
        Severity.HIGH: "! ",
        Severity.MEDIUM: "* ",
        Severity.LOW: "- ",
    }
    return icons.get(severity, "? ")
