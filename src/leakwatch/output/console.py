"""Rich console output for scan results and audits."""

from rich import box
from rich.console import Console
from rich.table import Table

from leakwatch.audit.results import AuditRecord, DiffResult
from leakwatch.output.reports import redact
from leakwatch.scanner.results import SEVERITY_ORDER, ScanResult, SecretPattern, Severity

console = Console()

SEVERITY_COLORS = {
    Severity.CRITICAL: "red bold",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "blue",
}

SEVERITY_ICONS = {
    Severity.CRITICAL: "[red]!![/red]",
    Severity.HIGH: "[red]![/red]",
    Severity.MEDIUM: "[yellow]*[/yellow]",
    Severity.LOW: "[blue]-[/blue]",
}


def print_results(result: ScanResult, verbose: bool = False) -> None:
    """Print scan results to console.

    Args:
        result: Scan result
        verbose: Show context lines and scan statistics
    """
    if verbose:
        console.print(
            f"[dim]Scanned {result.units_scanned}/{result.units_total} unit(s), "
            f"skipped {result.units_skipped}, {result.scan_time_ms:.1f}ms[/dim]"
        )

    if result.timed_out:
        console.print("[yellow]Scan timed out - results are partial[/yellow]")

    if not result.findings:
        console.print("[green]No secrets found[/green]")
        return

    table = Table(
        box=box.SIMPLE,
        show_header=True,
        header_style="bold",
        padding=(0, 1),
    )
    table.add_column("", width=3)  # Icon
    table.add_column("Severity", width=10)
    table.add_column("Location", no_wrap=False)
    table.add_column("Pattern", no_wrap=False)
    table.add_column("Value", no_wrap=False, style="cyan")

    sorted_findings = sorted(result.findings, key=lambda f: SEVERITY_ORDER.index(f.severity))
    for finding in sorted_findings:
        style = SEVERITY_COLORS[finding.severity]
        table.add_row(
            SEVERITY_ICONS[finding.severity],
            f"[{style}]{finding.severity.value.upper()}[/{style}]",
            f"{finding.file}:{finding.line}:{finding.column}",
            finding.pattern.name,
            redact(finding.value),
        )
        if verbose and finding.context:
            table.add_row("", "", f"[dim]{finding.context}[/dim]", "", "")

    console.print(table)
    _print_summary(result)


def _print_summary(result: ScanResult) -> None:
    """Print severity breakdown of a scan."""
    severity_counts = {sev: 0 for sev in Severity}
    for finding in result.findings:
        severity_counts[finding.severity] += 1

    parts = []
    for sev in SEVERITY_ORDER:
        count = severity_counts[sev]
        if count > 0:
            style = SEVERITY_COLORS[sev]
            parts.append(f"[{style}]{count} {sev.value}[/{style}]")

    console.print(f"[bold]Found {len(result.findings)} potential secret(s):[/bold] " + ", ".join(parts))


def print_diff(diff: DiffResult) -> None:
    """Print an audit diff summary and the new secrets."""
    style = SEVERITY_COLORS[diff.risk_level]
    console.print()
    console.print("[bold]Secret Diff Audit Results[/bold]")
    console.print(f"  Added: {len(diff.added)}")
    console.print(f"  Removed: {len(diff.removed)}")
    console.print(f"  Modified: {len(diff.modified)}")
    console.print(f"  Unchanged: {len(diff.unchanged)}")
    console.print(f"  Risk Level: [{style}]{diff.risk_level.value.upper()}[/{style}]")

    if diff.added:
        console.print()
        console.print("[red]Added secrets:[/red]")
        for finding in diff.added:
            console.print(
                f"  {SEVERITY_ICONS[finding.severity]} {finding.file}:{finding.line} - "
                f"{finding.pattern.name} ({finding.severity.value})"
            )

    if diff.removed:
        console.print()
        console.print("[green]Removed secrets:[/green]")
        for finding in diff.removed:
            console.print(f"  {finding.file}:{finding.line} - {finding.pattern.name}")


def print_history(records: list[AuditRecord]) -> None:
    """Print audit records as a table."""
    if not records:
        console.print("[dim]No audit history[/dim]")
        return

    table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
    table.add_column("Version")
    table.add_column("Timestamp")
    table.add_column("Secrets", justify="right")
    table.add_column("Added", justify="right")
    table.add_column("Removed", justify="right")
    table.add_column("Modified", justify="right")
    table.add_column("Risk")

    for record in records:
        if record.diff is not None:
            style = SEVERITY_COLORS[record.diff.risk_level]
            counts = [
                str(len(record.diff.added)),
                str(len(record.diff.removed)),
                str(len(record.diff.modified)),
                f"[{style}]{record.diff.risk_level.value}[/{style}]",
            ]
        else:
            counts = ["0", "0", "0", "[dim]unknown[/dim]"]
        table.add_row(
            record.version,
            record.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            str(len(record.secrets)),
            *counts,
        )

    console.print(table)


def print_patterns(patterns: list[SecretPattern]) -> None:
    """Print the active detection patterns."""
    table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
    table.add_column("Name", style="bold")
    table.add_column("Severity")
    table.add_column("Min Entropy", justify="right")
    table.add_column("Description")

    for pattern in patterns:
        style = SEVERITY_COLORS[pattern.severity]
        table.add_row(
            pattern.name,
            f"[{style}]{pattern.severity.value}[/{style}]",
            f"{pattern.entropy:.1f}" if pattern.entropy is not None else "-",
            pattern.description,
        )

    console.print(table)
