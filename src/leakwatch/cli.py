"""Command-line interface for leakwatch."""

import glob
import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from leakwatch import __version__
from leakwatch.audit.diff import DiffAuditor, DiffRequest
from leakwatch.audit.history import AuditHistory, JsonFileAuditStore
from leakwatch.config import ConfigError, LeakwatchConfig, build_registry, build_request, load_config
from leakwatch.output.console import print_diff, print_history, print_patterns, print_results
from leakwatch.output.json_output import output_diff_json, output_json
from leakwatch.output.reports import REPORT_FORMATS, generate_diff_report, save_reports
from leakwatch.scanner.engine import SecretScanner
from leakwatch.scanner.results import Finding, OverlapPolicy, ScanResult, Severity

app = typer.Typer(
    name="leakwatch",
    help="Secret scanner with a version-over-version audit trail",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    """Route library logging through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_config(config_path: Path | None) -> LeakwatchConfig:
    try:
        return load_config(config_path)
    except ConfigError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(2) from e


def _parse_fail_on(value: str | None, config: LeakwatchConfig) -> Severity | None:
    if value is None:
        return config.fail_on
    if value.lower() == "none":
        return None
    try:
        return Severity(value.lower())
    except ValueError as e:
        err_console.print(f"[red]Invalid --fail-on value: {value}[/red]")
        err_console.print("[dim]Valid values: critical, high, medium, low, none[/dim]")
        raise typer.Exit(2) from e


def _own_files(root: Path, config: LeakwatchConfig, audit_file: Path | None) -> list[str]:
    """Exclude globs for the audit history and config file when they sit under root."""
    root = root.resolve()
    globs = []
    for own in (audit_file or Path(config.audit_file), config.source):
        if own is None:
            continue
        try:
            relative = Path(own).resolve().relative_to(root)
        except ValueError:
            continue
        globs.append(glob.escape(relative.as_posix()))
    return globs


def _run_scan(
    path: Path,
    config: LeakwatchConfig,
    allow: list[str] | None,
    show_progress: bool,
    **overrides,
) -> ScanResult:
    registry = build_registry(config)
    for value in allow or []:
        registry.add_allowed_secret(value)

    try:
        request = build_request(config, root=path, **overrides)
    except ValueError as e:
        err_console.print(f"[red]Invalid scan options: {e}[/red]")
        raise typer.Exit(2) from e

    scanner = SecretScanner(registry)
    if not show_progress:
        return scanner.scan(request)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=err_console,
        transient=True,
    ) as progress:
        task = progress.add_task("Scanning files...", total=None)

        def on_progress(name: str, completed: int, total: int) -> None:
            # Truncate long names
            if len(name) > 40:
                name = "..." + name[-37:]
            progress.update(task, completed=completed, total=total, description=f"Scanning: {name}")

        return scanner.scan(request, progress_callback=on_progress)


@app.command()
def scan(
    path: Path = typer.Argument(
        Path("."),
        help="Directory to scan",
        exists=True,
        file_okay=False,
    ),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: $LEAKWATCH_CONFIG or ./.leakwatch.json)",
    ),
    include: list[str] | None = typer.Option(
        None,
        "--include",
        "-i",
        help="Include glob (repeatable, default: **/*)",
    ),
    exclude: list[str] | None = typer.Option(
        None,
        "--exclude",
        "-x",
        help="Exclude glob (repeatable, replaces the defaults)",
    ),
    allow: list[str] | None = typer.Option(
        None,
        "--allow",
        help="Exact value to never report (repeatable)",
    ),
    entropy: float | None = typer.Option(
        None,
        "--entropy",
        help="Minimum entropy for the generic sweep, 0 disables it (default: 3.5)",
        min=0.0,
    ),
    max_file_size: int | None = typer.Option(
        None,
        "--max-file-size",
        help="Skip files larger than this many bytes (default: 1048576)",
        min=0,
    ),
    timeout_ms: int | None = typer.Option(
        None,
        "--timeout",
        help="Stop dispatching files after this many milliseconds (default: 30000)",
        min=0,
    ),
    workers: int | None = typer.Option(
        None,
        "--workers",
        "-w",
        help="Files scanned in parallel (default: 4)",
        min=1,
    ),
    merge_overlaps: bool = typer.Option(
        False,
        "--merge-overlaps",
        help="Drop generic entropy findings that overlap a named-pattern finding",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output results as JSON to console",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show context lines and debug logging",
    ),
    report: bool = typer.Option(
        False,
        "--report/--no-report",
        help="Generate report files (txt, json, csv)",
    ),
    report_dir: Path | None = typer.Option(
        None,
        "--report-dir",
        "-o",
        help="Directory to save reports (default: current directory)",
    ),
    report_formats: str | None = typer.Option(
        None,
        "--report-formats",
        "-f",
        help="Comma-separated report formats: txt,json,csv (default: all)",
    ),
    fail_on: str | None = typer.Option(
        None,
        "--fail-on",
        help="Exit 1 when a finding is at least this severity, or 'none' (default: high)",
    ),
) -> None:
    """Scan files for secrets.

    Examples:
        leakwatch scan
        leakwatch scan ./src --exclude "tests/**"
        leakwatch scan . --json --fail-on critical
        leakwatch scan . --report --report-dir ./reports
    """
    _configure_logging(verbose)
    config = _load_config(config_path)
    threshold = _parse_fail_on(fail_on, config)

    formats = None
    if report_formats:
        formats = [f.strip().lower() for f in report_formats.split(",")]
        invalid = set(formats) - set(REPORT_FORMATS)
        if invalid:
            err_console.print(f"[red]Invalid report formats: {', '.join(sorted(invalid))}[/red]")
            err_console.print(f"[dim]Valid formats: {', '.join(REPORT_FORMATS)}[/dim]")
            raise typer.Exit(2)

    result = _run_scan(
        path,
        config,
        allow,
        show_progress=not json_output,
        patterns=include or None,
        exclude=[*(exclude or config.exclude), *_own_files(path, config, None)],
        entropy=entropy,
        max_file_size=max_file_size,
        timeout_ms=timeout_ms,
        max_workers=workers,
        overlap_policy=OverlapPolicy.MERGE if merge_overlaps else None,
    )

    if json_output:
        output_json(result)
    else:
        print_results(result, verbose=verbose)

    if report:
        saved_files = save_reports(
            result,
            scan_path=str(path),
            output_dir=report_dir or Path.cwd(),
            formats=formats,
        )
        console.print("[bold green]Reports saved:[/bold green]")
        for fmt, filepath in saved_files.items():
            console.print(f"  [cyan]{fmt.upper()}:[/cyan] {filepath}")

    # Exit 1 when any finding meets the threshold
    if threshold is not None and any(
        f.severity.weight >= threshold.weight for f in result.findings
    ):
        raise typer.Exit(1)


def _load_findings(path: Path) -> list[Finding]:
    """Findings from a JSON list or from a `scan --json` payload."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if isinstance(data, dict):
            data = data.get("findings", [])
        return [Finding.from_dict(item) for item in data]
    except (OSError, ValueError, KeyError, TypeError) as e:
        err_console.print(f"[red]Cannot load findings from {path}: {e}[/red]")
        raise typer.Exit(2) from e


def _open_history(config: LeakwatchConfig, audit_file: Path | None) -> AuditHistory:
    store = JsonFileAuditStore(
        audit_file or Path(config.audit_file),
        max_records=config.history_limit,
    )
    return AuditHistory(store)


@app.command()
def audit(
    path: Path = typer.Argument(
        Path("."),
        help="Directory to scan",
        exists=True,
        file_okay=False,
    ),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: $LEAKWATCH_CONFIG or ./.leakwatch.json)",
    ),
    since: str | None = typer.Option(
        None,
        "--since",
        help="Compare with the newest audit at or after this ISO-8601 time",
    ),
    tag: str | None = typer.Option(
        None,
        "--tag",
        "-t",
        help="Version label: baseline to compare with and label for this audit",
    ),
    compare: Path | None = typer.Option(
        None,
        "--compare",
        "-c",
        help="Compare with findings from a JSON file",
        exists=True,
        dir_okay=False,
    ),
    audit_file: Path | None = typer.Option(
        None,
        "--audit-file",
        help="Audit history file (default: ./.leakwatch-audit.json)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output the diff as JSON",
    ),
    report: bool = typer.Option(
        False,
        "--report",
        "-r",
        help="Print the full text audit report",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Debug logging",
    ),
    fail_on: str | None = typer.Option(
        None,
        "--fail-on",
        help="Exit 1 when new secrets raise the risk to at least this level, or 'none'",
    ),
) -> None:
    """Scan, then diff the findings against the audit history.

    Examples:
        leakwatch audit
        leakwatch audit --tag v1.2.0
        leakwatch audit --since 2024-01-01T00:00:00Z --report
        leakwatch audit --compare baseline.json --json
    """
    _configure_logging(verbose)
    config = _load_config(config_path)
    threshold = _parse_fail_on(fail_on, config)

    baseline = _load_findings(compare) if compare else None
    result = _run_scan(
        path,
        config,
        None,
        show_progress=not json_output,
        exclude=[*config.exclude, *_own_files(path, config, audit_file)],
    )

    auditor = DiffAuditor(_open_history(config, audit_file))
    try:
        diff = auditor.audit_diff(
            DiffRequest(
                current_secrets=result.findings,
                since=since,
                version=tag,
                compare_to=baseline,
            )
        )
    except ValueError as e:
        err_console.print(f"[red]Invalid --since value: {e}[/red]")
        raise typer.Exit(2) from e

    if json_output:
        output_diff_json(diff)
    elif report:
        console.print(generate_diff_report(diff), markup=False, highlight=False)
    else:
        print_diff(diff)

    has_new = bool(diff.added) or any(m.severity_escalated for m in diff.modified)
    if threshold is not None and has_new and diff.risk_level.weight >= threshold.weight:
        raise typer.Exit(1)


@app.command()
def history(
    config_path: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: $LEAKWATCH_CONFIG or ./.leakwatch.json)",
    ),
    audit_file: Path | None = typer.Option(
        None,
        "--audit-file",
        help="Audit history file (default: ./.leakwatch-audit.json)",
    ),
    limit: int = typer.Option(
        10,
        "--limit",
        "-n",
        help="Number of most recent audits to show",
        min=1,
    ),
    export: str | None = typer.Option(
        None,
        "--export",
        "-e",
        help="Export the whole history as json or csv",
    ),
) -> None:
    """Show or export the audit history.

    Examples:
        leakwatch history
        leakwatch history --limit 5
        leakwatch history --export csv > audits.csv
    """
    _configure_logging(False)
    config = _load_config(config_path)
    audit_history = _open_history(config, audit_file)

    if export:
        try:
            typer.echo(audit_history.export(export.lower()))
        except ValueError as e:
            err_console.print(f"[red]{e}[/red]")
            raise typer.Exit(2) from e
        return

    print_history(audit_history.recent(limit))


@app.command()
def patterns(
    config_path: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: $LEAKWATCH_CONFIG or ./.leakwatch.json)",
    ),
) -> None:
    """List the active detection patterns."""
    _configure_logging(False)
    config = _load_config(config_path)
    print_patterns(build_registry(config).list_patterns())


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"leakwatch v{__version__}")


@app.callback()
def main() -> None:
    """leakwatch - find secrets before they ship.

    Scans source trees for credentials and high-entropy strings, and keeps an
    audit trail of how the set of secrets changes between versions.
    """
    pass


if __name__ == "__main__":
    app()
