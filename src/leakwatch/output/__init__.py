"""Output formatters for findings and audit diffs."""

from leakwatch.output.console import print_diff, print_results
from leakwatch.output.json_output import output_diff_json, output_json
from leakwatch.output.reports import generate_diff_report, generate_findings_report

__all__ = [
    "print_results",
    "print_diff",
    "output_json",
    "output_diff_json",
    "generate_findings_report",
    "generate_diff_report",
]
