"""Tests for the command-line interface."""

import json

import pytest
from typer.testing import CliRunner

from leakwatch import __version__
from leakwatch.cli import app
from leakwatch.config import CONFIG_ENV_VAR

from conftest import AWS_ACCESS_KEY

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_cwd(fixtures_dir, monkeypatch):
    """Keep config lookup and default report paths inside a temp dir."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    workdir = fixtures_dir / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    return workdir


class TestScanCommand:
    """Tests for `leakwatch scan`."""

    def test_json_output(self, source_tree):
        result = runner.invoke(app, ["scan", str(source_tree), "--json", "--fail-on", "none"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        names = {f["pattern"]["name"] for f in data["findings"]}
        assert {"AWS Access Key", "Stripe Secret Key"} <= names
        assert data["summary"]["units_scanned"] == 3

    def test_fails_on_critical_by_default(self, source_tree):
        result = runner.invoke(app, ["scan", str(source_tree), "--json"])
        assert result.exit_code == 1

    def test_clean_directory(self, fixtures_dir):
        clean = fixtures_dir / "clean"
        clean.mkdir()
        (clean / "main.py").write_text("print('hello')\n")

        result = runner.invoke(app, ["scan", str(clean)])

        assert result.exit_code == 0
        assert "No secrets found" in result.stdout

    def test_allow_flag(self, fixtures_dir):
        target = fixtures_dir / "one"
        target.mkdir()
        (target / "k.js").write_text(f'const k = "{AWS_ACCESS_KEY}";\n')

        result = runner.invoke(app, ["scan", str(target), "--json", "--allow", AWS_ACCESS_KEY])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["findings"] == []

    def test_merge_overlaps(self, fixtures_dir):
        target = fixtures_dir / "stripe"
        target.mkdir()
        (target / "pay.env").write_text("KEY=sk_live_" + "Zx9Yw8Vu7Ts6Rq5Po4Nm3Lk2\n")

        keep = runner.invoke(app, ["scan", str(target), "--json", "--fail-on", "none"])
        merged = runner.invoke(
            app, ["scan", str(target), "--json", "--fail-on", "none", "--merge-overlaps"]
        )

        assert len(json.loads(keep.stdout)["findings"]) == 2
        assert len(json.loads(merged.stdout)["findings"]) == 1

    def test_reports_written(self, source_tree, fixtures_dir):
        out = fixtures_dir / "reports"
        result = runner.invoke(
            app,
            [
                "scan",
                str(source_tree),
                "--report",
                "--report-dir",
                str(out),
                "--report-formats",
                "txt,csv",
                "--fail-on",
                "none",
            ],
        )

        assert result.exit_code == 0
        assert len(list(out.glob("*.txt"))) == 1
        assert len(list(out.glob("*.csv"))) == 1

    def test_invalid_report_format(self, source_tree):
        result = runner.invoke(app, ["scan", str(source_tree), "--report-formats", "pdf"])
        assert result.exit_code == 2

    def test_invalid_fail_on(self, source_tree):
        result = runner.invoke(app, ["scan", str(source_tree), "--fail-on", "urgent"])
        assert result.exit_code == 2

    def test_config_file_not_scanned(self, isolated_cwd):
        pattern = {"name": "Internal", "pattern": "int_[0-9]{8}", "description": "e.g. int_12345678"}
        config = {"patterns": [pattern]}
        (isolated_cwd / ".leakwatch.json").write_text(json.dumps(config))
        (isolated_cwd / "app.js").write_text("const id = \"int_87654321\";\n")

        result = runner.invoke(app, ["scan", ".", "--json", "--fail-on", "none"])

        assert result.exit_code == 0
        files = {f["file"] for f in json.loads(result.stdout)["findings"]}
        assert files == {"app.js"}

    def test_bad_config(self, source_tree, fixtures_dir):
        config = fixtures_dir / "bad.json"
        config.write_text("[1, 2]")

        result = runner.invoke(app, ["scan", str(source_tree), "--config", str(config)])
        assert result.exit_code == 2


class TestAuditCommand:
    """Tests for `leakwatch audit` and `leakwatch history`."""

    def test_first_audit_then_unchanged(self, source_tree, fixtures_dir):
        audit_file = fixtures_dir / "audit.json"
        args = ["audit", str(source_tree), "--audit-file", str(audit_file), "--json"]

        first = runner.invoke(app, [*args, "--tag", "1.0.0"])
        assert first.exit_code == 1
        first_diff = json.loads(first.stdout)
        assert first_diff["summary"]["risk_level"] == "critical"
        assert first_diff["summary"]["total_removed"] == 0

        second = runner.invoke(app, [*args, "--tag", "1.0.1"])
        assert second.exit_code == 0
        second_diff = json.loads(second.stdout)
        assert second_diff["summary"]["total_added"] == 0
        assert second_diff["summary"]["risk_level"] == "low"

        assert [r["version"] for r in json.loads(audit_file.read_text())] == ["1.0.0", "1.0.1"]

    def test_default_audit_file_not_scanned(self, isolated_cwd):
        (isolated_cwd / "app.js").write_text(f'const k = "{AWS_ACCESS_KEY}";\n')
        args = ["audit", ".", "--json", "--fail-on", "none"]

        first = runner.invoke(app, args)
        assert first.exit_code == 0
        added = json.loads(first.stdout)["summary"]["total_added"]
        assert added >= 1
        assert (isolated_cwd / ".leakwatch-audit.json").is_file()

        second = runner.invoke(app, args)
        assert second.exit_code == 0
        summary = json.loads(second.stdout)["summary"]
        assert summary["total_added"] == 0
        assert summary["total_unchanged"] == added

    def test_compare_file(self, source_tree, fixtures_dir):
        scan = runner.invoke(app, ["scan", str(source_tree), "--json", "--fail-on", "none"])
        baseline = fixtures_dir / "baseline.json"
        baseline.write_text(scan.stdout)

        result = runner.invoke(
            app,
            [
                "audit",
                str(source_tree),
                "--compare",
                str(baseline),
                "--audit-file",
                str(fixtures_dir / "audit.json"),
                "--json",
            ],
        )

        assert result.exit_code == 0
        assert json.loads(result.stdout)["summary"]["total_added"] == 0

    def test_text_report(self, source_tree, fixtures_dir):
        result = runner.invoke(
            app,
            [
                "audit",
                str(source_tree),
                "--audit-file",
                str(fixtures_dir / "audit.json"),
                "--report",
                "--fail-on",
                "none",
            ],
        )

        assert result.exit_code == 0
        assert "SECRET AUDIT REPORT" in result.stdout
        assert "Risk Level: CRITICAL" in result.stdout

    def test_history_export_csv(self, source_tree, fixtures_dir):
        audit_file = fixtures_dir / "audit.json"
        runner.invoke(
            app,
            ["audit", str(source_tree), "--audit-file", str(audit_file), "--tag", "2.0.0", "--json"],
        )

        result = runner.invoke(
            app, ["history", "--audit-file", str(audit_file), "--export", "csv"]
        )

        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines[0] == "Version,Timestamp,Total Secrets,Added,Removed,Modified,Risk Level"
        assert lines[1].startswith("2.0.0,")
        assert lines[1].endswith(",critical")

    def test_history_bad_export_format(self, fixtures_dir):
        result = runner.invoke(
            app, ["history", "--audit-file", str(fixtures_dir / "a.json"), "--export", "xml"]
        )
        assert result.exit_code == 2

    def test_history_empty(self, fixtures_dir):
        result = runner.invoke(app, ["history", "--audit-file", str(fixtures_dir / "a.json")])

        assert result.exit_code == 0
        assert "No audit history" in result.stdout


class TestInfoCommands:
    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_patterns(self):
        result = runner.invoke(app, ["patterns"])

        assert result.exit_code == 0
        assert "Stripe" in result.stdout
        assert "critical" in result.stdout
