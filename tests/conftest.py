"""Pytest fixtures for leakwatch tests.

Secret-shaped values here are assembled from fragments so the source tree
itself does not trip secret scanners.
"""

import pytest

from leakwatch.audit.history import AuditHistory, MemoryAuditStore
from leakwatch.scanner.results import Finding, SecretPattern, Severity

AWS_ACCESS_KEY = "AKIA" + "1234567890ABCD12"
GITHUB_TOKEN = "ghp_" + "A1b2C3d4E5" * 3 + "F6g7H8"
STRIPE_LIVE_KEY = "sk_live_" + "Zx9Yw8Vu7Ts6Rq5Po4Nm3Lk2"
# 40 characters, entropy ~4.66
AWS_SECRET_KEY = "wJalrXUtnFEMI/K7MDENG/" + "bPxRfiCYEXAMPLEKEY"


class FakeClock:
    """Monotonic clock that advances a fixed step on every read."""

    def __init__(self, step: float = 1.0):
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


def make_finding(
    file: str = "a.js",
    line: int = 10,
    pattern_name: str = "GitHub Token",
    severity: str | Severity = Severity.HIGH,
    value: str = "secret-value",
    entropy: float = 3.0,
    column: int = 1,
) -> Finding:
    """Build a finding without running a scan."""
    return Finding(
        file=file,
        line=line,
        column=column,
        pattern=SecretPattern.compile(pattern_name, r"x", severity=severity),
        value=value,
        entropy=entropy,
        context="",
    )


@pytest.fixture
def fixtures_dir(tmp_path):
    """Create a temporary fixtures directory."""
    return tmp_path


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def history():
    """In-memory audit history."""
    return AuditHistory(MemoryAuditStore())


@pytest.fixture
def source_tree(fixtures_dir):
    """A small project with secrets in some files."""
    root = fixtures_dir / "project"
    root.mkdir()
    (root / "src").mkdir()
    (root / "src" / "config.js").write_text(
        "// settings\n"
        f'const awsKey = "{AWS_ACCESS_KEY}";\n'
        "const region = 'us-east-1';\n"
    )
    (root / "src" / "clean.py").write_text("def add(a, b):\n    return a + b\n")
    (root / "deploy.env").write_text(f"STRIPE_KEY={STRIPE_LIVE_KEY}\n")

    # Excluded by default
    (root / "node_modules").mkdir()
    (root / "node_modules" / "dep.js").write_text(f'const k = "{AWS_ACCESS_KEY}";\n')
    (root / "debug.log").write_text(f"token={AWS_ACCESS_KEY}\n")

    return root
