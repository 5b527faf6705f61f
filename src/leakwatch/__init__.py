"""leakwatch - secret scanner with a version-over-version audit trail."""

__version__ = "0.2.0"
