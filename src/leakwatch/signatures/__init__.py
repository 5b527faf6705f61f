"""Secret signatures for detection."""

from leakwatch.signatures.patterns import DEFAULT_PATTERNS, get_pattern

__all__ = ["DEFAULT_PATTERNS", "get_pattern"]
