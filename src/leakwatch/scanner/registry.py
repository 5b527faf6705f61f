"""Registry of detection patterns and allow-listed values."""

import logging
import re
import threading
from collections.abc import Iterable
from typing import Any

from leakwatch.scanner.results import SecretPattern

logger = logging.getLogger(__name__)


class PatternRegistry:
    """Built-in patterns, caller-added patterns, and an allow-list.

    Allow-listing suppresses a literal value after it has matched; it does
    not disable the pattern that matched it.
    """

    def __init__(
        self,
        patterns: Iterable[SecretPattern] | None = None,
        allowed_secrets: Iterable[str] | None = None,
        include_defaults: bool = True,
    ):
        """
        Initialize the registry.

        Args:
            patterns: Custom patterns appended after the defaults
            allowed_secrets: Exact literal values never reported
            include_defaults: Whether to start from the built-in rule set
        """
        # Lazy import to avoid circular dependencies
        from leakwatch.signatures.patterns import DEFAULT_PATTERNS

        self._lock = threading.Lock()
        self._defaults: tuple[SecretPattern, ...] = (
            tuple(DEFAULT_PATTERNS) if include_defaults else ()
        )
        self._custom: list[SecretPattern] = list(patterns or [])
        self._allowed: set[str] = set(allowed_secrets or [])

    def add_pattern(self, pattern: SecretPattern) -> None:
        """Append a custom pattern."""
        with self._lock:
            self._custom.append(pattern)

    def replace_patterns(self, patterns: Iterable[SecretPattern]) -> None:
        """Replace every custom pattern at once. Defaults are kept."""
        new_patterns = list(patterns)
        with self._lock:
            self._custom = new_patterns

    def load_pattern_dicts(self, entries: Iterable[dict[str, Any]]) -> list[SecretPattern]:
        """Compile and add patterns from their JSON form.

        An entry with an invalid regex, unknown severity or missing field is
        logged and skipped; the remaining entries are still added.

        Args:
            entries: Dicts with name, pattern, description, severity, entropy

        Returns:
            The patterns that were added
        """
        added = []
        for entry in entries:
            try:
                pattern = SecretPattern.compile(
                    name=entry["name"],
                    pattern=entry["pattern"],
                    description=entry.get("description", ""),
                    severity=entry.get("severity", "medium"),
                    entropy=entry.get("entropy"),
                )
            except (AttributeError, KeyError, TypeError, ValueError, re.error) as e:
                label = entry.get("name", entry) if isinstance(entry, dict) else entry
                logger.warning("Skipping invalid pattern %r: %s", label, e)
                continue
            self.add_pattern(pattern)
            added.append(pattern)
        return added

    def add_allowed_secret(self, value: str) -> None:
        """Never report this exact literal value."""
        with self._lock:
            self._allowed.add(value)

    def is_allowed(self, value: str) -> bool:
        with self._lock:
            return value in self._allowed

    @property
    def allowed_secrets(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._allowed)

    def list_patterns(self) -> list[SecretPattern]:
        """Snapshot of all active patterns, defaults first."""
        with self._lock:
            return [*self._defaults, *self._custom]
