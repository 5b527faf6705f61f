"""Main scanning engine that applies secret patterns to content.

Files and inline content are read into ContentUnits and matched by one
routine. Units are dispatched to a bounded thread pool; a shared deadline is
checked before each unit is taken, so a timed-out scan returns everything
collected so far instead of failing.
"""

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

from leakwatch.scanner.entropy import find_high_entropy_tokens, shannon_entropy
from leakwatch.scanner.filters import apply_overlap_policy, deduplicate
from leakwatch.scanner.registry import PatternRegistry
from leakwatch.scanner.results import (
    Finding,
    ScanRequest,
    ScanResult,
    SecretPattern,
    high_entropy_pattern,
)
from leakwatch.scanner.sources import (
    ContentUnit,
    InlineContent,
    Source,
    SourceSkipped,
    collect_files,
    read_unit,
)

ProgressCallback = Callable[[str, int, int], None]


class _Dispatcher:
    """Hands out units to workers until the list is drained or time runs out."""

    def __init__(
        self,
        sources: list[Source],
        clock: Callable[[], float],
        start: float,
        timeout_ms: int,
    ):
        self._sources = sources
        self._clock = clock
        self._start = start
        self._timeout_s = timeout_ms / 1000
        self._lock = threading.Lock()
        self._next = 0
        self.timed_out = False
        self.completed = 0

    def take(self) -> tuple[int, Source] | None:
        with self._lock:
            if self.timed_out or self._next >= len(self._sources):
                return None
            if self._clock() - self._start > self._timeout_s:
                self.timed_out = True
                return None
            index = self._next
            self._next += 1
            return index, self._sources[index]

    def done(self) -> int:
        with self._lock:
            self.completed += 1
            return self.completed


class SecretScanner:
    """Scans content for credential-shaped and high-entropy strings."""

    def __init__(
        self,
        registry: PatternRegistry | None = None,
        logger: logging.Logger | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the scanner.

        Args:
            registry: Patterns and allow-list (default: built-ins only)
            logger: Logger for diagnostics (default: this module's logger)
            clock: Monotonic time source in seconds, used for the timeout
        """
        self.registry = registry or PatternRegistry()
        self._logger = logger or logging.getLogger(__name__)
        self._clock = clock

    def scan(
        self,
        request: ScanRequest | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> ScanResult:
        """Scan inline content or files matched by the request's globs.

        Args:
            request: Scan options (default: ScanRequest())
            progress_callback: Optional callback(name, completed, total)

        Returns:
            ScanResult with de-duplicated findings. On timeout the result
            holds the findings gathered so far and timed_out is set.
        """
        request = request or ScanRequest()
        start = self._clock()
        wall_start = time.perf_counter()

        sources = self._resolve_sources(request)
        total = len(sources)
        dispatcher = _Dispatcher(sources, self._clock, start, request.timeout_ms)
        patterns = self.registry.list_patterns()

        per_unit: dict[int, list[Finding]] = {}
        skipped = 0

        def worker() -> tuple[dict[int, list[Finding]], int]:
            collected: dict[int, list[Finding]] = {}
            worker_skipped = 0
            while True:
                item = dispatcher.take()
                if item is None:
                    break
                index, source = item
                try:
                    unit = read_unit(source, request.max_file_size)
                except SourceSkipped as e:
                    self._logger.warning("Skipping %s: %s", source.name, e)
                    worker_skipped += 1
                else:
                    collected[index] = self._match_unit(unit, patterns, request)
                completed = dispatcher.done()
                if progress_callback:
                    progress_callback(source.name, completed, total)
            return collected, worker_skipped

        workers = max(1, min(request.max_workers, total))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(worker) for _ in range(workers)]
            for future in futures:
                collected, worker_skipped = future.result()
                per_unit.update(collected)
                skipped += worker_skipped

        if dispatcher.timed_out:
            self._logger.warning(
                "Scan timeout reached after %d of %d unit(s)", dispatcher.completed, total
            )

        # Merge in unit order
        merged = [f for index in sorted(per_unit) for f in per_unit[index]]
        findings = apply_overlap_policy(deduplicate(merged), request.overlap_policy)

        return ScanResult(
            findings=findings,
            units_total=total,
            units_scanned=len(per_unit),
            units_skipped=skipped,
            timed_out=dispatcher.timed_out,
            scan_time_ms=(time.perf_counter() - wall_start) * 1000,
        )

    def scan_content(self, content: str, name: str = "<inline>", **options: Any) -> ScanResult:
        """Scan a single string.

        Args:
            content: Text to scan
            name: File identifier reported in findings
            **options: Other ScanRequest fields

        Returns:
            ScanResult for the content
        """
        request = ScanRequest(files=[{"file": name, "content": content}], **options)
        return self.scan(request)

    def _resolve_sources(self, request: ScanRequest) -> list[Source]:
        """Inline content bypasses filesystem resolution entirely."""
        if request.files is not None:
            return [InlineContent(name=f.file, text=f.content) for f in request.files]

        root = Path(request.root) if request.root is not None else Path.cwd()
        return list(collect_files(root, request.patterns, request.exclude))

    def _match_unit(
        self,
        unit: ContentUnit,
        patterns: list[SecretPattern],
        request: ScanRequest,
    ) -> list[Finding]:
        """Apply named patterns and the entropy sweep to one unit."""
        findings: list[Finding] = []
        log = self._logger
        debug = log.isEnabledFor(logging.DEBUG)

        for pattern in patterns:
            for index, line in enumerate(unit.lines):
                if not line:
                    continue
                # finditer keeps no state between lines or files
                for match in pattern.regex.finditer(line):
                    value = match.group(0)
                    if not value:
                        continue
                    if debug:
                        log.debug(
                            "%s:%d:%d matched %s",
                            unit.name,
                            index + 1,
                            match.start() + 1,
                            pattern.name,
                        )
                    if self.registry.is_allowed(value):
                        if debug:
                            log.debug("Skipping allow-listed value at %s:%d", unit.name, index + 1)
                        continue

                    entropy = shannon_entropy(value)
                    if pattern.entropy is not None and entropy < pattern.entropy:
                        if debug:
                            log.debug(
                                "Skipping low entropy match (%.2f < %.2f) for %s",
                                entropy,
                                pattern.entropy,
                                pattern.name,
                            )
                        continue

                    findings.append(
                        _make_finding(unit, index, match.start(), pattern, value, entropy, request)
                    )

        if request.entropy > 0:
            for index, line in enumerate(unit.lines):
                if not line:
                    continue
                for offset, token, entropy in find_high_entropy_tokens(line, request.entropy):
                    if self.registry.is_allowed(token):
                        continue
                    findings.append(
                        _make_finding(
                            unit,
                            index,
                            offset,
                            high_entropy_pattern(entropy),
                            token,
                            entropy,
                            request,
                        )
                    )

        return findings


def _make_finding(
    unit: ContentUnit,
    index: int,
    offset: int,
    pattern: SecretPattern,
    value: str,
    entropy: float,
    request: ScanRequest,
) -> Finding:
    return Finding(
        file=unit.name,
        line=index + 1,
        column=offset + 1,
        pattern=pattern,
        value=value,
        entropy=entropy,
        context=get_context(unit.lines, index, request.context_lines),
    )


def get_context(lines: tuple[str, ...] | list[str], index: int, context_lines: int) -> str:
    """Join the lines around a 0-based line index.

    Args:
        lines: All lines of the unit
        index: 0-based line of the match
        context_lines: Lines to include before and after

    Returns:
        Newline-joined window
    """
    start = max(0, index - context_lines)
    end = min(len(lines), index + context_lines + 1)
    return "\n".join(lines[start:end])


def scan_content(
    content: str,
    name: str = "<inline>",
    registry: PatternRegistry | None = None,
    **options: Any,
) -> ScanResult:
    """Scan a single string with a fresh scanner.

    Args:
        content: Text to scan
        name: File identifier reported in findings
        registry: Patterns and allow-list (default: built-ins only)
        **options: Other ScanRequest fields

    Returns:
        ScanResult for the content
    """
    return SecretScanner(registry).scan_content(content, name=name, **options)


def scan_directory(
    dirpath: Path,
    registry: PatternRegistry | None = None,
    progress_callback: ProgressCallback | None = None,
    **options: Any,
) -> ScanResult:
    """Scan every file under a directory matched by the include globs.

    Args:
        dirpath: Directory to scan
        registry: Patterns and allow-list (default: built-ins only)
        progress_callback: Optional callback(name, completed, total)
        **options: Other ScanRequest fields

    Returns:
        ScanResult for the directory
    """
    request = ScanRequest(root=Path(dirpath), **options)
    return SecretScanner(registry).scan(request, progress_callback=progress_callback)
