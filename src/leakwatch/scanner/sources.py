"""Content sources: files on disk and in-memory text.

Both kinds are read into a ContentUnit before matching, so the engine has a
single matching routine.
"""

import fnmatch
import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class SourceSkipped(Exception):
    """A source could not be turned into scannable text."""


@dataclass(frozen=True)
class FileRef:
    """A file on disk, named by its path relative to the scan root."""

    path: Path
    name: str


@dataclass(frozen=True)
class InlineContent:
    """Text supplied by the caller."""

    name: str
    text: str


Source = FileRef | InlineContent


@dataclass(frozen=True)
class ContentUnit:
    """Common in-memory representation of one unit of content."""

    name: str
    lines: tuple[str, ...]

    @classmethod
    def from_text(cls, name: str, text: str) -> "ContentUnit":
        return cls(name=name, lines=tuple(line.rstrip("\r") for line in text.split("\n")))


def read_unit(source: Source, max_file_size: int) -> ContentUnit:
    """Read a source into memory.

    Args:
        source: File reference or inline content
        max_file_size: Files larger than this many bytes are skipped

    Returns:
        ContentUnit ready for matching

    Raises:
        SourceSkipped: If the file is too large, binary, not UTF-8 or unreadable
    """
    if isinstance(source, InlineContent):
        return ContentUnit.from_text(source.name, source.text)

    try:
        size = source.path.stat().st_size
        if size > max_file_size:
            raise SourceSkipped(f"file too large ({size} bytes)")
        data = source.path.read_bytes()
    except OSError as e:
        raise SourceSkipped(f"cannot read file: {e}") from e

    if b"\x00" in data:
        raise SourceSkipped("binary content")

    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise SourceSkipped(f"not valid UTF-8: {e.reason}") from e

    return ContentUnit.from_text(source.name, text)


def is_excluded(relative: str, exclude: list[str]) -> bool:
    """Check a root-relative POSIX path against exclude globs."""
    for pattern in exclude:
        if fnmatch.fnmatch(relative, pattern):
            return True
        # "dir/**" excludes that directory at any depth
        if pattern.endswith("/**") and f"/{pattern[:-3]}/" in f"/{relative}":
            return True
    return False


def collect_files(
    root: Path,
    patterns: list[str],
    exclude: list[str],
) -> list[FileRef]:
    """Resolve include globs under a root into file references.

    An invalid glob is logged and skipped. Results are de-duplicated and
    sorted so the scan order is stable.

    Args:
        root: Directory globs are evaluated against
        patterns: Include globs, e.g. "**/*" or "src/**/*.py"
        exclude: Exclude globs matched against root-relative paths

    Returns:
        List of file references
    """
    root = Path(root)

    if not root.exists() or not root.is_dir():
        logger.warning("Scan root is not a directory: %s", root)
        return []

    found: dict[str, FileRef] = {}
    for pattern in patterns:
        try:
            matches = list(root.glob(pattern))
        except (ValueError, NotImplementedError) as e:
            logger.warning("Skipping invalid glob %r: %s", pattern, e)
            continue

        for filepath in matches:
            if not filepath.is_file():
                continue
            relative = filepath.relative_to(root).as_posix()
            if relative in found or is_excluded(relative, exclude):
                continue
            found[relative] = FileRef(path=filepath, name=relative)

    return [found[name] for name in sorted(found)]
