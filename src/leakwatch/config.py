"""Configuration: custom patterns, allow-list, scan defaults, audit file."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from leakwatch.audit.history import DEFAULT_AUDIT_FILE, DEFAULT_MAX_RECORDS
from leakwatch.scanner.registry import PatternRegistry
from leakwatch.scanner.results import (
    DEFAULT_ENTROPY,
    DEFAULT_EXCLUDE,
    DEFAULT_INCLUDE,
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_TIMEOUT_MS,
    OverlapPolicy,
    ScanRequest,
    Severity,
)

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".leakwatch.json"
CONFIG_ENV_VAR = "LEAKWATCH_CONFIG"


class ConfigError(ValueError):
    """The configuration file is unreadable or malformed."""


@dataclass(frozen=True)
class LeakwatchConfig:
    patterns: tuple[dict[str, Any], ...] = ()  # custom pattern dicts
    allowed_secrets: tuple[str, ...] = ()
    include: tuple[str, ...] = tuple(DEFAULT_INCLUDE)
    exclude: tuple[str, ...] = tuple(DEFAULT_EXCLUDE)
    entropy: float = DEFAULT_ENTROPY
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    audit_file: str = DEFAULT_AUDIT_FILE
    history_limit: int = DEFAULT_MAX_RECORDS
    fail_on: Severity | None = Severity.HIGH  # None never blocks
    overlap_policy: OverlapPolicy = OverlapPolicy.KEEP_BOTH
    source: Path | None = field(default=None, compare=False)


# JSON key -> (field name, converter)
_KEYS: dict[str, tuple[str, Any]] = {
    "patterns": ("patterns", lambda v: tuple(dict(p) for p in v)),
    "allowedSecrets": ("allowed_secrets", lambda v: tuple(str(s) for s in v)),
    "include": ("include", lambda v: tuple(str(s) for s in v)),
    "exclude": ("exclude", lambda v: tuple(str(s) for s in v)),
    "entropy": ("entropy", float),
    "maxFileSize": ("max_file_size", int),
    "timeoutMs": ("timeout_ms", int),
    "auditFile": ("audit_file", str),
    "historyLimit": ("history_limit", int),
    "failOn": ("fail_on", lambda v: None if v in (None, "none") else Severity(v)),
    "overlapPolicy": ("overlap_policy", OverlapPolicy),
}


def find_config_file(cwd: Path | None = None) -> Path | None:
    """Locate the config file: $LEAKWATCH_CONFIG, else .leakwatch.json in cwd."""
    env_path = os.environ.get(CONFIG_ENV_VAR, "")
    if env_path:
        return Path(env_path)
    candidate = (cwd or Path.cwd()) / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def load_config(path: Path | str | None = None) -> LeakwatchConfig:
    """Load configuration, falling back to defaults when no file exists.

    Args:
        path: Explicit config file (default: find_config_file())

    Returns:
        LeakwatchConfig

    Raises:
        ConfigError: If the file cannot be read, is not a JSON object, or
            holds a value of the wrong type
    """
    config_path = Path(path) if path is not None else find_config_file()
    if config_path is None:
        return LeakwatchConfig()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config file {config_path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a JSON object")

    values: dict[str, Any] = {}
    for key, raw in data.items():
        if key not in _KEYS:
            logger.warning("Ignoring unknown config key %r in %s", key, config_path)
            continue
        name, convert = _KEYS[key]
        try:
            values[name] = convert(raw)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value for {key!r} in {config_path}: {e}") from e

    logger.debug("Loaded config from %s", config_path)
    return LeakwatchConfig(source=config_path, **values)


def build_registry(config: LeakwatchConfig) -> PatternRegistry:
    """Registry with the built-ins plus the configured patterns and allow-list."""
    registry = PatternRegistry(allowed_secrets=config.allowed_secrets)
    registry.load_pattern_dicts(config.patterns)
    return registry


def build_request(config: LeakwatchConfig, root: Path | None = None, **overrides: Any) -> ScanRequest:
    """ScanRequest from config values; keyword overrides win.

    Raises:
        ValueError: If the resulting request is invalid
    """
    options: dict[str, Any] = {
        "patterns": list(config.include),
        "exclude": list(config.exclude),
        "entropy": config.entropy,
        "max_file_size": config.max_file_size,
        "timeout_ms": config.timeout_ms,
        "overlap_policy": config.overlap_policy,
        "root": root,
    }
    options.update({k: v for k, v in overrides.items() if v is not None})
    return ScanRequest(**options)
