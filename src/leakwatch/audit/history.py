"""Bounded, append-only audit trail of scan results.

Persistence sits behind AuditStore so the trail can live in memory, in a flat
JSON file, or anywhere else that can load and append records.
"""

import csv
import json
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
from io import StringIO
from pathlib import Path

from leakwatch.audit.results import AuditRecord, parse_timestamp

logger = logging.getLogger(__name__)

DEFAULT_MAX_RECORDS = 50
DEFAULT_AUDIT_FILE = ".leakwatch-audit.json"

CSV_HEADERS = [
    "Version",
    "Timestamp",
    "Total Secrets",
    "Added",
    "Removed",
    "Modified",
    "Risk Level",
]


class AuditStore(ABC):
    """Storage backend for audit records."""

    def __init__(self, max_records: int = DEFAULT_MAX_RECORDS) -> None:
        if max_records < 1:
            raise ValueError(f"max_records must be >= 1, got {max_records}")
        self.max_records = max_records

    @abstractmethod
    def load(self) -> list[AuditRecord]:
        """Return all stored records, oldest first."""
        pass

    @abstractmethod
    def append(self, record: AuditRecord) -> None:
        """Store a record, evicting the oldest past max_records."""
        pass


class MemoryAuditStore(AuditStore):
    """Audit records kept in process memory only."""

    def __init__(self, max_records: int = DEFAULT_MAX_RECORDS) -> None:
        super().__init__(max_records)
        self._records: list[AuditRecord] = []

    def load(self) -> list[AuditRecord]:
        return list(self._records)

    def append(self, record: AuditRecord) -> None:
        self._records.append(record)
        if len(self._records) > self.max_records:
            self._records = self._records[-self.max_records :]


class JsonFileAuditStore(AuditStore):
    """Audit records persisted as a JSON list in a single file.

    A missing, unreadable or corrupt file loads as an empty trail. A failed
    write is logged; the record stays in the in-memory copy.
    """

    def __init__(
        self,
        path: Path | str = DEFAULT_AUDIT_FILE,
        max_records: int = DEFAULT_MAX_RECORDS,
    ) -> None:
        super().__init__(max_records)
        self.path = Path(path)
        self._records: list[AuditRecord] | None = None

    def load(self) -> list[AuditRecord]:
        if self._records is None:
            self._records = self._read()
        return list(self._records)

    def append(self, record: AuditRecord) -> None:
        records = self.load()
        records.append(record)
        if len(records) > self.max_records:
            records = records[-self.max_records :]
        self._records = records
        self._write(records)

    def _read(self) -> list[AuditRecord]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            records = [AuditRecord.from_dict(item) for item in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring unreadable audit history %s: %s", self.path, e)
            return []
        return records[-self.max_records :]

    def _write(self, records: list[AuditRecord]) -> None:
        try:
            self.path.write_text(
                json.dumps([r.to_dict() for r in records], indent=2),
                encoding="utf-8",
            )
        except OSError as e:
            logger.error("Error saving audit history to %s: %s", self.path, e)


class AuditHistory:
    """Thread-safe view over an AuditStore.

    Appends are serialized by a lock and readers receive copies, so a
    baseline lookup never sees a half-applied append.
    """

    def __init__(self, store: AuditStore | None = None) -> None:
        self.store = store or MemoryAuditStore()
        self._lock = threading.Lock()

    def append(self, record: AuditRecord) -> AuditRecord:
        """Append a record, keeping the trail time-ordered.

        A timestamp earlier than the newest stored one is raised to match it.

        Returns:
            The record as stored
        """
        with self._lock:
            records = self.store.load()
            if records and record.timestamp < records[-1].timestamp:
                logger.debug(
                    "Clock went backwards; stamping %s with %s",
                    record.version,
                    records[-1].timestamp.isoformat(),
                )
                record = replace(record, timestamp=records[-1].timestamp)
            self.store.append(record)
            return record

    def records(self) -> list[AuditRecord]:
        """Snapshot of the whole trail, oldest first."""
        with self._lock:
            return self.store.load()

    def recent(self, limit: int = 10) -> list[AuditRecord]:
        """The newest `limit` records, oldest first."""
        if limit <= 0:
            return []
        return self.records()[-limit:]

    def last(self) -> AuditRecord | None:
        records = self.records()
        return records[-1] if records else None

    def latest_since(self, since: str | datetime) -> AuditRecord | None:
        """Most recent record stamped at or after `since`."""
        since_dt = parse_timestamp(since)
        matching = [r for r in self.records() if r.timestamp >= since_dt]
        return matching[-1] if matching else None

    def first_for_version(self, version: str) -> AuditRecord | None:
        """Oldest retained record carrying the version label."""
        for record in self.records():
            if record.version == version:
                return record
        return None

    def export(self, format: str = "json") -> str:
        """Export the trail as "json" or "csv".

        Raises:
            ValueError: For any other format
        """
        if format == "json":
            return json.dumps([r.to_dict() for r in self.records()], indent=2)
        if format == "csv":
            return self._to_csv()
        raise ValueError(f"Unsupported export format: {format}")

    def _to_csv(self) -> str:
        output = StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(CSV_HEADERS)

        for record in self.records():
            if record.diff is not None:
                summary = record.diff.summary
                counts = [
                    summary["total_added"],
                    summary["total_removed"],
                    summary["total_modified"],
                    summary["risk_level"],
                ]
            else:
                counts = [0, 0, 0, "unknown"]
            writer.writerow(
                [record.version, record.timestamp.isoformat(), len(record.secrets), *counts]
            )

        return output.getvalue()
