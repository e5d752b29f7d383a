"""
Outcome Report
==============

Append-only record of every attempted deletion.

Each handler records exactly one :class:`ReportEntry` per identifier it
tries to delete. Region runs execute in parallel threads and share one
:class:`Report`, so appends are serialized with a lock. Readers get copies.

Example
-------
>>> report = Report()
>>> report.record(ReportEntry("vol-123", "EBS Volume", "us-east-1"))
>>> report.deleted_count
1
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ReportEntry:
    """
    Outcome of a single deletion attempt.

    Attributes:
        identifier: Resource ID
        resource_type: Resource type label (e.g. 'EBS Volume')
        region: AWS region
        error: Error if the attempt failed, None on success
        timestamp: When the outcome was recorded
    """

    identifier: str
    resource_type: str
    region: str
    error: Optional[BaseException] = None
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def deleted(self) -> bool:
        """True if the delete request was accepted."""
        return self.error is None

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        return getattr(self.error, "message", None) or str(self.error)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "identifier": self.identifier,
            "resource_type": self.resource_type,
            "region": self.region,
            "deleted": self.deleted,
            "error": self.error_message,
            "timestamp": self.timestamp.isoformat(),
        }


class Report:
    """
    Thread-safe, append-only sink for deletion outcomes.

    The handlers only ever call :meth:`record`. Summary printers read the
    accumulated entries once all runs are finished.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: List[ReportEntry] = []
        self.start_time = _utcnow()
        self.end_time: Optional[datetime] = None

    def record(self, entry: ReportEntry) -> None:
        """Append an outcome."""
        with self._lock:
            self._entries.append(entry)

    @property
    def entries(self) -> List[ReportEntry]:
        """Snapshot of all recorded entries in recording order."""
        with self._lock:
            return list(self._entries)

    @property
    def deleted(self) -> List[ReportEntry]:
        return [e for e in self.entries if e.deleted]

    @property
    def failed(self) -> List[ReportEntry]:
        return [e for e in self.entries if not e.deleted]

    @property
    def total(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def deleted_count(self) -> int:
        return len(self.deleted)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    def complete(self) -> None:
        """Mark the run as complete."""
        self.end_time = _utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        entries = self.entries
        return {
            "total": len(entries),
            "deleted": sum(1 for e in entries if e.deleted),
            "failed": sum(1 for e in entries if not e.deleted),
            "entries": [e.to_dict() for e in entries],
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
        }

    def __len__(self) -> int:
        return self.total

    def __repr__(self) -> str:
        return f"Report(total={self.total})"
