"""
Telemetry Sink
==============

Collects named events with metadata emitted by the resource handlers.

Handlers receive a :class:`Telemetry` instance at construction time rather
than reaching for a module-level singleton, so tests can inspect exactly
what was emitted. Events are kept in memory and echoed to the debug log.

Example
-------
>>> telemetry = Telemetry()
>>> telemetry.track_event(
...     "Error Nuking EBS Volume",
...     {"region": "us-east-1", "reason": "VolumeInUse"},
... )
>>> telemetry.events[0].metadata["reason"]
'VolumeInUse'
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

# Module logger
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TelemetryEvent:
    """A named event with its metadata."""

    name: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "metadata": dict(self.metadata),
            "timestamp": self.timestamp.isoformat(),
        }


class Telemetry:
    """
    Thread-safe in-memory event sink.

    Parameters
    ----------
    enabled : bool, default=True
        When False, events are dropped.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._lock = threading.Lock()
        self._events: List[TelemetryEvent] = []

    def track_event(
        self,
        event_name: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Record an event.

        Parameters
        ----------
        event_name : str
            Event name, e.g. 'Error Nuking EBS Volume'.
        metadata : dict, optional
            Event attributes such as ``region`` and ``reason``.
        """
        if not self.enabled:
            return
        event = TelemetryEvent(name=event_name, metadata=dict(metadata or {}))
        with self._lock:
            self._events.append(event)
        logger.debug(f"Telemetry event: {event_name} {event.metadata}")

    @property
    def events(self) -> List[TelemetryEvent]:
        """Snapshot of recorded events."""
        with self._lock:
            return list(self._events)

    def events_named(self, event_name: str) -> List[TelemetryEvent]:
        return [e for e in self.events if e.name == event_name]

    def __repr__(self) -> str:
        return f"Telemetry(enabled={self.enabled}, events={len(self.events)})"
