"""Simulation event log - capped, append-only audit trail.

Every entry is also forwarded to the stdlib ``logging`` tree so runs show up
in the normal application log.
"""

import dataclasses
import itertools
import json
import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from typing_extensions import override

from simulation.events import EventCategory, EventSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogEntry:
    id: str
    timestamp: datetime
    category: EventCategory
    message: str
    context: dict[str, Any] = field(default_factory=dict)


class SimulationLog(EventSink):
    """Bounded in-memory log. Oldest entries are dropped beyond ``max_entries``."""

    def __init__(self, max_entries: int = 10000) -> None:
        self.max_entries = max_entries
        self._entries: deque[LogEntry] = deque(maxlen=max_entries)
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    @override
    def add(self, category: EventCategory, message: str, context: dict[str, Any] | None = None) -> None:
        with self._lock:
            entry = LogEntry(
                id=f"log-{next(self._counter)}",
                timestamp=datetime.now(),
                category=EventCategory(category),
                message=message,
                context=dict(context or {}),
            )
            self._entries.append(entry)
        logger.info("[%s] %s | %s", entry.category, message, entry.context)

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self, category: EventCategory | str | None = None) -> list[LogEntry]:
        """Entries oldest first, optionally filtered by category."""
        with self._lock:
            snapshot = list(self._entries)
        if category is None:
            return snapshot
        wanted = EventCategory(category)
        return [e for e in snapshot if e.category == wanted]

    def recent(self, count: int) -> list[LogEntry]:
        return self.entries()[-count:] if count > 0 else []

    def export_json(self, category: EventCategory | str | None = None) -> str:
        """Export entries as a JSON array. The export itself is logged afterwards."""
        entries = self.entries(category)
        payload = [
            {**dataclasses.asdict(e), "timestamp": e.timestamp.isoformat(), "category": str(e.category)}
            for e in entries
        ]
        text = json.dumps(payload, indent=2, default=str)
        self.add(EventCategory.EXPORT, "Simulation log exported", {"entries": len(entries)})
        return text

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
