"""Append-only activity log for an expedition.

Captures every route, branch and note event in JSONL format for auditing
and for the ``log`` command.

Storage: .expedition/activity.jsonl, one file per workspace; each entry
carries its expedition id.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from expedition.models.ids import parse_timestamp, utc_now

logger = logging.getLogger(__name__)


@dataclass
class ActivityEntry:
    """A single entry in the activity log."""

    event: str
    expedition_id: str
    timestamp: datetime
    data: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "event": self.event,
            "expedition_id": self.expedition_id,
            "data": self.data,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActivityEntry":
        """Create from dictionary."""
        return cls(
            event=data["event"],
            expedition_id=data.get("expedition_id", ""),
            timestamp=parse_timestamp(data.get("timestamp")),
            data=data.get("data", {}),
        )


class ActivityLog:
    """Appends events to a JSONL file; write failures never reach the caller."""

    def __init__(self, file_path: Path, *, enabled: bool = True) -> None:
        self.file_path = file_path
        self.enabled = enabled

    def append(
        self, event: str, expedition_id: str, data: dict[str, Any] | None = None
    ) -> bool:
        """Append an entry. Returns False if the write failed or logging is off."""
        if not self.enabled:
            return False
        entry = ActivityEntry(
            event=event,
            expedition_id=expedition_id,
            timestamp=utc_now(),
            data=data or {},
        )
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.file_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry.to_dict(), default=str) + "\n")
        except OSError as e:
            logger.warning("Activity log write error (%s): %s", self.file_path, e)
            return False
        return True

    def read(self) -> list[ActivityEntry]:
        """Read all entries, skipping lines that fail to parse."""
        if not self.file_path.exists():
            return []
        entries: list[ActivityEntry] = []
        with open(self.file_path, encoding="utf-8", errors="replace") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(ActivityEntry.from_dict(json.loads(line)))
                except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                    logger.debug("Skipping unreadable log line: %s", e)
        return entries

    def tail(self, n: int) -> list[ActivityEntry]:
        """Read the last ``n`` entries."""
        if n <= 0:
            return []
        return self.read()[-n:]
