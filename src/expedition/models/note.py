"""Note data model.

Notes are free-text annotations owned outside the route engine. The route
only references them by id and keeps a single back-reference in
``meta["waypoint_id"]``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Self

from expedition.models.ids import parse_timestamp, utc_now

WAYPOINT_BACKREF = "waypoint_id"


@dataclass(slots=True)
class Note:
    """A free-text note."""

    id: str
    body: str
    tags: list[str] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def waypoint_id(self) -> str | None:
        """The waypoint this note is linked to, if any."""
        value = self.meta.get(WAYPOINT_BACKREF)
        return str(value) if value else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "body": self.body,
            "tags": self.tags,
            "meta": self.meta,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create from dictionary."""
        return cls(
            id=data["id"],
            body=data.get("body") or "",
            tags=list(data.get("tags") or []),
            meta=dict(data.get("meta") or {}),
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
        )
