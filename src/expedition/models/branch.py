"""Branch metadata model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Self

from expedition.models.ids import parse_timestamp, utc_now


@dataclass(slots=True)
class Branch:
    """A named partition of the route.

    Membership lives on each waypoint's ``branch`` field; this record only
    carries the name and why the branch was opened.
    """

    name: str
    reasoning: str = ""
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "reasoning": self.reasoning,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create from dictionary."""
        return cls(
            name=data["name"],
            reasoning=data.get("reasoning") or "",
            created_at=parse_timestamp(data.get("created_at")),
        )
