"""Summit condition model: what has to hold for an expedition to be done."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Self

from expedition.models.ids import parse_timestamp, utc_now


class ConditionStatus(Enum):
    """Whether a summit condition still needs work."""

    OPEN = "open"
    MET = "met"
    ABANDONED = "abandoned"


@dataclass(slots=True)
class SummitCondition:
    """A single success criterion of an expedition."""

    id: str
    text: str
    status: ConditionStatus = ConditionStatus.OPEN
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "text": self.text,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create from dictionary."""
        return cls(
            id=data["id"],
            text=data.get("text") or "",
            status=ConditionStatus(data.get("status", "open")),
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
        )
