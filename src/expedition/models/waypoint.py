"""Waypoint data model for the route."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Self

from expedition.errors import InvalidInputError
from expedition.models.ids import parse_timestamp, utc_now

DEFAULT_BRANCH = "main"


class WaypointStatus(Enum):
    """Status of a waypoint.

    ACTIVE, DONE and ABANDONED are explicit: set by a caller and stored.
    BLOCKED and READY are derived: recomputed from the dependency graph
    before every read.
    """

    BLOCKED = "blocked"
    READY = "ready"
    ACTIVE = "active"
    DONE = "done"
    ABANDONED = "abandoned"

    @property
    def is_explicit(self) -> bool:
        return self in EXPLICIT_STATUSES

    @property
    def is_derived(self) -> bool:
        return self in DERIVED_STATUSES


EXPLICIT_STATUSES: frozenset[WaypointStatus] = frozenset(
    {WaypointStatus.ACTIVE, WaypointStatus.DONE, WaypointStatus.ABANDONED}
)
DERIVED_STATUSES: frozenset[WaypointStatus] = frozenset(
    {WaypointStatus.BLOCKED, WaypointStatus.READY}
)


@dataclass(slots=True)
class Waypoint:
    """A single unit of planned work; a node in the dependency graph."""

    id: str
    title: str
    description: str = ""
    status: WaypointStatus = WaypointStatus.READY
    depends_on: list[str] = field(default_factory=list)
    reasoning: str = ""
    linked_note_ids: list[str] = field(default_factory=list)
    branch: str = DEFAULT_BRANCH
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def copy(self) -> Waypoint:
        """Return a copy with independent list fields."""
        return Waypoint(
            id=self.id,
            title=self.title,
            description=self.description,
            status=self.status,
            depends_on=list(self.depends_on),
            reasoning=self.reasoning,
            linked_note_ids=list(self.linked_note_ids),
            branch=self.branch,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "depends_on": self.depends_on,
            "reasoning": self.reasoning,
            "linked_note_ids": self.linked_note_ids,
            "branch": self.branch,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create from dictionary."""
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description") or "",
            status=WaypointStatus(data.get("status", "ready")),
            depends_on=list(data.get("depends_on") or []),
            reasoning=data.get("reasoning") or "",
            linked_note_ids=list(data.get("linked_note_ids") or []),
            branch=data.get("branch") or DEFAULT_BRANCH,
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
        )


@dataclass(frozen=True)
class WaypointPatch:
    """The mutable fields of a waypoint.

    Status, dependencies and note links have their own operations; a patch
    can only touch the fields listed here. ``None`` means "leave unchanged".
    """

    title: str | None = None
    description: str | None = None
    reasoning: str | None = None
    branch: str | None = None

    def __post_init__(self) -> None:
        if self.title is not None and not self.title.strip():
            raise InvalidInputError("Waypoint title cannot be empty")
        if self.branch is not None and not self.branch.strip():
            raise InvalidInputError("Branch name cannot be empty")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> WaypointPatch:
        """Build a patch from loose key/value input, rejecting unknown keys."""
        allowed = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - allowed)
        if unknown:
            raise InvalidInputError(
                f"Unsupported waypoint field(s): {', '.join(unknown)}"
            )
        for key, value in data.items():
            if value is not None and not isinstance(value, str):
                raise InvalidInputError(f"Field '{key}' must be a string")
        return cls(**dict(data))

    def changes(self) -> dict[str, str]:
        """Return only the fields this patch sets."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    @property
    def is_empty(self) -> bool:
        return not self.changes()

    def apply(self, waypoint: Waypoint) -> Waypoint:
        """Return a copy of ``waypoint`` with this patch applied."""
        updated = waypoint.copy()
        for name, value in self.changes().items():
            if name in {"title", "branch"}:
                value = value.strip()
            setattr(updated, name, value)
        return updated
