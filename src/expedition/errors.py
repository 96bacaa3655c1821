"""Error taxonomy for route and expedition operations.

Every public mutating operation either returns the updated entity or raises
one of these before touching in-memory or persisted state. Callers (the CLI,
hook consumers) catch ``RouteError`` at their boundary and surface the
message to the user.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from expedition.models.waypoint import WaypointStatus


class RouteError(Exception):
    """Base exception for all route-engine failures."""

    pass


class NotFoundError(RouteError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, kind: str, identifier: str) -> None:
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class InvalidInputError(RouteError):
    """Raised when caller-supplied input is malformed."""

    pass


class SelfDependencyError(InvalidInputError):
    """Raised when a waypoint is asked to depend on itself."""

    def __init__(self, waypoint_id: str) -> None:
        self.waypoint_id = waypoint_id
        super().__init__(f"Waypoint cannot depend on itself: {waypoint_id}")


class ConflictError(RouteError):
    """Raised when an operation would duplicate an existing edge, link or name."""

    pass


class InvalidTransitionError(RouteError):
    """Raised when an explicit status change is not allowed."""

    def __init__(self, current: WaypointStatus, target: object) -> None:
        self.current = current
        self.target = target
        target_label = getattr(target, "value", target)
        super().__init__(
            f"Invalid transition from {current.value} to {target_label}"
        )


class WouldCycleError(RouteError):
    """Raised when adding a dependency would introduce a cycle."""

    def __init__(self, waypoint_id: str, dependency_id: str) -> None:
        self.waypoint_id = waypoint_id
        self.dependency_id = dependency_id
        super().__init__(
            f"Cannot add dependency {waypoint_id} -> {dependency_id}: "
            "would create a cycle"
        )


class NoActiveContextError(RouteError):
    """Raised when a mutation runs without an active expedition."""

    def __init__(self) -> None:
        super().__init__("No active expedition")


class PersistenceError(RouteError):
    """Raised when a collection cannot be read or written."""

    pass
