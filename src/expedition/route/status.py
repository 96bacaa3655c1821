"""Status engine and transition validator.

Derived statuses (BLOCKED, READY) are never trusted from storage: they are
recomputed from the dependency graph before every read and after every
mutation. Explicit statuses (ACTIVE, DONE, ABANDONED) change only through
``validate_transition``.
"""

from __future__ import annotations

from collections.abc import Sequence

from expedition.errors import InvalidTransitionError
from expedition.models.waypoint import Waypoint, WaypointStatus
from expedition.route.graph import index_by_id

# Valid status transitions table
VALID_TRANSITIONS: dict[WaypointStatus, frozenset[WaypointStatus]] = {
    WaypointStatus.BLOCKED: frozenset(
        {WaypointStatus.ACTIVE, WaypointStatus.ABANDONED}
    ),
    WaypointStatus.READY: frozenset(
        {WaypointStatus.ACTIVE, WaypointStatus.DONE, WaypointStatus.ABANDONED}
    ),
    WaypointStatus.ACTIVE: frozenset(
        {WaypointStatus.DONE, WaypointStatus.ABANDONED, WaypointStatus.READY}
    ),
    WaypointStatus.DONE: frozenset({WaypointStatus.ACTIVE, WaypointStatus.READY}),
    WaypointStatus.ABANDONED: frozenset({WaypointStatus.READY}),
}


def derive_status(
    waypoint: Waypoint, snapshot: dict[str, Waypoint]
) -> WaypointStatus:
    """Compute the effective status of one waypoint against a snapshot index."""
    if waypoint.status.is_explicit:
        return waypoint.status

    for dep_id in waypoint.depends_on:
        dep = snapshot.get(dep_id)
        # Missing dependencies never count as done
        if dep is None or dep.status is not WaypointStatus.DONE:
            return WaypointStatus.BLOCKED
    return WaypointStatus.READY


def compute_statuses(waypoints: Sequence[Waypoint]) -> list[Waypoint]:
    """Return copies of ``waypoints`` with derived statuses recomputed.

    A dependency's readiness is judged on its own stored status, which for a
    DONE dependency is explicit and therefore stable, so one pass suffices
    and applying this twice gives the same result as applying it once.
    """
    snapshot = index_by_id(waypoints)
    result: list[Waypoint] = []
    for wp in waypoints:
        updated = wp.copy()
        updated.status = derive_status(wp, snapshot)
        result.append(updated)
    return result


def can_transition(current: WaypointStatus, target: WaypointStatus) -> bool:
    """Check if an explicit status change is allowed."""
    return target in VALID_TRANSITIONS.get(current, frozenset())


def validate_transition(
    current: WaypointStatus, target: WaypointStatus | str
) -> WaypointStatus:
    """Resolve ``target`` and check it against the transition table.

    Raises:
        InvalidTransitionError: If ``target`` is not a known status or the
            change from ``current`` is not allowed.
    """
    if isinstance(target, WaypointStatus):
        resolved = target
    else:
        try:
            resolved = WaypointStatus(str(target).strip().lower())
        except ValueError:
            raise InvalidTransitionError(current, target) from None

    if not can_transition(current, resolved):
        raise InvalidTransitionError(current, resolved)
    return resolved
