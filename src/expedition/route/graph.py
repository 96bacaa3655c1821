"""Pure graph algorithms over a waypoint snapshot.

Edges point from a waypoint to the waypoints it ``depends_on``. Ids that do
not resolve within the snapshot (dangling references to deleted waypoints)
are ignored by every function here rather than treated as errors.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Sequence

from expedition.models.waypoint import Waypoint

logger = logging.getLogger(__name__)


def index_by_id(waypoints: Sequence[Waypoint]) -> dict[str, Waypoint]:
    """Build a lookup from waypoint id to waypoint."""
    return {wp.id: wp for wp in waypoints}


def dependents_of(waypoints: Sequence[Waypoint], waypoint_id: str) -> list[Waypoint]:
    """Get waypoints that directly depend on ``waypoint_id``."""
    return [wp for wp in waypoints if waypoint_id in wp.depends_on]


def topo_sort(waypoints: Sequence[Waypoint]) -> list[Waypoint]:
    """Order waypoints so every dependency precedes its dependents.

    Kahn's algorithm with a FIFO queue seeded in storage order, so identical
    input always yields identical output. If the snapshot already contains a
    cycle, the waypoints that could not be ordered are appended in storage
    order instead of failing.
    """
    if not waypoints:
        return []

    idx = index_by_id(waypoints)
    in_degree: dict[str, int] = {wp.id: 0 for wp in waypoints}
    # dependency id -> ids of waypoints that depend on it
    adjacency: dict[str, list[str]] = {wp.id: [] for wp in waypoints}
    for wp in waypoints:
        for dep_id in wp.depends_on:
            if dep_id in idx:
                in_degree[wp.id] += 1
                adjacency[dep_id].append(wp.id)

    queue = deque(wp.id for wp in waypoints if in_degree[wp.id] == 0)
    visited: set[str] = set()
    ordered: list[Waypoint] = []
    while queue:
        current = queue.popleft()
        visited.add(current)
        ordered.append(idx[current])
        for dependent_id in adjacency[current]:
            in_degree[dependent_id] -= 1
            if in_degree[dependent_id] == 0:
                queue.append(dependent_id)

    if len(ordered) < len(waypoints):
        leftover = [wp for wp in waypoints if wp.id not in visited]
        logger.warning(
            "Cycle detected in route; appending %d unordered waypoint(s): %s",
            len(leftover),
            ", ".join(wp.id for wp in leftover),
        )
        ordered.extend(leftover)

    return ordered


def would_cycle(
    waypoints: Sequence[Waypoint], waypoint_id: str, dependency_id: str
) -> bool:
    """Check whether adding ``waypoint_id depends_on dependency_id`` makes a cycle.

    The new edge closes a cycle iff ``waypoint_id`` is already reachable from
    ``dependency_id`` by following existing ``depends_on`` edges.
    """
    idx = index_by_id(waypoints)
    visited: set[str] = set()
    stack = [dependency_id]
    while stack:
        current = stack.pop()
        if current == waypoint_id:
            return True
        if current in visited:
            continue
        visited.add(current)
        wp = idx.get(current)
        if wp is None:
            continue
        stack.extend(dep for dep in wp.depends_on if dep not in visited)
    return False
