"""Branch management: named partitions of the route.

A waypoint's branch is just a tag on the waypoint. Registered branches only
add a name and reasoning; "known" branches are the default branch, the
registered ones and any tag seen on a waypoint. Switching is session-local;
merging copies waypoints onto the target branch.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from expedition.errors import ConflictError, InvalidInputError, NotFoundError
from expedition.events import EventEmitter
from expedition.models.branch import Branch
from expedition.models.ids import new_id, utc_now
from expedition.models.waypoint import Waypoint, WaypointStatus
from expedition.route.store import RouteStore, unique_id
from expedition.session import RouteSession

logger = logging.getLogger(__name__)


def _clean_name(name: str | None, label: str = "Branch name") -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidInputError(f"{label} is required")
    return cleaned


class BranchManager:
    """Creates, lists, switches and merges branches for one session."""

    def __init__(
        self,
        session: RouteSession,
        store: RouteStore,
        events: EventEmitter,
        *,
        id_factory: Callable[[], str] = new_id,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.session = session
        self.store = store
        self.events = events
        self._new_id = id_factory
        self._now = clock

    def active_branch(self) -> str:
        """Get the active branch name."""
        return self.session.active_branch

    def list_branches(self) -> list[str]:
        """List all known branches, each once, in discovery order."""
        names = [self.session.default_branch]
        if self.session.expedition is None:
            return names

        for branch in self.store.load_branches():
            if branch.name not in names:
                names.append(branch.name)
        for wp in self.store.load_waypoints():
            if wp.branch and wp.branch not in names:
                names.append(wp.branch)
        return names

    def create_branch(self, name: str, reasoning: str = "") -> Branch:
        """Register a new named branch.

        Raises:
            InvalidInputError: If the name is blank.
            ConflictError: If a branch with this name is already registered.
        """
        self.session.require_expedition()
        name = _clean_name(name)

        branches = self.store.load_branches()
        if any(b.name == name for b in branches):
            raise ConflictError(f"Branch already exists: {name}")

        branch = Branch(name=name, reasoning=reasoning or "", created_at=self._now())
        self.store.save_branches([*branches, branch])

        logger.info("Created branch %s", name)
        self.events.emit("branch.created", {"branch": branch}, {"branch": name})
        return branch

    def switch_branch(self, name: str) -> str:
        """Point the session at another known branch.

        Raises:
            NotFoundError: If the branch is not the default, not registered
                and not used by any waypoint.
        """
        self.session.require_expedition()
        name = _clean_name(name)

        if not self._is_known(name):
            raise NotFoundError("Branch", name)

        old = self.session.active_branch
        self.session.branch = name

        logger.info("Switched branch %s -> %s", old, name)
        data = {"from": old, "to": name}
        self.events.emit("branch.switched", dict(data), data)
        return name

    def merge_branch(self, source: str, target: str) -> list[Waypoint]:
        """Copy every waypoint on ``source`` onto ``target``.

        Copies get fresh ids, READY status (recomputed afterwards) and no
        note links. Dependencies on waypoints that were copied in the same
        merge are rewritten to the copies; other dependencies are kept.
        Source waypoints are not modified. Merging a branch into itself is
        refused rather than duplicating its waypoints in place.

        Returns:
            The new waypoints, or an empty list if ``source`` has none.

        Raises:
            InvalidInputError: A name is blank or ``source == target``.
        """
        self.session.require_expedition()
        source = _clean_name(source, "Source branch")
        target = _clean_name(target, "Target branch")
        if source == target:
            raise InvalidInputError("Cannot merge a branch into itself")

        waypoints = self.store.load_waypoints()
        source_wps = [wp for wp in waypoints if wp.branch == source]
        if not source_wps:
            logger.warning("No waypoints on branch %s; nothing to merge", source)
            return []

        taken = {wp.id for wp in waypoints}
        id_map: dict[str, str] = {}
        for wp in source_wps:
            id_map[wp.id] = unique_id(self._new_id, taken)
            taken.add(id_map[wp.id])

        now = self._now()
        copies = [
            Waypoint(
                id=id_map[wp.id],
                title=wp.title,
                description=wp.description,
                status=WaypointStatus.READY,
                depends_on=[id_map.get(dep, dep) for dep in wp.depends_on],
                reasoning=wp.reasoning,
                linked_note_ids=[],
                branch=target,
                created_at=now,
                updated_at=now,
            )
            for wp in source_wps
        ]

        saved = self.store.commit([*waypoints, *copies])
        merged = saved[len(waypoints):]

        logger.info(
            "Merged %d waypoint(s) from %s into %s", len(merged), source, target
        )
        data = {"source": source, "target": target, "count": len(merged)}
        self.events.emit("branch.merged", {**data, "waypoints": merged}, data)
        return merged

    def _is_known(self, name: str) -> bool:
        if name == self.session.default_branch:
            return True
        if any(b.name == name for b in self.store.load_branches()):
            return True
        return any(wp.branch == name for wp in self.store.load_waypoints())
