"""Route orchestration: waypoint CRUD, dependencies and note links.

Every mutating call follows the same sequence: load the whole route,
validate, apply one change in memory, recompute statuses for the whole set,
persist, then emit an event. A failed validation raises before anything is
written or emitted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from expedition.activity_log import ActivityLog
from expedition.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    SelfDependencyError,
    WouldCycleError,
)
from expedition.events import EventEmitter
from expedition.hooks import HookRegistry
from expedition.models.branch import Branch
from expedition.models.ids import new_id, utc_now
from expedition.models.note import WAYPOINT_BACKREF
from expedition.models.waypoint import Waypoint, WaypointPatch, WaypointStatus
from expedition.route.branches import BranchManager
from expedition.route.graph import index_by_id, topo_sort, would_cycle
from expedition.route.status import compute_statuses, validate_transition
from expedition.route.store import RouteStore, unique_id
from expedition.session import RouteSession
from expedition.storage import CollectionStorage

if TYPE_CHECKING:
    from expedition.notes import NoteStore

logger = logging.getLogger(__name__)


@dataclass
class RouteSummary:
    """Progress overview of a route."""

    total: int
    counts: dict[WaypointStatus, int] = field(default_factory=dict)
    active: Waypoint | None = None
    next_up: list[Waypoint] = field(default_factory=list)

    @property
    def done(self) -> int:
        return self.counts.get(WaypointStatus.DONE, 0)

    @property
    def percent_done(self) -> int:
        """Share of non-abandoned waypoints that are done."""
        relevant = self.total - self.counts.get(WaypointStatus.ABANDONED, 0)
        if relevant <= 0:
            return 0
        return round(100 * self.done / relevant)


class RouteService:
    """Single entry point for reading and changing an expedition's route."""

    def __init__(
        self,
        session: RouteSession,
        storage: CollectionStorage,
        *,
        notes: NoteStore | None = None,
        hooks: HookRegistry | None = None,
        activity_log: ActivityLog | None = None,
        id_factory: Callable[[], str] = new_id,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.session = session
        self.store = RouteStore(storage)
        self.notes = notes
        self.events = EventEmitter(session, hooks, activity_log)
        self._new_id = id_factory
        self._now = clock
        self.branches = BranchManager(
            session,
            self.store,
            self.events,
            id_factory=id_factory,
            clock=clock,
        )

    # --- Reads ---

    def list(self) -> list[Waypoint]:
        """All waypoints in storage order, with computed statuses."""
        if self.session.expedition is None:
            return []
        return compute_statuses(self.store.load_waypoints())

    def get(self, waypoint_id: str) -> Waypoint | None:
        """Get a waypoint by ID (with computed status)."""
        return index_by_id(self.list()).get(waypoint_id)

    def get_route(self, branch: str | None = None) -> list[Waypoint]:
        """Waypoints in dependency order, optionally limited to one branch."""
        ordered = topo_sort(self.list())
        if branch is None:
            return ordered
        return [wp for wp in ordered if wp.branch == branch]

    def get_ready(self, branch: str | None = None) -> list[Waypoint]:
        """Waypoints whose dependencies are all done."""
        return [
            wp
            for wp in self.list()
            if wp.status is WaypointStatus.READY
            and (branch is None or wp.branch == branch)
        ]

    def summary(self, branch: str | None = None, next_count: int = 3) -> RouteSummary:
        """Count waypoints by status and pick what to work on next."""
        route = self.get_route(branch)
        counts = {status: 0 for status in WaypointStatus}
        for wp in route:
            counts[wp.status] += 1
        active = next(
            (wp for wp in route if wp.status is WaypointStatus.ACTIVE), None
        )
        ready = [wp for wp in route if wp.status is WaypointStatus.READY]
        return RouteSummary(
            total=len(route),
            counts=counts,
            active=active,
            next_up=ready[: max(0, next_count)],
        )

    # --- Waypoint CRUD ---

    def create_waypoint(
        self,
        title: str,
        *,
        description: str = "",
        depends_on: Sequence[str] | None = None,
        reasoning: str = "",
        branch: str | None = None,
    ) -> Waypoint:
        """Create a new waypoint on ``branch`` (default: the active branch).

        Raises:
            InvalidInputError: Blank title or branch, or duplicate dependencies.
            NotFoundError: A dependency does not exist.
        """
        self.session.require_expedition()
        title = (title or "").strip()
        if not title:
            raise InvalidInputError("Waypoint title is required")
        deps = list(depends_on or [])
        if len(set(deps)) != len(deps):
            raise InvalidInputError("Duplicate ids in depends_on")
        branch_name = (branch or self.session.active_branch).strip()
        if not branch_name:
            raise InvalidInputError("Branch name cannot be empty")

        waypoints = self.store.load_waypoints()
        idx = index_by_id(waypoints)
        for dep_id in deps:
            if dep_id not in idx:
                raise NotFoundError("Dependency", dep_id)

        now = self._now()
        waypoint = Waypoint(
            id=unique_id(self._new_id, idx),
            title=title,
            description=description or "",
            status=WaypointStatus.READY,
            depends_on=deps,
            reasoning=reasoning or "",
            branch=branch_name,
            created_at=now,
            updated_at=now,
        )
        created = self.store.commit([*waypoints, waypoint])[-1]

        logger.info("Created waypoint %s (%s) on %s", created.id, title, branch_name)
        self.events.emit(
            "waypoint.created",
            {"waypoint": created},
            {"waypoint_id": created.id, "title": created.title},
        )
        return created

    def update_waypoint(
        self, waypoint_id: str, patch: WaypointPatch | Mapping[str, Any]
    ) -> Waypoint:
        """Change title, description, reasoning or branch of a waypoint.

        Raises:
            InvalidInputError: Unknown fields, empty patch or blank title.
            NotFoundError: The waypoint does not exist.
        """
        self.session.require_expedition()
        if not isinstance(patch, WaypointPatch):
            patch = WaypointPatch.from_mapping(patch)
        changes = patch.changes()
        if not changes:
            raise InvalidInputError("No fields to update")

        waypoints = self.store.load_waypoints()
        position = self._position(waypoints, waypoint_id)
        updated = patch.apply(waypoints[position])
        updated.updated_at = self._now()
        waypoints[position] = updated
        saved = self.store.commit(waypoints)[position]

        logger.info("Updated waypoint %s: %s", waypoint_id, sorted(changes))
        self.events.emit(
            "waypoint.updated",
            {"waypoint": saved, "changes": changes},
            {"waypoint_id": waypoint_id, "changes": changes},
        )
        return saved

    def set_status(self, waypoint_id: str, status: WaypointStatus | str) -> Waypoint:
        """Apply an explicit status change and cascade it to dependents.

        Raises:
            NotFoundError: The waypoint does not exist.
            InvalidTransitionError: The change is not in the transition table.
        """
        self.session.require_expedition()
        waypoints = compute_statuses(self.store.load_waypoints())
        position = self._position(waypoints, waypoint_id)
        waypoint = waypoints[position]

        old_status = waypoint.status
        new_status = validate_transition(old_status, status)
        waypoint.status = new_status
        waypoint.updated_at = self._now()
        saved = self.store.commit(waypoints)[position]

        logger.info(
            "Waypoint %s status %s -> %s (now %s)",
            waypoint_id,
            old_status.value,
            new_status.value,
            saved.status.value,
        )
        # "to" is the status after recompute; "requested" is what the caller asked
        data = {
            "waypoint_id": waypoint_id,
            "from": old_status.value,
            "requested": new_status.value,
            "to": saved.status.value,
        }
        self.events.emit("waypoint.status_changed", {**data, "waypoint": saved}, data)
        return saved

    def delete_waypoint(self, waypoint_id: str) -> Waypoint:
        """Delete a waypoint and every reference to it.

        The id is stripped from all other ``depends_on`` lists and linked
        notes lose their back-reference.

        Returns:
            The removed waypoint.

        Raises:
            NotFoundError: The waypoint does not exist.
        """
        self.session.require_expedition()
        waypoints = self.store.load_waypoints()
        removed = waypoints.pop(self._position(waypoints, waypoint_id))

        now = self._now()
        for wp in waypoints:
            if waypoint_id in wp.depends_on:
                wp.depends_on = [d for d in wp.depends_on if d != waypoint_id]
                wp.updated_at = now
        self.store.commit(waypoints)

        for note_id in removed.linked_note_ids:
            self._clear_backref(note_id, waypoint_id)

        logger.info("Deleted waypoint %s", waypoint_id)
        self.events.emit(
            "waypoint.deleted",
            {"waypoint_id": waypoint_id, "waypoint": removed},
            {"waypoint_id": waypoint_id, "title": removed.title},
        )
        return removed

    # --- Dependencies ---

    def add_dependency(self, waypoint_id: str, dependency_id: str) -> Waypoint:
        """Make ``waypoint_id`` depend on ``dependency_id``.

        Raises:
            SelfDependencyError: Both ids are the same.
            NotFoundError: Either waypoint does not exist.
            ConflictError: The edge already exists.
            WouldCycleError: The edge would close a cycle.
        """
        self.session.require_expedition()
        if waypoint_id == dependency_id:
            raise SelfDependencyError(waypoint_id)

        waypoints = self.store.load_waypoints()
        position = self._position(waypoints, waypoint_id)
        if dependency_id not in index_by_id(waypoints):
            raise NotFoundError("Dependency", dependency_id)
        waypoint = waypoints[position]
        if dependency_id in waypoint.depends_on:
            raise ConflictError(
                f"Dependency already exists: {waypoint_id} -> {dependency_id}"
            )
        if would_cycle(waypoints, waypoint_id, dependency_id):
            raise WouldCycleError(waypoint_id, dependency_id)

        waypoint.depends_on.append(dependency_id)
        waypoint.updated_at = self._now()
        saved = self.store.commit(waypoints)[position]

        logger.info("Added dependency %s -> %s", waypoint_id, dependency_id)
        data = {"waypoint_id": waypoint_id, "added_dependency": dependency_id}
        self.events.emit("waypoint.updated", {**data, "waypoint": saved}, data)
        return saved

    def remove_dependency(self, waypoint_id: str, dependency_id: str) -> Waypoint:
        """Drop the edge ``waypoint_id -> dependency_id``.

        Raises:
            NotFoundError: The waypoint or the edge does not exist.
        """
        self.session.require_expedition()
        waypoints = self.store.load_waypoints()
        position = self._position(waypoints, waypoint_id)
        waypoint = waypoints[position]
        if dependency_id not in waypoint.depends_on:
            raise NotFoundError("Dependency", f"{waypoint_id} -> {dependency_id}")

        waypoint.depends_on = [d for d in waypoint.depends_on if d != dependency_id]
        waypoint.updated_at = self._now()
        saved = self.store.commit(waypoints)[position]

        logger.info("Removed dependency %s -> %s", waypoint_id, dependency_id)
        data = {"waypoint_id": waypoint_id, "removed_dependency": dependency_id}
        self.events.emit("waypoint.updated", {**data, "waypoint": saved}, data)
        return saved

    # --- Note links ---

    def link_note(self, note_id: str, waypoint_id: str) -> Waypoint:
        """Link a note to a waypoint on both sides.

        The route is written first, then the note's back-reference. A failure
        on the note side propagates without undoing the route change.

        Raises:
            NotFoundError: The note or waypoint does not exist.
            ConflictError: The note is already linked to this waypoint.
        """
        self.session.require_expedition()
        notes = self.notes
        note = notes.get(note_id) if notes is not None else None
        if notes is None or note is None:
            raise NotFoundError("Note", note_id)

        waypoints = self.store.load_waypoints()
        position = self._position(waypoints, waypoint_id)
        waypoint = waypoints[position]
        if note_id in waypoint.linked_note_ids:
            raise ConflictError(f"Note {note_id} already linked to {waypoint_id}")

        waypoint.linked_note_ids.append(note_id)
        waypoint.updated_at = self._now()
        saved = self.store.commit(waypoints)[position]

        meta = {**note.meta, WAYPOINT_BACKREF: waypoint_id}
        try:
            notes.update(note_id, {"meta": meta})
        except Exception:
            logger.warning(
                "Linked note %s on waypoint %s but could not set its back-reference",
                note_id,
                waypoint_id,
            )
            raise

        logger.info("Linked note %s to waypoint %s", note_id, waypoint_id)
        data = {"waypoint_id": waypoint_id, "note_id": note_id}
        self.events.emit("waypoint.note_linked", {**data, "waypoint": saved}, data)
        return saved

    def unlink_note(self, note_id: str, waypoint_id: str) -> Waypoint:
        """Remove a note link from both sides.

        Raises:
            NotFoundError: The waypoint does not exist or the note is not
                linked to it.
        """
        self.session.require_expedition()
        waypoints = self.store.load_waypoints()
        position = self._position(waypoints, waypoint_id)
        waypoint = waypoints[position]
        if note_id not in waypoint.linked_note_ids:
            raise NotFoundError("Note link", f"{note_id} -> {waypoint_id}")

        waypoint.linked_note_ids = [
            nid for nid in waypoint.linked_note_ids if nid != note_id
        ]
        waypoint.updated_at = self._now()
        saved = self.store.commit(waypoints)[position]

        self._clear_backref(note_id, waypoint_id)

        logger.info("Unlinked note %s from waypoint %s", note_id, waypoint_id)
        data = {"waypoint_id": waypoint_id, "note_id": note_id}
        self.events.emit("waypoint.note_unlinked", {**data, "waypoint": saved}, data)
        return saved

    # --- Branches ---

    def active_branch(self) -> str:
        return self.branches.active_branch()

    def list_branches(self) -> list[str]:
        return self.branches.list_branches()

    def create_branch(self, name: str, reasoning: str = "") -> Branch:
        return self.branches.create_branch(name, reasoning)

    def switch_branch(self, name: str) -> str:
        return self.branches.switch_branch(name)

    def merge_branch(self, source: str, target: str) -> list[Waypoint]:
        return self.branches.merge_branch(source, target)

    # --- Helpers ---

    def _position(self, waypoints: list[Waypoint], waypoint_id: str) -> int:
        for i, wp in enumerate(waypoints):
            if wp.id == waypoint_id:
                return i
        raise NotFoundError("Waypoint", waypoint_id)

    def _clear_backref(self, note_id: str, waypoint_id: str) -> None:
        """Clear a note's waypoint back-reference if it points at ``waypoint_id``."""
        if self.notes is None:
            return
        note = self.notes.get(note_id)
        if note is None or note.waypoint_id != waypoint_id:
            return
        meta = dict(note.meta)
        meta.pop(WAYPOINT_BACKREF, None)
        self.notes.update(note_id, {"meta": meta})
