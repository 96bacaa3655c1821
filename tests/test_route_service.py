"""Tests for RouteService waypoint CRUD, status changes and dependencies."""

from __future__ import annotations

from typing import Any

import pytest

from expedition.errors import (
    ConflictError,
    InvalidInputError,
    InvalidTransitionError,
    NoActiveContextError,
    NotFoundError,
    SelfDependencyError,
    WouldCycleError,
)
from expedition.hooks import HookRegistry
from expedition.models.waypoint import WaypointPatch, WaypointStatus
from expedition.route.service import RouteService
from expedition.route.store import ROUTE_KEY
from expedition.session import RouteSession
from expedition.storage import MemoryStorage

S = WaypointStatus


def record_events(hooks: HookRegistry, *names: str) -> list[tuple[str, dict[str, Any]]]:
    seen: list[tuple[str, dict[str, Any]]] = []
    for name in names:
        hooks.on(name, lambda payload, name=name: seen.append((name, payload)))
    return seen


class TestCreateWaypoint:
    """Tests for create_waypoint."""

    def test_creates_ready_waypoint_on_active_branch(
        self, service: RouteService
    ) -> None:
        a = service.create_waypoint("Survey the ridge", reasoning="Need a map")

        assert a.id == "wp1"
        assert a.status is S.READY
        assert a.branch == "main"
        assert a.reasoning == "Need a map"
        assert service.get("wp1") == a

    def test_dependent_starts_blocked(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        b = service.create_waypoint("B", depends_on=[a.id])
        assert b.status is S.BLOCKED

    def test_uses_session_branch(
        self, service: RouteService, session: RouteSession
    ) -> None:
        session.branch = "north"
        assert service.create_waypoint("A").branch == "north"
        assert service.create_waypoint("B", branch="south").branch == "south"

    def test_title_is_stripped(self, service: RouteService) -> None:
        assert service.create_waypoint("  Camp  ").title == "Camp"

    @pytest.mark.parametrize("title", ["", "   "])
    def test_blank_title_rejected(self, service: RouteService, title: str) -> None:
        with pytest.raises(InvalidInputError):
            service.create_waypoint(title)
        assert service.list() == []

    def test_unknown_dependency_rejected(self, service: RouteService) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            service.create_waypoint("B", depends_on=["nope"])
        assert exc_info.value.identifier == "nope"
        assert service.list() == []

    def test_duplicate_dependencies_rejected(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        with pytest.raises(InvalidInputError):
            service.create_waypoint("B", depends_on=[a.id, a.id])
        assert len(service.list()) == 1

    def test_skips_ids_already_taken(self, session: RouteSession) -> None:
        ids = iter(["dup", "dup", "fresh"])
        service = RouteService(session, MemoryStorage(), id_factory=lambda: next(ids))
        assert service.create_waypoint("A").id == "dup"
        assert service.create_waypoint("B").id == "fresh"

    def test_emits_created_event(
        self, service: RouteService, hooks: HookRegistry
    ) -> None:
        events = record_events(hooks, "waypoint.created")
        a = service.create_waypoint("A")
        assert events == [("waypoint.created", {"waypoint": a})]

    def test_requires_active_expedition(self, storage: MemoryStorage) -> None:
        service = RouteService(RouteSession(), storage)
        with pytest.raises(NoActiveContextError):
            service.create_waypoint("A")
        assert storage.read_collection(ROUTE_KEY) == []


class TestReads:
    """Tests for list, get, get_route, get_ready and summary."""

    def test_route_scenario(self, service: RouteService) -> None:
        """A then B (B depends on A); finishing A readies B."""
        a = service.create_waypoint("A")
        b = service.create_waypoint("B", depends_on=[a.id])

        assert [w.id for w in service.get_route()] == [a.id, b.id]
        assert service.get(b.id).status is S.BLOCKED

        service.set_status(a.id, S.ACTIVE)
        service.set_status(a.id, S.DONE)

        assert service.get(b.id).status is S.READY

    def test_get_route_orders_dependencies_first(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        b = service.create_waypoint("B")
        service.add_dependency(a.id, b.id)
        assert [w.id for w in service.get_route()] == [b.id, a.id]

    def test_get_route_filters_by_branch_after_sorting(
        self, service: RouteService
    ) -> None:
        a = service.create_waypoint("A", branch="north")
        service.create_waypoint("B", branch="south")
        c = service.create_waypoint("C", branch="north", depends_on=[a.id])
        assert [w.id for w in service.get_route("north")] == [a.id, c.id]

    def test_get_ready(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        service.create_waypoint("B", depends_on=[a.id])
        c = service.create_waypoint("C", branch="side")
        assert [w.id for w in service.get_ready()] == [a.id, c.id]
        assert [w.id for w in service.get_ready("side")] == [c.id]

    def test_get_unknown_returns_none(self, service: RouteService) -> None:
        assert service.get("missing") is None

    def test_reads_without_expedition_are_empty(self) -> None:
        service = RouteService(RouteSession(), MemoryStorage())
        assert service.list() == []
        assert service.get_route() == []
        assert service.get_ready() == []
        assert service.summary().total == 0

    def test_reads_recompute_stale_statuses(
        self, service: RouteService, storage: MemoryStorage
    ) -> None:
        """Derived statuses written by other tools are never trusted."""
        a = service.create_waypoint("A")
        b = service.create_waypoint("B", depends_on=[a.id])
        records = storage.read_collection(ROUTE_KEY)
        records[1]["status"] = "ready"
        storage.write_collection(ROUTE_KEY, records)

        assert service.get(b.id).status is S.BLOCKED

    def test_summary(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        b = service.create_waypoint("B", depends_on=[a.id])
        c = service.create_waypoint("C")
        d = service.create_waypoint("D")
        service.set_status(a.id, S.ACTIVE)
        service.set_status(d.id, S.ABANDONED)

        summary = service.summary()

        assert summary.total == 4
        assert summary.counts[S.ACTIVE] == 1
        assert summary.counts[S.BLOCKED] == 1
        assert summary.counts[S.READY] == 1
        assert summary.counts[S.ABANDONED] == 1
        assert summary.active is not None and summary.active.id == a.id
        assert [w.id for w in summary.next_up] == [c.id]
        assert summary.percent_done == 0
        assert b.id not in [w.id for w in summary.next_up]

    def test_summary_percent_ignores_abandoned(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        b = service.create_waypoint("B")
        service.create_waypoint("C")
        service.set_status(a.id, S.DONE)
        service.set_status(b.id, S.ABANDONED)
        assert service.summary().percent_done == 50


class TestUpdateWaypoint:
    """Tests for update_waypoint."""

    def test_updates_fields(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        updated = service.update_waypoint(
            a.id, WaypointPatch(title="Alpha", description="first leg")
        )
        assert updated.title == "Alpha"
        assert updated.description == "first leg"
        assert updated.updated_at > a.updated_at
        assert updated.created_at == a.created_at

    def test_accepts_mapping(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        updated = service.update_waypoint(a.id, {"branch": "detour"})
        assert updated.branch == "detour"

    @pytest.mark.parametrize(
        "fields",
        [{"status": "done"}, {"id": "x"}, {"depends_on": []}, {"created_at": "now"}],
    )
    def test_rejects_non_patchable_fields(
        self, service: RouteService, fields: dict[str, Any]
    ) -> None:
        a = service.create_waypoint("A")
        with pytest.raises(InvalidInputError):
            service.update_waypoint(a.id, fields)
        assert service.get(a.id) == a

    def test_rejects_empty_patch(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        with pytest.raises(InvalidInputError):
            service.update_waypoint(a.id, {})

    def test_rejects_blank_title(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        with pytest.raises(InvalidInputError):
            service.update_waypoint(a.id, {"title": "  "})

    def test_unknown_waypoint(self, service: RouteService) -> None:
        with pytest.raises(NotFoundError):
            service.update_waypoint("missing", {"title": "X"})

    def test_emits_changes(self, service: RouteService, hooks: HookRegistry) -> None:
        a = service.create_waypoint("A")
        events = record_events(hooks, "waypoint.updated")
        service.update_waypoint(a.id, {"reasoning": "why not"})
        assert events[0][1]["changes"] == {"reasoning": "why not"}


class TestSetStatus:
    """Tests for set_status."""

    def test_cascade_and_recascade(self, service: RouteService) -> None:
        """A dependency leaving DONE blocks its dependents again."""
        a = service.create_waypoint("A")
        b = service.create_waypoint("B", depends_on=[a.id])

        service.set_status(a.id, S.DONE)
        assert service.get(b.id).status is S.READY

        service.set_status(a.id, S.ACTIVE)
        assert service.get(b.id).status is S.BLOCKED

    def test_cascade_reaches_all_dependents(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        dependents = [
            service.create_waypoint(f"D{i}", depends_on=[a.id]) for i in range(3)
        ]
        service.set_status(a.id, S.DONE)
        assert all(service.get(d.id).status is S.READY for d in dependents)

    def test_invalid_status_string_from_blocked(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        b = service.create_waypoint("B", depends_on=[a.id])

        with pytest.raises(InvalidTransitionError) as exc_info:
            service.set_status(b.id, "not-a-real-status")

        assert exc_info.value.current is S.BLOCKED
        assert service.get(b.id) == b

    def test_disallowed_transition_leaves_state(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        service.set_status(a.id, S.DONE)
        with pytest.raises(InvalidTransitionError):
            service.set_status(a.id, S.ABANDONED)
        assert service.get(a.id).status is S.DONE

    def test_blocked_can_go_active(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        b = service.create_waypoint("B", depends_on=[a.id])
        assert service.set_status(b.id, "active").status is S.ACTIVE

    def test_reopening_returns_to_derived_status(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        b = service.create_waypoint("B", depends_on=[a.id])
        service.set_status(b.id, S.ABANDONED)
        assert service.set_status(b.id, S.READY).status is S.BLOCKED

    def test_bumps_updated_at(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        assert service.set_status(a.id, S.ACTIVE).updated_at > a.updated_at

    def test_unknown_waypoint(self, service: RouteService) -> None:
        with pytest.raises(NotFoundError):
            service.set_status("missing", S.DONE)

    def test_emits_from_and_to(
        self, service: RouteService, hooks: HookRegistry
    ) -> None:
        a = service.create_waypoint("A")
        events = record_events(hooks, "waypoint.status_changed")
        service.set_status(a.id, S.ACTIVE)
        payload = events[0][1]
        assert payload["from"] == "ready"
        assert payload["to"] == "active"
        assert payload["waypoint_id"] == a.id

    def test_event_reports_recomputed_status(
        self, service: RouteService, hooks: HookRegistry
    ) -> None:
        a = service.create_waypoint("A")
        b = service.create_waypoint("B", depends_on=[a.id])
        service.set_status(b.id, S.ACTIVE)
        events = record_events(hooks, "waypoint.status_changed")

        saved = service.set_status(b.id, S.READY)

        payload = events[0][1]
        assert saved.status is S.BLOCKED
        assert payload["requested"] == "ready"
        assert payload["to"] == "blocked"


class TestDeleteWaypoint:
    """Tests for delete_waypoint."""

    def test_strips_id_from_dependents(self, service: RouteService) -> None:
        x = service.create_waypoint("X")
        other = service.create_waypoint("Other")
        y = service.create_waypoint("Y", depends_on=[x.id, other.id])

        removed = service.delete_waypoint(x.id)

        assert removed.id == x.id
        assert service.get(x.id) is None
        assert service.get(y.id).depends_on == [other.id]

    def test_dependent_becomes_ready(self, service: RouteService) -> None:
        x = service.create_waypoint("X")
        y = service.create_waypoint("Y", depends_on=[x.id])
        service.delete_waypoint(x.id)
        assert service.get(y.id).status is S.READY

    def test_unaffected_waypoints_untouched(self, service: RouteService) -> None:
        x = service.create_waypoint("X")
        z = service.create_waypoint("Z")
        service.delete_waypoint(x.id)
        assert service.get(z.id) == z

    def test_unknown_waypoint(self, service: RouteService) -> None:
        with pytest.raises(NotFoundError):
            service.delete_waypoint("missing")

    def test_emits_deleted(self, service: RouteService, hooks: HookRegistry) -> None:
        x = service.create_waypoint("X")
        events = record_events(hooks, "waypoint.deleted")
        service.delete_waypoint(x.id)
        assert events[0][1]["waypoint_id"] == x.id


class TestDependencies:
    """Tests for add_dependency and remove_dependency."""

    def test_self_dependency_rejected(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        with pytest.raises(SelfDependencyError) as exc_info:
            service.add_dependency(a.id, a.id)
        assert isinstance(exc_info.value, InvalidInputError)
        assert service.get(a.id) == a

    def test_add_blocks_waypoint(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        b = service.create_waypoint("B")
        updated = service.add_dependency(b.id, a.id)
        assert updated.depends_on == [a.id]
        assert updated.status is S.BLOCKED

    def test_missing_waypoint_or_dependency(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        with pytest.raises(NotFoundError) as exc_info:
            service.add_dependency("missing", a.id)
        assert exc_info.value.kind == "Waypoint"
        with pytest.raises(NotFoundError) as exc_info:
            service.add_dependency(a.id, "missing")
        assert exc_info.value.kind == "Dependency"

    def test_duplicate_edge(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        b = service.create_waypoint("B", depends_on=[a.id])
        with pytest.raises(ConflictError):
            service.add_dependency(b.id, a.id)

    def test_cycle_rejected(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        b = service.create_waypoint("B", depends_on=[a.id])
        c = service.create_waypoint("C", depends_on=[b.id])

        with pytest.raises(WouldCycleError):
            service.add_dependency(a.id, c.id)

        assert service.get(a.id).depends_on == []

    def test_precondition_order(self, service: RouteService) -> None:
        """Self-dependency is reported before existence."""
        with pytest.raises(SelfDependencyError):
            service.add_dependency("missing", "missing")

    def test_failed_add_emits_nothing(
        self, service: RouteService, hooks: HookRegistry
    ) -> None:
        a = service.create_waypoint("A")
        events = record_events(hooks, "waypoint.updated")
        with pytest.raises(SelfDependencyError):
            service.add_dependency(a.id, a.id)
        assert events == []

    def test_remove_unblocks(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        b = service.create_waypoint("B", depends_on=[a.id])
        updated = service.remove_dependency(b.id, a.id)
        assert updated.depends_on == []
        assert updated.status is S.READY

    def test_remove_absent_edge(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        b = service.create_waypoint("B")
        with pytest.raises(NotFoundError):
            service.remove_dependency(b.id, a.id)

    def test_events_name_the_edge(
        self, service: RouteService, hooks: HookRegistry
    ) -> None:
        a = service.create_waypoint("A")
        b = service.create_waypoint("B")
        events = record_events(hooks, "waypoint.updated")
        service.add_dependency(b.id, a.id)
        service.remove_dependency(b.id, a.id)
        assert events[0][1]["added_dependency"] == a.id
        assert events[1][1]["removed_dependency"] == a.id


class TestActivityLogging:
    """Mutations are appended to the activity log of the expedition."""

    def test_logs_mutations(self, service: RouteService) -> None:
        a = service.create_waypoint("A")
        service.set_status(a.id, S.ACTIVE)

        entries = service.events.activity_log.read()  # type: ignore[union-attr]

        assert [e.event for e in entries] == [
            "waypoint.created",
            "waypoint.status_changed",
        ]
        assert entries[0].expedition_id == "exp1"
        assert entries[1].data == {
            "waypoint_id": a.id,
            "from": "ready",
            "requested": "active",
            "to": "active",
        }

    def test_failing_hook_does_not_break_mutation(
        self, service: RouteService, hooks: HookRegistry
    ) -> None:
        def boom(payload: dict[str, Any]) -> None:
            raise RuntimeError("hook failed")

        hooks.on("waypoint.created", boom)
        a = service.create_waypoint("A")
        assert service.get(a.id) is not None
