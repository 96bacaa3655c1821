"""Tests for the status engine and transition validator."""

from __future__ import annotations

import pytest

from expedition.errors import InvalidTransitionError
from expedition.models.waypoint import Waypoint, WaypointStatus
from expedition.route.status import (
    VALID_TRANSITIONS,
    can_transition,
    compute_statuses,
    validate_transition,
)

S = WaypointStatus


def wp(waypoint_id: str, *deps: str, status: WaypointStatus = S.READY) -> Waypoint:
    return Waypoint(
        id=waypoint_id, title=waypoint_id, depends_on=list(deps), status=status
    )


def statuses(waypoints: list[Waypoint]) -> dict[str, WaypointStatus]:
    return {w.id: w.status for w in waypoints}


class TestComputeStatuses:
    """Tests for compute_statuses."""

    def test_no_dependencies_is_ready(self) -> None:
        result = compute_statuses([wp("a", status=S.BLOCKED)])
        assert result[0].status is S.READY

    def test_blocked_until_dependency_done(self) -> None:
        result = statuses(compute_statuses([wp("a"), wp("b", "a")]))
        assert result == {"a": S.READY, "b": S.BLOCKED}

    def test_ready_when_all_dependencies_done(self) -> None:
        waypoints = [wp("a", status=S.DONE), wp("b", status=S.DONE), wp("c", "a", "b")]
        assert statuses(compute_statuses(waypoints))["c"] is S.READY

    def test_one_unfinished_dependency_blocks(self) -> None:
        waypoints = [
            wp("a", status=S.DONE),
            wp("b", status=S.ACTIVE),
            wp("c", "a", "b"),
        ]
        assert statuses(compute_statuses(waypoints))["c"] is S.BLOCKED

    def test_dangling_dependency_counts_as_not_done(self) -> None:
        result = compute_statuses([wp("a", "deleted")])
        assert result[0].status is S.BLOCKED

    @pytest.mark.parametrize("status", [S.ACTIVE, S.DONE, S.ABANDONED])
    def test_explicit_status_passes_through(self, status: WaypointStatus) -> None:
        """Explicit statuses are kept even when dependencies are unfinished."""
        result = compute_statuses([wp("a"), wp("b", "a", status=status)])
        assert result[1].status is status

    def test_abandoned_dependency_still_blocks(self) -> None:
        waypoints = [wp("a", status=S.ABANDONED), wp("b", "a")]
        assert statuses(compute_statuses(waypoints))["b"] is S.BLOCKED

    def test_idempotent(self) -> None:
        waypoints = [
            wp("a", status=S.DONE),
            wp("b", "a", status=S.BLOCKED),
            wp("c", "b", status=S.READY),
            wp("d", "ghost"),
        ]
        once = compute_statuses(waypoints)
        twice = compute_statuses(once)
        assert statuses(once) == statuses(twice)

    def test_inputs_untouched(self) -> None:
        original = [wp("a"), wp("b", "a", status=S.READY)]
        result = compute_statuses(original)
        assert original[1].status is S.READY
        assert result[1].status is S.BLOCKED
        assert result[1] is not original[1]


class TestTransitions:
    """Tests for the transition table."""

    def test_every_status_has_an_entry(self) -> None:
        for status in WaypointStatus:
            assert status in VALID_TRANSITIONS

    @pytest.mark.parametrize(
        ("current", "allowed"),
        [
            (S.BLOCKED, {S.ACTIVE, S.ABANDONED}),
            (S.READY, {S.ACTIVE, S.DONE, S.ABANDONED}),
            (S.ACTIVE, {S.DONE, S.ABANDONED, S.READY}),
            (S.DONE, {S.ACTIVE, S.READY}),
            (S.ABANDONED, {S.READY}),
        ],
    )
    def test_table(self, current: WaypointStatus, allowed: set[WaypointStatus]) -> None:
        assert set(VALID_TRANSITIONS[current]) == allowed
        for target in WaypointStatus:
            assert can_transition(current, target) is (target in allowed)

    def test_validate_accepts_strings(self) -> None:
        assert validate_transition(S.READY, "active") is S.ACTIVE
        assert validate_transition(S.READY, " DONE ") is S.DONE

    def test_validate_rejects_disallowed_pair(self) -> None:
        with pytest.raises(InvalidTransitionError) as exc_info:
            validate_transition(S.BLOCKED, S.DONE)
        assert exc_info.value.current is S.BLOCKED
        assert "blocked" in str(exc_info.value)
        assert "done" in str(exc_info.value)

    def test_validate_rejects_unknown_status(self) -> None:
        """An unknown status is reported against the current status."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            validate_transition(S.BLOCKED, "not-a-real-status")
        assert exc_info.value.current is S.BLOCKED
        assert exc_info.value.target == "not-a-real-status"
        assert "not-a-real-status" in str(exc_info.value)

    def test_done_cannot_be_abandoned(self) -> None:
        with pytest.raises(InvalidTransitionError):
            validate_transition(S.DONE, S.ABANDONED)
