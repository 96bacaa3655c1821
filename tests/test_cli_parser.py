from __future__ import annotations

from pathlib import Path

import pytest

from expedition.cli.parser import parse_args


def test_parse_args_without_command() -> None:
    args = parse_args([])
    assert args.command is None
    assert args.workdir is None
    assert args.expedition is None
    assert args.branch is None


def test_parse_args_global_options() -> None:
    args = parse_args(["-w", "/tmp/ws", "-e", "alps", "-b", "north", "route", "show"])
    assert args.workdir == Path("/tmp/ws")
    assert args.expedition == "alps"
    assert args.branch == "north"
    assert args.command == "route"
    assert args.route_action == "show"
    assert args.show_branch is None
    assert args.all is False


def test_parse_args_route_add_repeated_dependencies() -> None:
    args = parse_args(
        ["route", "add", "Summit", "--depends-on", "a1", "--depends-on", "b2"]
    )
    assert args.title == "Summit"
    assert args.depends_on == ["a1", "b2"]
    assert args.description == ""


def test_parse_args_route_update_branch_does_not_clash_with_global() -> None:
    args = parse_args(["-b", "main", "route", "update", "a1", "--branch", "side"])
    assert args.branch == "main"
    assert args.new_branch == "side"
    assert args.title is None


def test_parse_args_route_show_scope_is_exclusive() -> None:
    with pytest.raises(SystemExit):
        parse_args(["route", "show", "--all", "--branch", "x"])


def test_parse_args_branch_create_optional_reasoning() -> None:
    args = parse_args(["branch", "create", "scouting"])
    assert args.branch_action == "create"
    assert args.name == "scouting"
    assert args.reasoning == ""


def test_parse_args_note_tags() -> None:
    args = parse_args(["note", "add", "saw tracks", "--tag", "wildlife", "--tag", "x"])
    assert args.note_action == "add"
    assert args.tags == ["wildlife", "x"]


def test_parse_args_log_lines() -> None:
    assert parse_args(["log"]).lines == 20
    assert parse_args(["log", "-n", "5"]).lines == 5


def test_parse_args_log_rejects_non_integer() -> None:
    with pytest.raises(SystemExit):
        parse_args(["log", "-n", "many"])


def test_parse_args_expedition_status() -> None:
    args = parse_args(["expedition", "status", "Alps", "paused"])
    assert args.expedition_action == "status"
    assert args.name_or_id == "Alps"
    assert args.status == "paused"


@pytest.mark.parametrize("action", ["met", "abandon", "reopen", "delete"])
def test_parse_args_summit_condition_actions(action: str) -> None:
    args = parse_args(["summit", action, "c1"])
    assert args.command == "summit"
    assert args.summit_action == action
    assert args.condition_id == "c1"


def test_parse_args_summit_add() -> None:
    args = parse_args(["summit", "add", "All tests pass"])
    assert args.summit_action == "add"
    assert args.text == "All tests pass"
