"""Argument parser construction for Expedition CLI."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path

STATUS_CHOICES = ["blocked", "ready", "active", "done", "abandoned"]
EXPEDITION_STATUS_CHOICES = ["active", "paused", "completed", "archived"]


def _add_expedition_parser(subparsers: argparse._SubParsersAction) -> None:
    expedition_parser = subparsers.add_parser(
        "expedition",
        help="Create, list and select expeditions",
    )
    actions = expedition_parser.add_subparsers(
        dest="expedition_action",
        help="Expedition actions",
    )

    new_parser = actions.add_parser("new", help="Create a new expedition")
    new_parser.add_argument("name", help="Expedition name")
    new_parser.add_argument(
        "--description",
        "-d",
        default="",
        help="Short description of the expedition",
    )

    actions.add_parser("list", help="List expeditions in this workspace")

    use_parser = actions.add_parser(
        "use",
        help="Make an expedition the default for later commands",
    )
    use_parser.add_argument("name_or_id", help="Expedition name or id")

    status_parser = actions.add_parser(
        "status",
        help="Change an expedition's lifecycle status",
    )
    status_parser.add_argument("name_or_id", help="Expedition name or id")
    status_parser.add_argument(
        "status",
        help=f"New status ({', '.join(EXPEDITION_STATUS_CHOICES)})",
    )


def _add_route_parser(subparsers: argparse._SubParsersAction) -> None:
    route_parser = subparsers.add_parser(
        "route",
        help="Inspect and edit the waypoint route",
    )
    actions = route_parser.add_subparsers(
        dest="route_action",
        help="Route actions",
    )

    show_parser = actions.add_parser(
        "show",
        help="Show waypoints in dependency order",
    )
    scope = show_parser.add_mutually_exclusive_group()
    scope.add_argument(
        "--branch",
        dest="show_branch",
        help="Branch to show (default: active branch)",
    )
    scope.add_argument(
        "--all",
        action="store_true",
        help="Show waypoints on every branch",
    )

    ready_parser = actions.add_parser("ready", help="List waypoints ready to start")
    ready_parser.add_argument(
        "--all",
        action="store_true",
        help="Include every branch (default: active branch)",
    )

    add_parser = actions.add_parser("add", help="Create a waypoint")
    add_parser.add_argument("title", help="Waypoint title")
    add_parser.add_argument("--description", default="", help="Longer description")
    add_parser.add_argument("--reasoning", default="", help="Why this waypoint exists")
    add_parser.add_argument(
        "--depends-on",
        action="append",
        default=[],
        metavar="ID",
        help="Waypoint this one depends on (repeatable)",
    )

    update_parser = actions.add_parser("update", help="Edit waypoint fields")
    update_parser.add_argument("waypoint_id", help="Waypoint id")
    update_parser.add_argument("--title", help="New title")
    update_parser.add_argument("--description", help="New description")
    update_parser.add_argument("--reasoning", help="New reasoning")
    update_parser.add_argument(
        "--branch",
        dest="new_branch",
        help="Move the waypoint to another branch",
    )

    status_parser = actions.add_parser("status", help="Change a waypoint's status")
    status_parser.add_argument("waypoint_id", help="Waypoint id")
    status_parser.add_argument(
        "status",
        help=f"New status ({', '.join(STATUS_CHOICES)})",
    )

    done_parser = actions.add_parser("done", help="Mark a waypoint done")
    done_parser.add_argument("waypoint_id", help="Waypoint id")

    active_parser = actions.add_parser("active", help="Mark a waypoint active")
    active_parser.add_argument("waypoint_id", help="Waypoint id")

    delete_parser = actions.add_parser("delete", help="Delete a waypoint")
    delete_parser.add_argument("waypoint_id", help="Waypoint id")

    dep_parser = actions.add_parser("dep", help="Add a dependency edge")
    dep_parser.add_argument("waypoint_id", help="Waypoint that gains a dependency")
    dep_parser.add_argument("dependency_id", help="Waypoint it will depend on")

    undep_parser = actions.add_parser("undep", help="Remove a dependency edge")
    undep_parser.add_argument("waypoint_id", help="Waypoint that loses a dependency")
    undep_parser.add_argument("dependency_id", help="Dependency to remove")

    link_parser = actions.add_parser("link", help="Link a note to a waypoint")
    link_parser.add_argument("waypoint_id", help="Waypoint id")
    link_parser.add_argument("note_id", help="Note id")

    unlink_parser = actions.add_parser("unlink", help="Unlink a note from a waypoint")
    unlink_parser.add_argument("waypoint_id", help="Waypoint id")
    unlink_parser.add_argument("note_id", help="Note id")

    summary_parser = actions.add_parser("summary", help="Show route progress")
    summary_parser.add_argument(
        "--all",
        action="store_true",
        help="Summarize every branch (default: active branch)",
    )


def _add_branch_parser(subparsers: argparse._SubParsersAction) -> None:
    branch_parser = subparsers.add_parser("branch", help="Manage route branches")
    actions = branch_parser.add_subparsers(
        dest="branch_action",
        help="Branch actions",
    )

    actions.add_parser("list", help="List known branches")

    create_parser = actions.add_parser("create", help="Register a branch")
    create_parser.add_argument("name", help="Branch name")
    create_parser.add_argument(
        "reasoning",
        nargs="?",
        default="",
        help="Why this branch exists",
    )

    switch_parser = actions.add_parser("switch", help="Select the active branch")
    switch_parser.add_argument("name", help="Branch name")

    merge_parser = actions.add_parser(
        "merge",
        help="Copy every waypoint of one branch onto another",
    )
    merge_parser.add_argument("source", help="Branch to copy from")
    merge_parser.add_argument("target", help="Branch to copy onto")


def _add_note_parser(subparsers: argparse._SubParsersAction) -> None:
    note_parser = subparsers.add_parser("note", help="Add and list notes")
    actions = note_parser.add_subparsers(dest="note_action", help="Note actions")

    add_parser = actions.add_parser("add", help="Create a note")
    add_parser.add_argument("body", help="Note text")
    add_parser.add_argument(
        "--tag",
        action="append",
        default=[],
        dest="tags",
        help="Tag for the note (repeatable)",
    )

    actions.add_parser("list", help="List notes")


def _add_summit_parser(subparsers: argparse._SubParsersAction) -> None:
    summit_parser = subparsers.add_parser(
        "summit",
        help="Manage the conditions that mark the expedition as done",
    )
    actions = summit_parser.add_subparsers(
        dest="summit_action",
        help="Summit actions",
    )

    add_parser = actions.add_parser("add", help="Add a summit condition")
    add_parser.add_argument("text", help="What has to be true")

    actions.add_parser("list", help="List summit conditions and progress")

    for action, help_text in (
        ("met", "Mark a condition as met"),
        ("abandon", "Abandon a condition"),
        ("reopen", "Reopen a condition"),
        ("delete", "Delete a condition"),
    ):
        action_parser = actions.add_parser(action, help=help_text)
        action_parser.add_argument("condition_id", help="Condition id")


def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level CLI parser."""
    parser = argparse.ArgumentParser(
        prog="expedition",
        description="Expedition - plan work as a dependency graph of waypoints",
    )
    parser.add_argument(
        "--workdir",
        "-w",
        type=Path,
        help="Working directory for expedition data (default: current directory)",
    )
    parser.add_argument(
        "--expedition",
        "-e",
        help="Expedition name or id (default: the one selected with 'use')",
    )
    parser.add_argument(
        "--branch",
        "-b",
        help="Branch to work on for this invocation",
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    _add_expedition_parser(subparsers)
    _add_route_parser(subparsers)
    _add_branch_parser(subparsers)
    _add_note_parser(subparsers)
    _add_summit_parser(subparsers)

    log_parser = subparsers.add_parser("log", help="Show recent activity")
    log_parser.add_argument(
        "-n",
        "--lines",
        type=int,
        default=20,
        help="Number of entries to show (default: 20)",
    )

    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments from argv (or sys.argv when omitted)."""
    parser = build_parser()
    if argv is None:
        return parser.parse_args()
    return parser.parse_args(list(argv))
