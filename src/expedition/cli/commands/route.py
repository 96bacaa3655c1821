"""Route command: view and edit waypoints and their dependencies."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable

from rich.text import Text

from expedition.cli.context import CliContext, build_context, console
from expedition.cli.render import (
    describe,
    status_text,
    summit_text,
    waypoint_table,
)
from expedition.models.waypoint import WaypointPatch, WaypointStatus


def _show(ctx: CliContext, args: argparse.Namespace) -> int:
    service = ctx.service
    if args.all:
        route = service.get_route()
        title = "Route (all branches)"
    else:
        branch = args.show_branch or service.active_branch()
        route = service.get_route(branch)
        title = f"Route ({branch})"

    if not route:
        console.print("No waypoints yet. Add one with 'route add TITLE'.")
        return 0
    console.print(waypoint_table(route, title=title, show_branch=args.all))
    return 0


def _ready(ctx: CliContext, args: argparse.Namespace) -> int:
    branch = None if args.all else ctx.service.active_branch()
    ready = ctx.service.get_ready(branch)
    if not ready:
        console.print("Nothing is ready.")
        return 0
    console.print(waypoint_table(ready, title="Ready", show_branch=args.all))
    return 0


def _add(ctx: CliContext, args: argparse.Namespace) -> int:
    waypoint = ctx.service.create_waypoint(
        args.title,
        description=args.description,
        depends_on=args.depends_on,
        reasoning=args.reasoning,
    )
    console.print(Text.assemble("Created waypoint ", describe(waypoint)))
    return 0


def _update(ctx: CliContext, args: argparse.Namespace) -> int:
    patch = WaypointPatch(
        title=args.title,
        description=args.description,
        reasoning=args.reasoning,
        branch=args.new_branch,
    )
    waypoint = ctx.service.update_waypoint(args.waypoint_id, patch)
    console.print(Text.assemble("Updated waypoint ", describe(waypoint)))
    return 0


def _set_status(
    ctx: CliContext, waypoint_id: str, status: WaypointStatus | str
) -> int:
    waypoint = ctx.service.set_status(waypoint_id, status)
    console.print(
        Text.assemble((waypoint.id, "bold"), " is now ", status_text(waypoint.status))
    )
    return 0


def _delete(ctx: CliContext, args: argparse.Namespace) -> int:
    waypoint = ctx.service.delete_waypoint(args.waypoint_id)
    console.print(Text.assemble("Deleted waypoint ", (waypoint.id, "bold")))
    return 0


def _dep(ctx: CliContext, args: argparse.Namespace) -> int:
    waypoint = ctx.service.add_dependency(args.waypoint_id, args.dependency_id)
    console.print(
        Text.assemble(
            (waypoint.id, "bold"), " now depends on ", (args.dependency_id, "bold")
        )
    )
    return 0


def _undep(ctx: CliContext, args: argparse.Namespace) -> int:
    waypoint = ctx.service.remove_dependency(args.waypoint_id, args.dependency_id)
    console.print(
        Text.assemble(
            (waypoint.id, "bold"),
            " no longer depends on ",
            (args.dependency_id, "bold"),
        )
    )
    return 0


def _link(ctx: CliContext, args: argparse.Namespace) -> int:
    ctx.service.link_note(args.note_id, args.waypoint_id)
    console.print(
        Text.assemble(
            "Linked note ", (args.note_id, "bold"), " to ", (args.waypoint_id, "bold")
        )
    )
    return 0


def _unlink(ctx: CliContext, args: argparse.Namespace) -> int:
    ctx.service.unlink_note(args.note_id, args.waypoint_id)
    console.print(
        Text.assemble(
            "Unlinked note ",
            (args.note_id, "bold"),
            " from ",
            (args.waypoint_id, "bold"),
        )
    )
    return 0


def _summary(ctx: CliContext, args: argparse.Namespace) -> int:
    branch = None if args.all else ctx.service.active_branch()
    summary = ctx.service.summary(branch)
    label = "all branches" if branch is None else branch

    console.print(
        Text.assemble(
            ("Route ", "bold"),
            (label, "bold"),
            f": {summary.done}/{summary.total} done ({summary.percent_done}%)",
        )
    )
    counts = Text()
    for status in WaypointStatus:
        if counts:
            counts.append("  ")
        counts.append_text(status_text(status))
        counts.append(f" {summary.counts.get(status, 0)}")
    console.print(counts)
    progress = summit_text(*ctx.conditions.progress())
    if progress is not None:
        console.print(progress)

    if summary.active is not None:
        console.print(Text.assemble("Active: ", describe(summary.active)))
    for waypoint in summary.next_up:
        console.print(Text.assemble("Next:   ", describe(waypoint)))
    return 0


def cmd_route(args: argparse.Namespace) -> int:
    """Inspect and edit the route of the selected expedition."""
    handlers: dict[str, Callable[[CliContext, argparse.Namespace], int]] = {
        "show": _show,
        "ready": _ready,
        "add": _add,
        "update": _update,
        "status": lambda ctx, a: _set_status(ctx, a.waypoint_id, a.status),
        "done": lambda ctx, a: _set_status(ctx, a.waypoint_id, WaypointStatus.DONE),
        "active": lambda ctx, a: _set_status(
            ctx, a.waypoint_id, WaypointStatus.ACTIVE
        ),
        "delete": _delete,
        "dep": _dep,
        "undep": _undep,
        "link": _link,
        "unlink": _unlink,
        "summary": _summary,
    }

    handler = handlers.get(args.route_action or "")
    if handler is None:
        print("Error: Unknown route action", file=sys.stderr)
        return 2

    return handler(build_context(args), args)
