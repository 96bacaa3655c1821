"""Branch command: list, create, switch and merge branches."""

from __future__ import annotations

import argparse
import sys

from rich.table import Table
from rich.text import Text

from expedition.cli.context import build_context, console
from expedition.cli.render import waypoint_table
from expedition.config.settings import settings


def cmd_branch(args: argparse.Namespace) -> int:
    """Manage branches of the selected expedition's route."""
    action = args.branch_action
    if action not in {"list", "create", "switch", "merge"}:
        print("Error: Unknown branch action", file=sys.stderr)
        return 2

    ctx = build_context(args)
    service = ctx.service

    if action == "create":
        branch = service.create_branch(args.name, args.reasoning)
        console.print(Text.assemble("Created branch ", (branch.name, "bold")))
        return 0

    if action == "switch":
        name = service.switch_branch(args.name)
        expedition = ctx.session.require_expedition()
        settings.remember_branch(expedition.id, name)
        console.print(Text.assemble("Switched to branch ", (name, "bold")))
        return 0

    if action == "merge":
        merged = service.merge_branch(args.source, args.target)
        if not merged:
            console.print(f"Branch {args.source} has no waypoints; nothing merged.")
            return 0
        console.print(
            waypoint_table(
                merged,
                title=f"Merged {len(merged)} waypoint(s) into {args.target}",
            )
        )
        return 0

    active = service.active_branch()
    waypoints = service.list()
    table = Table(title="Branches")
    table.add_column("", no_wrap=True)
    table.add_column("Name", style="bold", no_wrap=True)
    table.add_column("Waypoints", justify="right")
    for name in service.list_branches():
        count = sum(1 for wp in waypoints if wp.branch == name)
        table.add_row("*" if name == active else "", Text(name), str(count))
    console.print(table)
    return 0
