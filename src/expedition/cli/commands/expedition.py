"""Expedition command: create, list and select expeditions."""

from __future__ import annotations

import argparse
import sys

from rich.table import Table
from rich.text import Text

from expedition.cli.context import build_context, console
from expedition.config.settings import settings


def cmd_expedition(args: argparse.Namespace) -> int:
    """Create, list, select or change the status of expeditions."""
    action = args.expedition_action
    if action not in {"new", "list", "use", "status"}:
        print("Error: Unknown expedition action", file=sys.stderr)
        return 2

    ctx = build_context(args)

    if action == "new":
        expedition = ctx.expeditions.create(args.name, args.description)
        settings.active_expedition = expedition.id
        console.print(
            Text.assemble(
                "Created expedition ", (expedition.id, "bold"), f" {expedition.name}"
            )
        )
        return 0

    if action == "use":
        expedition = ctx.expeditions.find(args.name_or_id)
        settings.active_expedition = expedition.id
        console.print(
            Text.assemble(
                "Using expedition ", (expedition.id, "bold"), f" {expedition.name}"
            )
        )
        return 0

    if action == "status":
        expedition = ctx.expeditions.find(args.name_or_id)
        expedition = ctx.expeditions.update(expedition.id, status=args.status)
        console.print(
            Text.assemble(
                "Expedition ",
                (expedition.id, "bold"),
                f" {expedition.name} is now {expedition.status.value}",
            )
        )
        return 0

    expeditions = ctx.expeditions.list()
    if not expeditions:
        console.print("No expeditions yet. Create one with 'expedition new NAME'.")
        return 0

    active_id = ctx.session.expedition.id if ctx.session.expedition else None
    table = Table(title="Expeditions")
    table.add_column("", no_wrap=True)
    table.add_column("ID", style="bold", no_wrap=True)
    table.add_column("Name")
    table.add_column("Status", no_wrap=True)
    table.add_column("Created", no_wrap=True)
    for expedition in expeditions:
        table.add_row(
            "*" if expedition.id == active_id else "",
            Text(expedition.id),
            Text(expedition.name),
            expedition.status.value,
            expedition.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)
    return 0
