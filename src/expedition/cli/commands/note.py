"""Note command: add and list notes."""

from __future__ import annotations

import argparse
import sys

from rich.table import Table
from rich.text import Text

from expedition.cli.context import build_context, console


def cmd_note(args: argparse.Namespace) -> int:
    """Add or list notes of the selected expedition."""
    action = args.note_action
    if action not in {"add", "list"}:
        print("Error: Unknown note action", file=sys.stderr)
        return 2

    ctx = build_context(args)
    ctx.session.require_expedition()

    if action == "add":
        note = ctx.notes.create(args.body, tags=args.tags)
        console.print(Text.assemble("Created note ", (note.id, "bold")))
        return 0

    notes = ctx.notes.list()
    if not notes:
        console.print("No notes yet.")
        return 0

    table = Table(title="Notes")
    table.add_column("ID", style="bold", no_wrap=True)
    table.add_column("Waypoint", no_wrap=True)
    table.add_column("Tags")
    table.add_column("Body")
    for note in notes:
        table.add_row(
            Text(note.id),
            Text(note.waypoint_id or "-", style="dim"),
            Text(", ".join(note.tags)),
            Text(note.body),
        )
    console.print(table)
    return 0
