"""Log command: show the tail of the activity log."""

from __future__ import annotations

import argparse

from rich.table import Table
from rich.text import Text

from expedition.cli.context import build_context, console


def cmd_log(args: argparse.Namespace) -> int:
    """Show recent activity, oldest first."""
    ctx = build_context(args)
    expedition = ctx.session.expedition

    entries = ctx.activity_log.read()
    if expedition is not None:
        entries = [e for e in entries if e.expedition_id == expedition.id]
    entries = entries[-args.lines :] if args.lines > 0 else []

    if not entries:
        console.print("No activity recorded.")
        return 0

    table = Table(title="Activity")
    table.add_column("Time", no_wrap=True)
    table.add_column("Event", style="bold", no_wrap=True)
    table.add_column("Details")
    for entry in entries:
        details = " ".join(f"{k}={v}" for k, v in entry.data.items())
        table.add_row(
            entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            Text(entry.event),
            Text(details),
        )
    console.print(table)
    return 0
