"""Summit command: manage the conditions that end an expedition."""

from __future__ import annotations

import argparse
import sys

from rich.table import Table
from rich.text import Text

from expedition.cli.context import CliContext, build_context, console
from expedition.cli.render import summit_text
from expedition.errors import NotFoundError
from expedition.models.condition import ConditionStatus, SummitCondition

CONDITION_STYLES: dict[ConditionStatus, str] = {
    ConditionStatus.OPEN: "cyan",
    ConditionStatus.MET: "green",
    ConditionStatus.ABANDONED: "dim",
}

_STATUS_ACTIONS = {
    "met": ConditionStatus.MET,
    "abandon": ConditionStatus.ABANDONED,
    "reopen": ConditionStatus.OPEN,
}


def _describe(condition: SummitCondition) -> Text:
    return Text.assemble(
        (condition.id, "bold"),
        f" {condition.text} ",
        (condition.status.value, CONDITION_STYLES[condition.status]),
    )


def _list(ctx: CliContext) -> int:
    conditions = ctx.conditions.list()
    if not conditions:
        console.print("No summit conditions yet. Add one with 'summit add TEXT'.")
        return 0

    table = Table(title="Summit conditions")
    table.add_column("ID", style="bold", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Condition")
    for condition in conditions:
        table.add_row(
            Text(condition.id),
            Text(condition.status.value, style=CONDITION_STYLES[condition.status]),
            Text(condition.text),
        )
    console.print(table)
    progress = summit_text(*ctx.conditions.progress())
    if progress is not None:
        console.print(progress)
    return 0


def cmd_summit(args: argparse.Namespace) -> int:
    """Add, list and resolve summit conditions of the selected expedition."""
    action = args.summit_action
    if action not in {"add", "list", "delete", *_STATUS_ACTIONS}:
        print("Error: Unknown summit action", file=sys.stderr)
        return 2

    ctx = build_context(args)
    ctx.session.require_expedition()

    if action == "add":
        condition = ctx.conditions.create(args.text)
        console.print(Text.assemble("Added summit condition ", _describe(condition)))
        return 0

    if action == "list":
        return _list(ctx)

    if action == "delete":
        if not ctx.conditions.delete(args.condition_id):
            raise NotFoundError("Condition", args.condition_id)
        console.print(
            Text.assemble("Deleted summit condition ", (args.condition_id, "bold"))
        )
        return 0

    condition = ctx.conditions.set_status(args.condition_id, _STATUS_ACTIONS[action])
    console.print(_describe(condition))
    return 0
