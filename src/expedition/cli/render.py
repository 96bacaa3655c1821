"""Rich renderables shared by command handlers."""

from __future__ import annotations

from collections.abc import Sequence

from rich.table import Table
from rich.text import Text

from expedition.models.waypoint import Waypoint, WaypointStatus

STATUS_STYLES: dict[WaypointStatus, str] = {
    WaypointStatus.BLOCKED: "red",
    WaypointStatus.READY: "cyan",
    WaypointStatus.ACTIVE: "bold yellow",
    WaypointStatus.DONE: "green",
    WaypointStatus.ABANDONED: "dim",
}

STATUS_ICONS: dict[WaypointStatus, str] = {
    WaypointStatus.BLOCKED: "◇",
    WaypointStatus.READY: "○",
    WaypointStatus.ACTIVE: "◉",
    WaypointStatus.DONE: "✓",
    WaypointStatus.ABANDONED: "✗",
}


def status_text(status: WaypointStatus) -> Text:
    """Icon plus status name, colored by status."""
    return Text(f"{STATUS_ICONS[status]} {status.value}", style=STATUS_STYLES[status])


def waypoint_table(
    waypoints: Sequence[Waypoint],
    *,
    title: str | None = None,
    show_branch: bool = False,
) -> Table:
    """Build a table of waypoints in the order given."""
    table = Table(title=title, show_lines=False)
    table.add_column("ID", style="bold", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Title")
    table.add_column("Depends on", no_wrap=True)
    if show_branch:
        table.add_column("Branch", no_wrap=True)

    for wp in waypoints:
        row = [
            Text(wp.id),
            status_text(wp.status),
            Text(wp.title),
            Text(", ".join(wp.depends_on) or "-", style="dim"),
        ]
        if show_branch:
            row.append(Text(wp.branch))
        table.add_row(*row)
    return table


def describe(waypoint: Waypoint) -> Text:
    """One-line description: id, title and status."""
    text = Text()
    text.append(waypoint.id, style="bold")
    text.append(f" {waypoint.title} ")
    text.append_text(status_text(waypoint.status))
    return text


def summit_text(met: int, total: int) -> Text | None:
    """``Summit: met/total``, or None when there are no conditions."""
    if total == 0:
        return None
    return Text.assemble(("Summit: ", "bold"), f"{met}/{total}")
