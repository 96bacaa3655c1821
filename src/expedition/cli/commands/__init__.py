"""CLI command handlers."""

from .branch import cmd_branch
from .expedition import cmd_expedition
from .log import cmd_log
from .note import cmd_note
from .route import cmd_route
from .summit import cmd_summit

__all__ = [
    "cmd_branch",
    "cmd_expedition",
    "cmd_log",
    "cmd_note",
    "cmd_route",
    "cmd_summit",
]
