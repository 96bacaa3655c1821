"""CLI orchestration and command routing."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

from expedition.cli.commands import (
    cmd_branch,
    cmd_expedition,
    cmd_log,
    cmd_note,
    cmd_route,
    cmd_summit,
)
from expedition.cli.parser import build_parser, parse_args
from expedition.config.paths import reset_paths
from expedition.errors import RouteError

logger = logging.getLogger(__name__)


def dispatch(args: argparse.Namespace) -> int:
    """Route parsed args to the correct command handler.

    Operation errors are reported on stderr and mapped to exit code 1.
    """
    command_handlers: dict[str, Callable[[argparse.Namespace], int]] = {
        "expedition": cmd_expedition,
        "route": cmd_route,
        "branch": cmd_branch,
        "note": cmd_note,
        "summit": cmd_summit,
        "log": cmd_log,
    }

    handler = command_handlers.get(args.command or "")
    if handler is None:
        build_parser().print_help(sys.stderr)
        return 2

    try:
        return handler(args)
    except RouteError as e:
        logger.info("Command %s failed: %s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def run(
    argv: Sequence[str] | None = None,
    *,
    configure_logging: Callable[[], None] | None = None,
) -> int:
    """Parse args, apply shared CLI setup, and execute command."""
    args = parse_args(argv)

    if args.workdir:
        workdir = args.workdir.resolve()
        workdir.mkdir(parents=True, exist_ok=True)
        os.chdir(workdir)
        # Workspace paths are resolved from the new cwd
        reset_paths()

    if configure_logging is not None:
        configure_logging()

    logger.info("Working directory: %s", Path.cwd())
    return dispatch(args)
