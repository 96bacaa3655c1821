"""Main module for expedition."""

import logging
import os
import sys

from expedition.cli import run
from expedition.config.paths import get_paths
from expedition.config.settings import settings


def setup_logging() -> None:
    """Configure logging to file for debugging."""
    paths = get_paths()
    paths.ensure_workspace_dirs()
    log_file = paths.debug_log

    # Set level from env var, default to INFO
    level = os.environ.get("EXPEDITION_LOG_LEVEL", "INFO").upper()

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(log_file, mode="a"),
        ],
    )
    logging.info("Expedition starting, logging to %s", log_file)
    logging.info("Expeditions root: %s", settings.data_directory)


def main() -> None:
    """Entry point for the expedition command."""
    sys.exit(run(configure_logging=setup_logging))


if __name__ == "__main__":
    main()
