"""Shared context helpers for CLI command modules."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass

from rich.console import Console

from expedition.activity_log import ActivityLog
from expedition.config.paths import ExpeditionPaths, get_paths
from expedition.config.settings import settings
from expedition.errors import NotFoundError, PersistenceError
from expedition.events import EventEmitter
from expedition.expeditions import ExpeditionStore
from expedition.hooks import HookRegistry
from expedition.models.expedition import Expedition
from expedition.notes import NoteStore
from expedition.route.service import RouteService
from expedition.session import RouteSession
from expedition.summit import ConditionStore
from expedition.storage import CollectionStorage, MemoryStorage

logger = logging.getLogger(__name__)

console = Console(highlight=False)


@dataclass
class CliContext:
    """Everything a command handler needs for one invocation."""

    paths: ExpeditionPaths
    expeditions: ExpeditionStore
    session: RouteSession
    service: RouteService
    notes: NoteStore
    conditions: ConditionStore
    activity_log: ActivityLog


def resolve_expedition(
    store: ExpeditionStore, requested: str | None
) -> Expedition | None:
    """Pick the expedition named on the command line, else the remembered one.

    Raises:
        NotFoundError: If ``requested`` matches nothing.
    """
    if requested:
        return store.find(requested)

    remembered = settings.active_expedition
    if remembered is None:
        return None
    try:
        return store.load(remembered)
    except NotFoundError:
        logger.warning("Remembered expedition %s no longer exists", remembered)
        return None
    except PersistenceError as e:
        logger.warning("Remembered expedition %s is unreadable: %s", remembered, e)
        return None


def build_context(args: argparse.Namespace) -> CliContext:
    """Wire session, stores and service from parsed args and settings."""
    paths = get_paths()
    hooks = HookRegistry()
    activity_log = ActivityLog(paths.activity_log, enabled=settings.log_enabled)
    expeditions = ExpeditionStore(
        settings.data_directory, hooks=hooks, activity_log=activity_log
    )
    expedition = resolve_expedition(expeditions, getattr(args, "expedition", None))

    branch = getattr(args, "branch", None)
    if branch is None and expedition is not None:
        branch = settings.branch_for(expedition.id)
    session = RouteSession(
        expedition=expedition,
        branch=branch,
        default_branch=settings.default_branch,
    )

    # Without an expedition every read is empty and every write is refused
    storage: CollectionStorage = (
        expeditions.storage_for(expedition)
        if expedition is not None
        else MemoryStorage()
    )
    events = EventEmitter(session, hooks, activity_log)
    notes = NoteStore(storage, events=events)
    conditions = ConditionStore(storage, events=events)
    service = RouteService(
        session,
        storage,
        notes=notes,
        hooks=hooks,
        activity_log=activity_log,
    )
    return CliContext(
        paths=paths,
        expeditions=expeditions,
        session=session,
        service=service,
        notes=notes,
        conditions=conditions,
        activity_log=activity_log,
    )
