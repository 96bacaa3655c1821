from __future__ import annotations

import copy
import itertools
from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from expedition.activity_log import ActivityLog
from expedition.config.paths import reset_paths
from expedition.config.settings import settings
from expedition.hooks import HookRegistry
from expedition.models.expedition import Expedition
from expedition.notes import NoteStore
from expedition.route.service import RouteService
from expedition.session import RouteSession
from expedition.storage import MemoryStorage


@pytest.fixture(autouse=True)
def isolate_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Prevent tests from persisting settings to disk."""
    original_data = copy.deepcopy(settings._data)

    def _noop_save() -> None:
        return None

    monkeypatch.setattr(settings, "_save", _noop_save)
    settings._data = {}
    reset_paths()
    try:
        yield
    finally:
        settings._data = original_data
        reset_paths()


def sequential_ids(prefix: str = "wp") -> Callable[[], str]:
    """Id factory yielding wp1, wp2, ... for readable assertions."""
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"


class TickingClock:
    """Clock that advances one second per call."""

    def __init__(self) -> None:
        self.now = datetime(2025, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def make_ids() -> Callable[[str], Callable[[], str]]:
    return sequential_ids


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def session() -> RouteSession:
    return RouteSession(expedition=Expedition(id="exp1", name="Test expedition"))


@pytest.fixture
def hooks() -> HookRegistry:
    return HookRegistry()


@pytest.fixture
def notes(storage: MemoryStorage) -> NoteStore:
    return NoteStore(storage, id_factory=sequential_ids("note"))


@pytest.fixture
def activity_log(tmp_path: Path) -> ActivityLog:
    return ActivityLog(tmp_path / "activity.jsonl")


@pytest.fixture
def service(
    session: RouteSession,
    storage: MemoryStorage,
    notes: NoteStore,
    hooks: HookRegistry,
    activity_log: ActivityLog,
) -> RouteService:
    return RouteService(
        session,
        storage,
        notes=notes,
        hooks=hooks,
        activity_log=activity_log,
        id_factory=sequential_ids(),
        clock=TickingClock(),
    )
