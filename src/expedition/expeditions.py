"""Expedition directories: one folder per expedition under a data root."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from expedition.activity_log import ActivityLog
from expedition.errors import InvalidInputError, NotFoundError, PersistenceError
from expedition.hooks import HookRegistry
from expedition.models.expedition import Expedition, ExpeditionStatus
from expedition.models.ids import new_id, utc_now
from expedition.models.schema import atomic_write_lines
from expedition.notes import NOTES_KEY
from expedition.route.store import BRANCHES_KEY, ROUTE_KEY, unique_id
from expedition.summit import CONDITIONS_KEY
from expedition.storage import JsonlStorage

logger = logging.getLogger(__name__)

METADATA_FILE = "expedition.json"


class ExpeditionStore:
    """Creates, lists and loads expeditions under ``root``.

    Layout::

        <root>/<id>/expedition.json
        <root>/<id>/route.jsonl
        <root>/<id>/branches.jsonl
        <root>/<id>/notes.jsonl
        <root>/<id>/conditions.jsonl
    """

    def __init__(
        self,
        root: Path,
        *,
        id_factory: Callable[[], str] = new_id,
        clock: Callable[[], datetime] = utc_now,
        hooks: HookRegistry | None = None,
        activity_log: ActivityLog | None = None,
    ) -> None:
        self.root = root
        self._new_id = id_factory
        self._now = clock
        self.hooks = hooks
        self.activity_log = activity_log

    def path_for(self, expedition_id: str) -> Path:
        """Get the directory of one expedition."""
        return self.root / expedition_id

    def storage_for(self, expedition: Expedition) -> JsonlStorage:
        """Collection storage rooted at the expedition's directory."""
        return JsonlStorage(self.path_for(expedition.id))

    def create(self, name: str, description: str = "") -> Expedition:
        """Create an expedition with every collection present and empty.

        Raises:
            InvalidInputError: If the name is blank.
        """
        name = (name or "").strip()
        if not name:
            raise InvalidInputError("Expedition name is required")

        taken = {p.name for p in self.root.iterdir()} if self.root.exists() else set()
        now = self._now()
        expedition = Expedition(
            id=unique_id(self._new_id, taken),
            name=name,
            description=description or "",
            created_at=now,
            updated_at=now,
        )
        self.save(expedition)

        storage = self.storage_for(expedition)
        for key in (ROUTE_KEY, BRANCHES_KEY, NOTES_KEY, CONDITIONS_KEY):
            storage.write_collection(key, [])

        logger.info("Created expedition %s (%s)", expedition.id, name)
        return expedition

    def save(self, expedition: Expedition) -> None:
        """Write expedition metadata."""
        path = self.path_for(expedition.id) / METADATA_FILE
        content = json.dumps(expedition.to_dict(), indent=2) + "\n"
        try:
            atomic_write_lines(path, [content])
        except OSError as e:
            raise PersistenceError(f"Failed to write {path}: {e}") from e

    def update(
        self,
        expedition_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
        status: ExpeditionStatus | str | None = None,
    ) -> Expedition:
        """Change name, description and/or lifecycle status of an expedition.

        Raises:
            InvalidInputError: Nothing to change, a blank name or an unknown
                status.
            NotFoundError: The expedition does not exist.
        """
        changes: dict[str, str] = {}
        if name is not None:
            name = name.strip()
            if not name:
                raise InvalidInputError("Expedition name is required")
            changes["name"] = name
        if description is not None:
            changes["description"] = description
        if status is not None:
            if not isinstance(status, ExpeditionStatus):
                try:
                    status = ExpeditionStatus(str(status).strip().lower())
                except ValueError:
                    raise InvalidInputError(
                        f"Invalid expedition status: {status}"
                    ) from None
            changes["status"] = status.value
        if not changes:
            raise InvalidInputError("No fields to update")

        expedition = self.load(expedition_id)
        if "name" in changes:
            expedition.name = changes["name"]
        if "description" in changes:
            expedition.description = changes["description"]
        if "status" in changes:
            expedition.status = ExpeditionStatus(changes["status"])
        expedition.updated_at = self._now()
        self.save(expedition)

        logger.info("Updated expedition %s: %s", expedition_id, sorted(changes))
        if self.activity_log is not None:
            self.activity_log.append("expedition.updated", expedition_id, changes)
        if self.hooks is not None:
            self.hooks.dispatch(
                "expedition.updated",
                {"expedition": expedition, "changes": changes},
            )
        return expedition

    def load(self, expedition_id: str) -> Expedition:
        """Load an expedition by id.

        Raises:
            NotFoundError: If no metadata exists for ``expedition_id``.
            PersistenceError: If the metadata cannot be parsed.
        """
        path = self.path_for(expedition_id) / METADATA_FILE
        if not path.exists():
            raise NotFoundError("Expedition", expedition_id)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return Expedition.from_dict(data)
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Invalid expedition metadata {path}: {e}") from e

    def list(self) -> list[Expedition]:
        """List all readable expeditions, most recently created first."""
        if not self.root.exists():
            return []
        expeditions = []
        for directory in self.root.iterdir():
            if not (directory / METADATA_FILE).is_file():
                continue
            try:
                expeditions.append(self.load(directory.name))
            except PersistenceError as e:
                logger.warning("Skipping expedition %s: %s", directory.name, e)
        return sorted(expeditions, key=lambda e: e.created_at, reverse=True)

    def find(self, name_or_id: str) -> Expedition:
        """Find an expedition by exact id, then by name.

        Raises:
            NotFoundError: If nothing matches.
        """
        key = (name_or_id or "").strip()
        expeditions = self.list()
        for expedition in expeditions:
            if expedition.id == key:
                return expedition
        for expedition in expeditions:
            if expedition.name == key:
                return expedition
        raise NotFoundError("Expedition", key)
